"""Structured JSON logging for certchain entry points."""

from __future__ import annotations

import copy
import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import IO, Iterable
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_ATTRIBUTES: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRIBUTES and key != "trace_id"
        }
        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": getattr(record, "trace_id", None) or self._default_trace_id,
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text
        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records instead of blocking callers."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # Keep exc_info; the listener runs in-process and renders it itself.
        prepared = copy.copy(record)
        prepared.msg = record.getMessage()
        prepared.args = None
        return prepared

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    trace_id: str | None = None,
    level: int | str = logging.INFO,
    stream: IO[str] | None = None,
) -> logging.handlers.QueueListener:
    """Attach JSON output to ``logger`` through a bounded queue.

    Args:
        logger: Logger to configure, usually the ``certchain`` root.
        trace_id: Identifier stamped on records lacking their own; a random
            one is generated when omitted.
        level: Level as an integer or a name such as ``"DEBUG"``.
        stream: Destination for rendered lines; ``sys.stderr`` by default.

    Returns:
        The started listener; pass it to :func:`shutdown_listeners` on exit.
    """

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    logger.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=1024)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler(stream)
    stream_handler.setFormatter(JsonFormatter(default_trace_id=trace_id or str(uuid4())))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop listeners, logging rather than raising on failure."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - listener shutdown
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)


def detach_structured_logging(
    logger: logging.Logger, listener: logging.handlers.QueueListener
) -> None:
    """Stop ``listener`` and remove the queue handler feeding it from ``logger``."""

    shutdown_listeners([listener])
    for handler in list(logger.handlers):
        if isinstance(handler, BoundedQueueHandler) and handler.queue is listener.queue:
            logger.removeHandler(handler)
