"""Tests for structured logging pipeline utilities."""

from __future__ import annotations

import io
import json
import logging

from certchain import logging_pipeline


def test_configure_structured_logging_emits_json() -> None:
    logger = logging.getLogger("certchain-test-json")
    buffer = io.StringIO()
    listener = logging_pipeline.configure_structured_logging(
        logger, trace_id="trace-123", level="debug", stream=buffer
    )

    logger.debug("lookup", extra={"digest": "0xabc", "exists": True})
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue().strip())
    assert payload["message"] == "lookup"
    assert payload["level"] == "DEBUG"
    assert payload["trace_id"] == "trace-123"
    assert payload["context"] == {"digest": "0xabc", "exists": True}
    assert logger.level == logging.DEBUG


def test_unknown_level_name_defaults_to_info() -> None:
    logger = logging.getLogger("certchain-test-level")
    listener = logging_pipeline.configure_structured_logging(
        logger, level="chatty", stream=io.StringIO()
    )
    logging_pipeline.shutdown_listeners([listener])

    assert logger.level == logging.INFO


def test_generated_trace_id_is_attached() -> None:
    logger = logging.getLogger("certchain-test-trace")
    buffer = io.StringIO()
    listener = logging_pipeline.configure_structured_logging(logger, stream=buffer)

    logger.info("auto-trace")
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue())
    assert isinstance(payload["trace_id"], str) and payload["trace_id"]


def test_exception_traceback_is_rendered() -> None:
    logger = logging.getLogger("certchain-test-exception")
    buffer = io.StringIO()
    listener = logging_pipeline.configure_structured_logging(logger, stream=buffer)

    try:
        raise ValueError("receipt missing")
    except ValueError:
        logger.exception("lookup failed")
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue())
    assert payload["message"] == "lookup failed"
    assert "exception" in payload
    assert "ValueError: receipt missing" in payload["exception"]


def test_detach_removes_queue_handler() -> None:
    logger = logging.getLogger("certchain-test-detach")
    before = list(logger.handlers)
    listener = logging_pipeline.configure_structured_logging(
        logger, stream=io.StringIO()
    )
    assert len(logger.handlers) == len(before) + 1

    logging_pipeline.detach_structured_logging(logger, listener)

    assert logger.handlers == before
