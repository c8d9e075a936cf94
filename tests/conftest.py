"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import os
import sys
from typing import Any

import pytest

# Ensure src/ is on sys.path so tests exercise the src layout.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

_CERTCHAIN_ENV = (
    "RPC_URL",
    "PROVIDER_URL",
    "CONTRACT_ADDRESS",
    "CHAIN_ID",
    "SIGNER_PRIVATE_KEY",
    "PRIVATE_KEY",
    "NODE_ENV",
    "CONFIRMATION_TIMEOUT",
    "RECEIPT_POLL_INTERVAL",
    "SIMULATED_LATENCY",
    "LOG_LEVEL",
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer or CI credentials out of settings under test."""

    for name in _CERTCHAIN_ENV:
        monkeypatch.delenv(name, raising=False)
