"""Ledger client implementations and abstractions."""

from __future__ import annotations

from certchain.ledger.base import LedgerClient, LedgerRecord, Receipt, TransactionHandle
from certchain.ledger.connection import LedgerConnection, build_connection
from certchain.ledger.errors import (
    ConfirmationTimeoutError,
    DuplicateRegistrationError,
    LedgerError,
    LedgerErrorKind,
    LedgerUnavailableError,
    NoSignerConfiguredError,
    TransactionRevertedError,
)
from certchain.ledger.simulated import SimulatedLedgerClient
from certchain.ledger.web3_client import Web3LedgerClient

__all__ = [
    "ConfirmationTimeoutError",
    "DuplicateRegistrationError",
    "LedgerClient",
    "LedgerConnection",
    "LedgerError",
    "LedgerErrorKind",
    "LedgerRecord",
    "LedgerUnavailableError",
    "NoSignerConfiguredError",
    "Receipt",
    "SimulatedLedgerClient",
    "TransactionHandle",
    "TransactionRevertedError",
    "Web3LedgerClient",
    "build_connection",
    "create_ledger_client",
]


def create_ledger_client(
    connection: LedgerConnection,
    *,
    poll_interval: float = 2.0,
    simulated_latency: float = 1.5,
) -> LedgerClient:
    """Select the real or simulated ledger once, at startup.

    Args:
        connection: Immutable connection built from settings.
        poll_interval: Seconds between receipt lookups on the real ledger.
        simulated_latency: Artificial delay for simulated lookups.

    Returns:
        A :class:`Web3LedgerClient` when an endpoint is configured, otherwise a
        :class:`SimulatedLedgerClient`.
    """

    if connection.ledger_configured:
        return Web3LedgerClient(connection, poll_interval=poll_interval)
    return SimulatedLedgerClient(latency_seconds=simulated_latency)
