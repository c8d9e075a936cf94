"""Structured failure kinds raised by ledger clients."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certchain.ledger.base import TransactionHandle

__all__ = [
    "ConfirmationTimeoutError",
    "DuplicateRegistrationError",
    "LedgerError",
    "LedgerErrorKind",
    "LedgerUnavailableError",
    "NoSignerConfiguredError",
    "TransactionRevertedError",
]


class LedgerErrorKind(StrEnum):
    """Classification orchestrators branch on instead of error text."""

    DUPLICATE_REGISTRATION = "duplicate_registration"
    UNAVAILABLE = "unavailable"
    REVERTED = "reverted"
    NO_SIGNER = "no_signer"
    UNKNOWN = "unknown"


class LedgerError(RuntimeError):
    """Base class for failures surfaced by a ledger client."""

    kind: LedgerErrorKind = LedgerErrorKind.UNKNOWN

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class DuplicateRegistrationError(LedgerError):
    """Raised when the ledger already holds a record for the digest."""

    kind = LedgerErrorKind.DUPLICATE_REGISTRATION


class LedgerUnavailableError(LedgerError):
    """Raised when the ledger endpoint cannot be reached."""

    kind = LedgerErrorKind.UNAVAILABLE


class TransactionRevertedError(LedgerError):
    """Raised when the ledger rejects a transaction for another reason."""

    kind = LedgerErrorKind.REVERTED


class NoSignerConfiguredError(LedgerError):
    """Raised when a write is attempted without write credentials."""

    kind = LedgerErrorKind.NO_SIGNER


class ConfirmationTimeoutError(TimeoutError):
    """Raised when a submitted transaction is not confirmed in time.

    The transaction itself stays submitted; only local waiting stops.
    """

    def __init__(self, handle: TransactionHandle, timeout: float) -> None:
        super().__init__(
            f"Transaction {handle.tx_hash} not confirmed within {timeout:g}s"
        )
        self.handle = handle
        self.timeout = timeout
