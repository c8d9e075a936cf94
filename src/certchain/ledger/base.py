"""Base types and confirmation logic shared by ledger clients."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from certchain.hashing import CertificateDigest
from certchain.ledger.errors import (
    ConfirmationTimeoutError,
    LedgerUnavailableError,
    TransactionRevertedError,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """Registration entry as stored by the ledger. Read-only to clients."""

    registrar: str
    timestamp: int
    metadata: str
    exists: bool

    @property
    def registered_at(self) -> datetime:
        """Return the ledger timestamp as a local datetime."""

        return datetime.fromtimestamp(self.timestamp)


@dataclass(frozen=True, slots=True)
class TransactionHandle:
    """Reference to a submitted registration transaction."""

    tx_hash: str
    digest: CertificateDigest


@dataclass(frozen=True, slots=True)
class Receipt:
    """Outcome of a mined transaction."""

    tx_hash: str
    block_number: int
    succeeded: bool


class LedgerClient(ABC):
    """Abstract read/write access to the certificate registry.

    Reads are idempotent and safe to retry. ``register`` is not: a second
    submission for an existing digest is rejected by the ledger and surfaces
    as :class:`~certchain.ledger.errors.DuplicateRegistrationError`.
    """

    simulated: ClassVar[bool] = False

    def __init__(self, *, poll_interval: float = 2.0) -> None:
        self._poll_interval = poll_interval

    @property
    @abstractmethod
    def has_signer(self) -> bool:
        """Return ``True`` when the client may submit writes."""

    @abstractmethod
    async def exists(self, digest: CertificateDigest) -> bool:
        """Return whether a record exists for ``digest``."""

    @abstractmethod
    async def get_record(self, digest: CertificateDigest) -> LedgerRecord | None:
        """Return the stored record for ``digest`` or ``None`` when absent."""

    @abstractmethod
    async def register(
        self, digest: CertificateDigest, metadata: str
    ) -> TransactionHandle:
        """Submit a registration and return its transaction handle."""

    @abstractmethod
    async def _fetch_receipt(self, handle: TransactionHandle) -> Receipt | None:
        """Return the receipt for ``handle`` or ``None`` while still pending."""

    async def await_confirmation(
        self, handle: TransactionHandle, timeout: float
    ) -> Receipt:
        """Wait for ``handle`` to be mined, bounded by ``timeout`` seconds.

        Expiry stops local waiting only; the transaction remains submitted.
        Transient endpoint failures while polling are retried until the
        deadline.

        Args:
            handle: Transaction returned by :meth:`register`.
            timeout: Deadline in seconds.

        Returns:
            The successful receipt.

        Raises:
            ConfirmationTimeoutError: The deadline passed without a receipt.
            TransactionRevertedError: The transaction was mined but failed.
        """

        try:
            async with asyncio.timeout(timeout):
                receipt = await self._poll_receipt(handle)
        except TimeoutError as exc:
            raise ConfirmationTimeoutError(handle, timeout) from exc

        if not receipt.succeeded:
            raise TransactionRevertedError(
                f"Transaction {handle.tx_hash} reverted in block {receipt.block_number}",
                reason="receipt status 0",
            )
        return receipt

    async def _poll_receipt(self, handle: TransactionHandle) -> Receipt:
        while True:
            try:
                receipt = await self._fetch_receipt(handle)
            except LedgerUnavailableError as exc:
                LOGGER.warning(
                    "Receipt lookup failed; retrying",
                    extra={"tx_hash": handle.tx_hash, "error_type": type(exc).__name__},
                )
                receipt = None
            if receipt is not None:
                return receipt
            await asyncio.sleep(self._poll_interval)
