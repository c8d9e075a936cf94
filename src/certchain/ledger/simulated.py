"""Stand-in ledger used when no registry endpoint is configured."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import ClassVar, Final

from certchain.hashing import CertificateDigest
from certchain.ledger.base import LedgerClient, LedgerRecord, Receipt, TransactionHandle
from certchain.ledger.errors import NoSignerConfiguredError

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_REGISTRAR: Final[str] = "0x" + "0" * 40
PLACEHOLDER_METADATA: Final[str] = "placeholder (simulated ledger, no real registration)"


class SimulatedLedgerClient(LedgerClient):
    """Return coin-flip answers so callers see the full response shape.

    Results are not derived from any ledger state and must never be trusted.
    Registration is unavailable; callers receive manual instructions instead.
    """

    simulated: ClassVar[bool] = True

    def __init__(
        self,
        *,
        latency_seconds: float = 1.5,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(poll_interval=0.0)
        self._latency = latency_seconds
        self._rng = rng or random.Random()

    @property
    def has_signer(self) -> bool:
        return False

    async def exists(self, digest: CertificateDigest) -> bool:
        LOGGER.warning(
            "Simulating registry lookup because no ledger is configured",
            extra={"digest": digest.hex()},
        )
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        return self._rng.random() > 0.5

    async def get_record(self, digest: CertificateDigest) -> LedgerRecord | None:
        _ = digest
        return LedgerRecord(
            registrar=PLACEHOLDER_REGISTRAR,
            timestamp=int(time.time()),
            metadata=PLACEHOLDER_METADATA,
            exists=True,
        )

    async def register(
        self, digest: CertificateDigest, metadata: str
    ) -> TransactionHandle:
        _ = metadata
        raise NoSignerConfiguredError(
            f"Simulated ledger cannot register {digest.hex()}"
        )

    async def _fetch_receipt(self, handle: TransactionHandle) -> Receipt | None:
        raise NoSignerConfiguredError(
            f"Simulated ledger has no transaction {handle.tx_hash}"
        )
