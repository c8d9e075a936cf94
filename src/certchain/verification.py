"""Verification workflow: hash, look up, optionally enrich."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from certchain.hashing import CertificateDigest, digest
from certchain.ledger.base import LedgerClient, LedgerRecord
from certchain.ledger.errors import LedgerError
from certchain.schemas import (
    ErrorResponse,
    ServiceResponse,
    VerifyResponse,
    missing_file_response,
)

__all__ = ["VerificationOrchestrator", "VerificationResult", "format_registration"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of a single verification; never persisted."""

    digest: CertificateDigest
    valid: bool
    registration_info: str | None = None
    simulated: bool = False

    @property
    def message(self) -> str:
        if self.simulated:
            if self.valid:
                return "Certificate is valid (Simulated)"
            return "Certificate is invalid (Simulated)"
        if self.valid:
            return "Certificate has been successfully verified on the blockchain."
        return "Certificate is not valid or not found on the blockchain."


def format_registration(record: LedgerRecord) -> str:
    """Return a human-readable summary of a ledger record."""

    summary = (
        f"Registered on {record.registered_at:%Y-%m-%d %H:%M:%S} "
        f"by {record.registrar}"
    )
    if record.metadata:
        summary += f" ({record.metadata})"
    return summary


class VerificationOrchestrator:
    """Check certificates against the ledger without mutating it.

    Calls are independent of each other and safe to retry.
    """

    def __init__(self, ledger: LedgerClient) -> None:
        self._ledger = ledger

    async def verify(self, data: bytes | None) -> ServiceResponse:
        """Verify ``data`` and render the result for the transport.

        Args:
            data: Uploaded file bytes, or ``None`` when no file was sent.

        Returns:
            Response with status 400 for missing input, 500 when the ledger
            cannot be queried, and 200 otherwise (including not-found).
        """

        if data is None:
            return missing_file_response()
        try:
            result = await self.check(data)
        except LedgerError as exc:
            LOGGER.error(
                "Verification failed",
                extra={"error_kind": exc.kind.value},
                exc_info=exc,
            )
            return ServiceResponse(
                500,
                ErrorResponse(
                    message="An error occurred during verification.", error=str(exc)
                ),
            )
        return ServiceResponse(
            200,
            VerifyResponse(
                success=result.valid,
                message=result.message,
                hash=result.digest.hex(),
                registration_info=result.registration_info,
            ),
        )

    async def check(self, data: bytes) -> VerificationResult:
        """Return whether ``data`` is registered, with best-effort details.

        Raises:
            LedgerError: The existence lookup failed.
        """

        certificate = digest(data)
        LOGGER.info("Verifying certificate", extra={"digest": certificate.hex()})
        valid = await self._ledger.exists(certificate)
        info = await self._describe(certificate) if valid else None
        return VerificationResult(
            digest=certificate,
            valid=valid,
            registration_info=info,
            simulated=self._ledger.simulated,
        )

    async def _describe(self, certificate: CertificateDigest) -> str | None:
        try:
            record = await self._ledger.get_record(certificate)
            if record is None:
                return None
            return format_registration(record)
        except Exception as exc:
            # Enrichment, including date formatting, never affects validity.
            LOGGER.warning(
                "Registration lookup failed",
                extra={
                    "digest": certificate.hex(),
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
            return None
