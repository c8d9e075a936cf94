"""Startup wiring of the certificate service."""

from __future__ import annotations

from dataclasses import dataclass

from certchain.health import HealthReporter
from certchain.ledger import LedgerClient, LedgerConnection, build_connection, create_ledger_client
from certchain.registration import RegistrationOrchestrator
from certchain.schemas import ServiceResponse
from certchain.settings import CertchainSettings, get_settings
from certchain.verification import VerificationOrchestrator

__all__ = ["CertificateService", "build_service"]


@dataclass(frozen=True, slots=True)
class CertificateService:
    """Entry points a transport calls with decoded upload bytes.

    Every component shares the single immutable connection chosen at startup.
    """

    connection: LedgerConnection
    ledger: LedgerClient
    verifier: VerificationOrchestrator
    registrar: RegistrationOrchestrator
    reporter: HealthReporter

    async def verify(self, data: bytes | None) -> ServiceResponse:
        return await self.verifier.verify(data)

    async def register(
        self, data: bytes | None, metadata: str | None = None
    ) -> ServiceResponse:
        return await self.registrar.register(data, metadata)

    def health(self) -> ServiceResponse:
        return self.reporter.health()


def build_service(
    settings: CertchainSettings | None = None,
    *,
    ledger: LedgerClient | None = None,
) -> CertificateService:
    """Build the service once from settings.

    Args:
        settings: Optional pre-parsed settings; read from the environment
            when omitted.
        ledger: Optional ledger client overriding the one selected from the
            connection, for tests and embedding.

    Returns:
        Fully wired :class:`CertificateService`.
    """

    settings_obj = settings or get_settings()
    connection = build_connection(settings_obj)
    client = ledger or create_ledger_client(
        connection,
        poll_interval=settings_obj.receipt_poll_interval,
        simulated_latency=settings_obj.simulated_latency,
    )
    return CertificateService(
        connection=connection,
        ledger=client,
        verifier=VerificationOrchestrator(client),
        registrar=RegistrationOrchestrator(
            client,
            connection,
            confirmation_timeout=settings_obj.confirmation_timeout,
        ),
        reporter=HealthReporter(connection, env=settings_obj.node_env),
    )
