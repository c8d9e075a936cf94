"""Configuration health reporting."""

from __future__ import annotations

from dataclasses import dataclass

from certchain.ledger.connection import LedgerConnection
from certchain.schemas import HealthResponse, ServiceResponse

__all__ = ["HealthReporter"]


@dataclass(frozen=True, slots=True)
class HealthReporter:
    """Report startup configuration without touching the network."""

    connection: LedgerConnection
    env: str = "development"

    def health(self) -> ServiceResponse:
        return ServiceResponse(
            200,
            HealthResponse(
                ledger_configured=self.connection.ledger_configured,
                signer_configured=self.connection.signer_configured,
                env=self.env,
                network_id=self.connection.chain_id,
            ),
        )
