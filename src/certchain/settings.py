"""Environment-backed settings primitives for :mod:`certchain`."""

from __future__ import annotations

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["CONTRACT_PLACEHOLDER", "CertchainSettings", "get_settings"]

CONTRACT_PLACEHOLDER = "0x..."


class CertchainSettings(BaseSettings):
    """Expose environment-derived configuration knobs for certchain.

    All environment access flows through this class. Every attribute maps to
    a documented environment variable and falls back to an inline default
    when the variable is absent or malformed.

    Attributes:
        rpc_url: JSON-RPC endpoint of the ledger node. ``PROVIDER_URL`` is
            accepted as a legacy alias.
        contract_address: Address of the certificate registry contract.
        chain_id: Network identifier reported by health checks and used when
            signing transactions.
        signer_private_key: Hex private key granting write access. When unset
            registrations fall back to manual instructions.
        node_env: Deployment environment label.
        confirmation_timeout: Seconds to wait for a submitted registration to
            be mined before reporting it as pending.
        receipt_poll_interval: Seconds between receipt lookups.
        simulated_latency: Artificial delay applied by the simulated ledger.
        log_level: Name of the logging level used by the CLI.
    """

    rpc_url: str | None = Field(
        default=None, validation_alias=AliasChoices("RPC_URL", "PROVIDER_URL")
    )
    contract_address: str | None = Field(default=None, alias="CONTRACT_ADDRESS")
    chain_id: int = Field(default=80002, alias="CHAIN_ID")
    signer_private_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SIGNER_PRIVATE_KEY", "PRIVATE_KEY"),
        repr=False,
    )
    node_env: str = Field(default="development", alias="NODE_ENV")
    confirmation_timeout: float = Field(default=60.0, alias="CONFIRMATION_TIMEOUT")
    receipt_poll_interval: float = Field(default=2.0, alias="RECEIPT_POLL_INTERVAL")
    simulated_latency: float = Field(default=1.5, alias="SIMULATED_LATENCY")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=None, extra="ignore", populate_by_name=True
    )

    @field_validator("rpc_url", "signer_private_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> str | None:
        """Treat empty or whitespace-only strings as unset."""

        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("contract_address", mode="before")
    @classmethod
    def _normalise_contract_address(cls, value: object) -> str | None:
        """Strip whitespace and discard the undeployed placeholder address.

        Args:
            value: Raw environment value.

        Returns:
            The trimmed address, or ``None`` when empty or a placeholder.
        """

        if value is None:
            return None
        text = str(value).strip()
        if not text or text == CONTRACT_PLACEHOLDER:
            return None
        return text

    @field_validator("chain_id", mode="before")
    @classmethod
    def _parse_chain_id(cls, value: object) -> int:
        """Parse the chain identifier, defaulting to Polygon Amoy."""

        if isinstance(value, int) and value > 0:
            return value
        if isinstance(value, str):
            try:
                parsed = int(value.strip())
            except ValueError:
                return 80002
            return parsed if parsed > 0 else 80002
        return 80002

    @field_validator(
        "confirmation_timeout",
        "receipt_poll_interval",
        "simulated_latency",
        mode="before",
    )
    @classmethod
    def _parse_seconds(cls, value: object, info: ValidationInfo) -> float:
        """Parse non-negative durations while tolerating malformed input.

        Args:
            value: Raw environment value.
            info: Validation context naming the field being parsed.

        Returns:
            Parsed duration, or the field default when conversion fails.
        """

        default = cls.model_fields[info.field_name].default
        if isinstance(value, (int, float)) and value >= 0:
            return float(value)
        if isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return float(default)
            return parsed if parsed >= 0 else float(default)
        return float(default)

    @property
    def ledger_configured(self) -> bool:
        """Return ``True`` when both an RPC endpoint and a contract are set."""

        return bool(self.rpc_url and self.contract_address)

    @property
    def signer_configured(self) -> bool:
        """Return ``True`` when a write credential is available."""

        return self.signer_private_key is not None


def get_settings() -> CertchainSettings:
    """Return a :class:`CertchainSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return CertchainSettings()

