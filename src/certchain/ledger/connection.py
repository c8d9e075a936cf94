"""Process-wide ledger connection built once from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from certchain.settings import CertchainSettings

__all__ = ["LedgerConnection", "build_connection"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerConnection:
    """Immutable handle describing where and how the ledger is reached.

    Attributes:
        read_endpoint: JSON-RPC URL, or ``None`` to run in simulated mode.
        contract_address: Checksummed registry address, or ``None``.
        chain_id: Network identifier used for signing and health reports.
        write_signer: Local account used to sign registrations, if any.
    """

    read_endpoint: str | None
    contract_address: str | None
    chain_id: int
    write_signer: LocalAccount | None = field(default=None, repr=False)

    @property
    def ledger_configured(self) -> bool:
        return self.read_endpoint is not None and self.contract_address is not None

    @property
    def signer_configured(self) -> bool:
        return self.write_signer is not None


def build_connection(settings: CertchainSettings) -> LedgerConnection:
    """Build the ledger connection from environment settings.

    A missing RPC URL or contract address yields a connection without a read
    endpoint, which selects the simulated ledger. A configured contract
    address is kept either way so registration instructions can name it.
    Malformed addresses and keys raise immediately so a misconfigured process
    fails at startup.

    Args:
        settings: Parsed environment settings.

    Returns:
        Frozen :class:`LedgerConnection`.

    Raises:
        ValueError: The contract address or signer key is malformed.
    """

    if settings.contract_address is None:
        LOGGER.warning(
            "CONTRACT_ADDRESS missing; verification will be simulated",
            extra={"chain_id": settings.chain_id},
        )
    if settings.rpc_url is None:
        LOGGER.warning(
            "RPC_URL missing; verification will be simulated",
            extra={"chain_id": settings.chain_id},
        )

    contract_address: str | None = None
    if settings.contract_address is not None:
        contract_address = Web3.to_checksum_address(str(settings.contract_address))
    read_endpoint = settings.rpc_url if settings.ledger_configured else None

    signer: LocalAccount | None = None
    if settings.signer_private_key is not None:
        try:
            signer = Account.from_key(settings.signer_private_key)
        except Exception as exc:
            # eth-keys raises its own ValidationError for malformed keys.
            raise ValueError("SIGNER_PRIVATE_KEY is not a valid private key") from exc
        LOGGER.info("Ledger signer loaded", extra={"signer": signer.address})

    return LedgerConnection(
        read_endpoint=read_endpoint,
        contract_address=contract_address,
        chain_id=settings.chain_id,
        write_signer=signer,
    )
