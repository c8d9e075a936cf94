"""Certificate registry client backed by an EVM JSON-RPC endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

import aiohttp
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import (
    ContractCustomError,
    ContractLogicError,
    TransactionNotFound,
    Web3Exception,
)

from certchain.hashing import CertificateDigest
from certchain.ledger.base import LedgerClient, LedgerRecord, Receipt, TransactionHandle
from certchain.ledger.connection import LedgerConnection
from certchain.ledger.errors import (
    DuplicateRegistrationError,
    LedgerError,
    LedgerUnavailableError,
    NoSignerConfiguredError,
    TransactionRevertedError,
)

__all__ = [
    "CERTIFICATE_REGISTRY_ABI",
    "REGISTER_FUNCTION",
    "Web3LedgerClient",
    "classify_ledger_error",
]

LOGGER = logging.getLogger(__name__)

REGISTER_FUNCTION: Final[str] = "registerCertificate"

CERTIFICATE_REGISTRY_ABI: Final[list[dict[str, Any]]] = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": "_certificateHash", "type": "bytes32"}
        ],
        "name": "verify",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "bytes32", "name": "_certificateHash", "type": "bytes32"},
            {"internalType": "string", "name": "_metadata", "type": "string"},
        ],
        "name": REGISTER_FUNCTION,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "bytes32", "name": "_certificateHash", "type": "bytes32"}
        ],
        "name": "getCertificateInfo",
        "outputs": [
            {"internalType": "address", "name": "registrar", "type": "address"},
            {"internalType": "uint256", "name": "timestamp", "type": "uint256"},
            {"internalType": "string", "name": "metadata", "type": "string"},
            {"internalType": "bool", "name": "exists", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

# Custom errors a registry may declare for duplicates; matched by selector.
DUPLICATE_ERROR_SIGNATURES: Final[tuple[str, ...]] = (
    "CertificateAlreadyRegistered(bytes32)",
    "AlreadyRegistered()",
    "AlreadyRegistered(bytes32)",
)
# Revert strings from registries that only use require(); lowercase.
DUPLICATE_REVERT_MARKERS: Final[tuple[str, ...]] = (
    "already registered",
    "already exists",
)

_DUPLICATE_SELECTORS: Final[frozenset[str]] = frozenset(
    Web3.to_hex(Web3.keccak(text=signature)[:4])
    for signature in DUPLICATE_ERROR_SIGNATURES
)

_TRANSPORT_ERRORS: Final[tuple[type[BaseException], ...]] = (
    aiohttp.ClientError,
    OSError,
    TimeoutError,
)


def _mentions_duplicate(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in DUPLICATE_REVERT_MARKERS)


def classify_ledger_error(exc: BaseException) -> LedgerError:
    """Map a web3 or transport exception onto a structured ledger error.

    Custom-error selectors are checked before revert text; the text match is
    kept for registries that only emit ``require`` strings.

    Args:
        exc: Exception raised while talking to the node.

    Returns:
        The :class:`LedgerError` subclass matching the failure kind.
    """

    if isinstance(exc, LedgerError):
        return exc

    if isinstance(exc, ContractCustomError):
        data = getattr(exc, "data", None)
        selector = data[:10].lower() if isinstance(data, str) else ""
        if selector in _DUPLICATE_SELECTORS:
            return DuplicateRegistrationError(
                "Certificate already registered on the ledger", reason=selector
            )
        return TransactionRevertedError(
            "Ledger rejected the transaction", reason=str(data)
        )

    if isinstance(exc, ContractLogicError):
        message = getattr(exc, "message", None) or str(exc)
        if _mentions_duplicate(message):
            return DuplicateRegistrationError(
                "Certificate already registered on the ledger", reason=message
            )
        return TransactionRevertedError(
            "Ledger rejected the transaction", reason=message
        )

    if isinstance(exc, _TRANSPORT_ERRORS):
        return LedgerUnavailableError(
            f"Ledger endpoint unreachable: {exc}", reason=type(exc).__name__
        )

    message = str(exc)
    if _mentions_duplicate(message):
        return DuplicateRegistrationError(
            "Certificate already registered on the ledger", reason=message
        )
    return LedgerError(f"Ledger call failed: {message}", reason=type(exc).__name__)


_CLASSIFIED_ERRORS: Final[tuple[type[BaseException], ...]] = (
    Web3Exception,
    ValueError,
    *_TRANSPORT_ERRORS,
)


class Web3LedgerClient(LedgerClient):
    """Read and write certificate records through a deployed registry."""

    def __init__(
        self,
        connection: LedgerConnection,
        *,
        poll_interval: float = 2.0,
        web3: AsyncWeb3 | None = None,
    ) -> None:
        super().__init__(poll_interval=poll_interval)
        if connection.read_endpoint is None or connection.contract_address is None:
            raise ValueError("Web3LedgerClient requires a configured ledger endpoint")
        self._connection = connection
        self._w3 = web3 or AsyncWeb3(AsyncHTTPProvider(connection.read_endpoint))
        self._contract = self._w3.eth.contract(
            address=connection.contract_address, abi=CERTIFICATE_REGISTRY_ABI
        )
        self._signer: LocalAccount | None = connection.write_signer
        # Serialises nonce allocation; confirmations still overlap.
        self._submit_lock = asyncio.Lock()

    @property
    def has_signer(self) -> bool:
        return self._signer is not None

    async def exists(self, digest: CertificateDigest) -> bool:
        try:
            result = await self._contract.functions.verify(bytes(digest)).call()
        except _CLASSIFIED_ERRORS as exc:
            raise classify_ledger_error(exc) from exc
        LOGGER.debug(
            "Registry lookup completed",
            extra={"digest": digest.hex(), "exists": bool(result)},
        )
        return bool(result)

    async def get_record(self, digest: CertificateDigest) -> LedgerRecord | None:
        try:
            registrar, timestamp, metadata, exists = (
                await self._contract.functions.getCertificateInfo(bytes(digest)).call()
            )
        except ContractLogicError:
            # Registries may revert instead of returning an empty tuple.
            return None
        except _CLASSIFIED_ERRORS as exc:
            raise classify_ledger_error(exc) from exc
        if not exists:
            return None
        return LedgerRecord(
            registrar=str(registrar),
            timestamp=int(timestamp),
            metadata=str(metadata),
            exists=True,
        )

    async def register(
        self, digest: CertificateDigest, metadata: str
    ) -> TransactionHandle:
        if self._signer is None:
            raise NoSignerConfiguredError("No signer configured for ledger writes")

        function = self._contract.functions.registerCertificate(
            bytes(digest), metadata
        )
        address = self._signer.address
        try:
            async with self._submit_lock:
                nonce = await self._w3.eth.get_transaction_count(address, "pending")
                transaction = await function.build_transaction(
                    {
                        "from": address,
                        "nonce": nonce,
                        "chainId": self._connection.chain_id,
                    }
                )
                signed = self._signer.sign_transaction(transaction)
                tx_hash = await self._w3.eth.send_raw_transaction(
                    signed.raw_transaction
                )
        except _CLASSIFIED_ERRORS as exc:
            error = classify_ledger_error(exc)
            LOGGER.warning(
                "Registration submission failed",
                extra={
                    "digest": digest.hex(),
                    "error_kind": error.kind.value,
                    "error_type": type(exc).__name__,
                },
            )
            raise error from exc

        handle = TransactionHandle(tx_hash=Web3.to_hex(tx_hash), digest=digest)
        LOGGER.info(
            "Registration submitted",
            extra={"digest": digest.hex(), "tx_hash": handle.tx_hash, "nonce": nonce},
        )
        return handle

    async def _fetch_receipt(self, handle: TransactionHandle) -> Receipt | None:
        try:
            receipt = await self._w3.eth.get_transaction_receipt(handle.tx_hash)
        except TransactionNotFound:
            return None
        except _CLASSIFIED_ERRORS as exc:
            raise classify_ledger_error(exc) from exc
        return Receipt(
            tx_hash=handle.tx_hash,
            block_number=int(receipt["blockNumber"]),
            succeeded=int(receipt["status"]) == 1,
        )
