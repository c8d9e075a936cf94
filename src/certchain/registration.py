"""Registration workflow: pre-check, submit or fall back, confirm."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from certchain.hashing import CertificateDigest, digest
from certchain.ledger.base import LedgerClient
from certchain.ledger.connection import LedgerConnection
from certchain.ledger.errors import (
    ConfirmationTimeoutError,
    DuplicateRegistrationError,
    LedgerError,
    NoSignerConfiguredError,
    TransactionRevertedError,
)
from certchain.ledger.web3_client import REGISTER_FUNCTION
from certchain.schemas import (
    ErrorResponse,
    ManualInstructions,
    RegisterResponse,
    ServiceResponse,
    missing_file_response,
)
from certchain.settings import CONTRACT_PLACEHOLDER

__all__ = [
    "RegistrationAttempt",
    "RegistrationOrchestrator",
    "RegistrationState",
    "TERMINAL_STATES",
]

LOGGER = logging.getLogger(__name__)


class RegistrationState(StrEnum):
    """States a single registration request moves through."""

    START = "start"
    CHECKING = "checking"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    ALREADY_REGISTERED = "already_registered"
    NO_SIGNER_FALLBACK = "no_signer_fallback"
    FAILED_FALLBACK = "failed_fallback"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset(
    {
        RegistrationState.ALREADY_REGISTERED,
        RegistrationState.NO_SIGNER_FALLBACK,
        RegistrationState.FAILED_FALLBACK,
        RegistrationState.CONFIRMED,
        RegistrationState.TIMED_OUT,
    }
)


@dataclass(slots=True)
class RegistrationAttempt:
    """Per-request record of a registration; never persisted."""

    digest: CertificateDigest
    metadata: str
    state: RegistrationState = RegistrationState.START
    submitted_tx_ref: str | None = None
    confirmed_block: int | None = None
    failure: LedgerError | None = field(default=None, repr=False)

    @property
    def outcome(self) -> RegistrationState | None:
        """Return the terminal state, or ``None`` while in progress."""

        return self.state if self.state in TERMINAL_STATES else None

    def advance(self, state: RegistrationState) -> RegistrationAttempt:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Registration already finished as {self.state}")
        LOGGER.debug(
            "Registration state change",
            extra={
                "digest": self.digest.hex(),
                "from_state": self.state.value,
                "to_state": state.value,
            },
        )
        self.state = state
        return self


class RegistrationOrchestrator:
    """Drive one registration per call to a terminal outcome.

    Every ledger-facing failure becomes part of the returned response. A
    submitted transaction is never retried or cancelled; if confirmation
    does not arrive in time the caller receives the transaction reference.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        connection: LedgerConnection,
        *,
        confirmation_timeout: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._ledger = ledger
        self._connection = connection
        self._confirmation_timeout = confirmation_timeout
        self._clock = clock

    async def register(
        self, data: bytes | None, metadata: str | None = None
    ) -> ServiceResponse:
        """Register ``data`` and render the outcome for the transport.

        Args:
            data: Uploaded file bytes, or ``None`` when no file was sent.
            metadata: Optional free-text metadata stored with the record.

        Returns:
            Response with status 400 for missing input, 500 when the
            pre-check cannot reach the ledger, and 200 otherwise.
        """

        if data is None:
            return missing_file_response()
        try:
            attempt = await self.attempt(data, metadata)
        except LedgerError as exc:
            LOGGER.error(
                "Registration pre-check failed",
                extra={"error_kind": exc.kind.value},
                exc_info=exc,
            )
            return ServiceResponse(
                500,
                ErrorResponse(
                    message="An error occurred during registration.", error=str(exc)
                ),
            )
        return ServiceResponse(200, self.render(attempt))

    async def attempt(
        self, data: bytes, metadata: str | None = None
    ) -> RegistrationAttempt:
        """Run the registration state machine to a terminal state.

        Raises:
            LedgerError: The existence pre-check failed. No write occurred.
        """

        attempt = RegistrationAttempt(
            digest=digest(data), metadata=metadata or self.default_metadata()
        )
        attempt.advance(RegistrationState.CHECKING)
        if await self._ledger.exists(attempt.digest):
            return self._finish(attempt, RegistrationState.ALREADY_REGISTERED)
        if not self._ledger.has_signer:
            return self._finish(attempt, RegistrationState.NO_SIGNER_FALLBACK)

        attempt.advance(RegistrationState.SUBMITTING)
        try:
            handle = await self._ledger.register(attempt.digest, attempt.metadata)
        except DuplicateRegistrationError:
            # A concurrent registrant won between our check and submit.
            return self._finish(attempt, RegistrationState.ALREADY_REGISTERED)
        except NoSignerConfiguredError:
            return self._finish(attempt, RegistrationState.NO_SIGNER_FALLBACK)
        except LedgerError as exc:
            attempt.failure = exc
            return self._finish(attempt, RegistrationState.FAILED_FALLBACK)

        attempt.submitted_tx_ref = handle.tx_hash
        attempt.advance(RegistrationState.CONFIRMING)
        try:
            receipt = await self._ledger.await_confirmation(
                handle, self._confirmation_timeout
            )
        except ConfirmationTimeoutError:
            return self._finish(attempt, RegistrationState.TIMED_OUT)
        except TransactionRevertedError as exc:
            attempt.failure = exc
            return await self._resolve_revert(attempt)
        except LedgerError as exc:
            # Submitted but unobservable; report it as pending.
            attempt.failure = exc
            return self._finish(attempt, RegistrationState.TIMED_OUT)

        attempt.confirmed_block = receipt.block_number
        return self._finish(attempt, RegistrationState.CONFIRMED)

    def default_metadata(self) -> str:
        """Return provenance text stamped with the local time.

        The ledger's own timestamp remains the authoritative registration time.
        """

        return f"Registered via certchain on {self._clock():%Y-%m-%d %H:%M:%S}"

    def render(self, attempt: RegistrationAttempt) -> RegisterResponse:
        """Render a finished attempt as a transport payload."""

        outcome = attempt.outcome
        hash_hex = attempt.digest.hex()
        if outcome is None:
            raise ValueError("Cannot render an unfinished registration")

        if outcome is RegistrationState.ALREADY_REGISTERED:
            return RegisterResponse(
                success=False,
                message=self._label(
                    "Certificate is already registered on the blockchain."
                ),
                hash=hash_hex,
            )
        if outcome is RegistrationState.CONFIRMED:
            return RegisterResponse(
                success=True,
                message="Certificate successfully registered on the blockchain.",
                hash=hash_hex,
                transaction_hash=attempt.submitted_tx_ref,
                block_number=attempt.confirmed_block,
                metadata=attempt.metadata,
            )
        if outcome is RegistrationState.TIMED_OUT:
            return RegisterResponse(
                success=True,
                message=(
                    "Registration submitted but not yet confirmed. "
                    "Check the transaction later; it will not be resubmitted."
                ),
                hash=hash_hex,
                transaction_hash=attempt.submitted_tx_ref,
                metadata=attempt.metadata,
                pending=True,
            )
        if outcome is RegistrationState.FAILED_FALLBACK:
            message = (
                "Automatic registration failed, falling back to manual "
                "registration. Use the instructions below."
            )
        else:
            message = self._label(
                "Certificate hash computed. No signer is configured; "
                "register it manually using the instructions below."
            )
        return RegisterResponse(
            success=True,
            message=message,
            hash=hash_hex,
            contract_address=self._contract_address,
            metadata=attempt.metadata,
            instructions=self.manual_instructions(attempt),
        )

    def manual_instructions(self, attempt: RegistrationAttempt) -> ManualInstructions:
        """Return the steps for completing a registration out of band."""

        return ManualInstructions(
            step1=(
                f"Connect a wallet with write access to the registry contract "
                f"at {self._contract_address} on network {self._connection.chain_id}."
            ),
            step2=(
                f"Call {REGISTER_FUNCTION}(bytes32 _certificateHash, "
                f"string _metadata)."
            ),
            step3=(
                f'Pass _certificateHash = {attempt.digest.hex()} and '
                f'_metadata = "{attempt.metadata}".'
            ),
        )

    @property
    def _contract_address(self) -> str:
        return self._connection.contract_address or CONTRACT_PLACEHOLDER

    def _label(self, message: str) -> str:
        if self._ledger.simulated:
            return f"{message} (Simulated)"
        return message

    async def _resolve_revert(self, attempt: RegistrationAttempt) -> RegistrationAttempt:
        """Decide whether a reverted submission lost a registration race."""

        try:
            registered = await self._ledger.exists(attempt.digest)
        except LedgerError as exc:
            LOGGER.warning(
                "Could not re-check digest after revert",
                extra={"digest": attempt.digest.hex(), "error_kind": exc.kind.value},
            )
            registered = False
        if registered:
            return self._finish(attempt, RegistrationState.ALREADY_REGISTERED)
        return self._finish(attempt, RegistrationState.FAILED_FALLBACK)

    def _finish(
        self, attempt: RegistrationAttempt, outcome: RegistrationState
    ) -> RegistrationAttempt:
        attempt.advance(outcome)
        log = LOGGER.warning if attempt.failure is not None else LOGGER.info
        extra: dict[str, object] = {
            "digest": attempt.digest.hex(),
            "outcome": outcome.value,
            "tx_hash": attempt.submitted_tx_ref,
        }
        if attempt.failure is not None:
            extra["error_kind"] = attempt.failure.kind.value
            extra["error_reason"] = attempt.failure.reason
        log("Registration finished", extra=extra)
        return attempt
