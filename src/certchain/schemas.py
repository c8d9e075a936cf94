"""Pydantic models describing the response payloads handed to transports."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ManualInstructions",
    "RegisterResponse",
    "ServiceResponse",
    "VerifyResponse",
    "missing_file_response",
]

NO_FILE_MESSAGE = "No certificate file uploaded."


class _Payload(BaseModel):
    """Immutable payload rendered with camelCase keys."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class VerifyResponse(_Payload):
    """Result of checking a certificate against the registry."""

    success: bool
    message: str
    hash: str = Field(..., description="Lowercase hex digest of the uploaded file.")
    registration_info: str | None = Field(
        default=None,
        description="Human-readable registration date, when enrichment succeeded.",
    )


class ManualInstructions(_Payload):
    """Steps a credentialed signer follows to register out of band."""

    step1: str
    step2: str
    step3: str


class RegisterResponse(_Payload):
    """Result of a registration attempt.

    Which optional fields are present depends on the terminal outcome:
    confirmed registrations carry the transaction and block, fallbacks carry
    the contract address and instructions, pending ones carry the
    transaction and ``pending=True``.
    """

    success: bool
    message: str
    hash: str
    metadata: str | None = None
    transaction_hash: str | None = None
    block_number: int | None = Field(default=None, ge=0)
    contract_address: str | None = None
    instructions: ManualInstructions | None = None
    pending: bool | None = None


class ErrorResponse(_Payload):
    """Failure that prevented an operation from producing a result."""

    success: Literal[False] = False
    message: str
    error: str | None = None


class HealthResponse(_Payload):
    """Local configuration state; never derived from network calls."""

    status: Literal["ok"] = "ok"
    ledger_configured: bool
    signer_configured: bool
    env: str
    network_id: int


@dataclass(frozen=True, slots=True)
class ServiceResponse:
    """Status code paired with a payload, ready for any transport."""

    status_code: int
    body: _Payload

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-ready payload with unset optional fields removed."""

        return self.body.model_dump(mode="json", by_alias=True, exclude_none=True)


def missing_file_response() -> ServiceResponse:
    """Return the input-error response used when no file was uploaded."""

    return ServiceResponse(400, ErrorResponse(message=NO_FILE_MESSAGE))
