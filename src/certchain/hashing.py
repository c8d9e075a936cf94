"""Content addressing for uploaded certificate files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from web3 import Web3

__all__ = ["DIGEST_SIZE", "CertificateDigest", "digest"]

DIGEST_SIZE: Final[int] = 32


@dataclass(frozen=True, slots=True)
class CertificateDigest:
    """Keccak-256 digest identifying a certificate by its exact bytes."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != DIGEST_SIZE:
            raise ValueError(
                f"Certificate digest must be {DIGEST_SIZE} bytes, got {len(self.value)}"
            )

    def __bytes__(self) -> bytes:
        return self.value

    def hex(self) -> str:
        """Return the ``0x``-prefixed lowercase hexadecimal encoding."""

        return "0x" + self.value.hex()

    def __str__(self) -> str:
        return self.hex()

    @classmethod
    def from_hex(cls, text: str) -> CertificateDigest:
        """Parse a digest from its hexadecimal encoding (``0x`` optional)."""

        body = text[2:] if text[:2].lower() == "0x" else text
        return cls(bytes.fromhex(body))


def digest(data: bytes) -> CertificateDigest:
    """Return the content digest for ``data``.

    The same byte sequence always produces the same digest; no salt or
    process-local state is involved, and the empty sequence is valid input.
    """

    return CertificateDigest(bytes(Web3.keccak(primitive=bytes(data))))
