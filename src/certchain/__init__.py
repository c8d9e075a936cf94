"""Certchain - certificate registration and verification on a blockchain registry."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CertificateDigest",
    "CertificateService",
    "RegistrationOrchestrator",
    "VerificationOrchestrator",
    "HealthReporter",
    "build_service",
    "digest",
]

if TYPE_CHECKING:
    from .hashing import CertificateDigest, digest
    from .health import HealthReporter
    from .registration import RegistrationOrchestrator
    from .service import CertificateService, build_service
    from .verification import VerificationOrchestrator


def __getattr__(name: str) -> Any:
    """Lazily import modules so the web3 stack loads only when used."""

    module_map = {
        "CertificateDigest": "hashing",
        "digest": "hashing",
        "HealthReporter": "health",
        "RegistrationOrchestrator": "registration",
        "CertificateService": "service",
        "build_service": "service",
        "VerificationOrchestrator": "verification",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
