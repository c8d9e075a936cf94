"""Tests for the verification workflow."""

from __future__ import annotations

import asyncio
import random

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from certchain.hashing import digest
from certchain.ledger.base import LedgerRecord
from certchain.ledger import SimulatedLedgerClient
from certchain.ledger.errors import LedgerUnavailableError
from certchain.verification import VerificationOrchestrator
from ledger_doubles import REGISTRAR, InMemoryLedgerClient


@pytest.mark.asyncio
async def test_empty_file_against_empty_ledger_is_not_found() -> None:
    response = await VerificationOrchestrator(InMemoryLedgerClient()).verify(b"")

    assert response.status_code == 200
    assert response.to_dict() == {
        "success": False,
        "message": "Certificate is not valid or not found on the blockchain.",
        "hash": digest(b"").hex(),
    }


@pytest.mark.asyncio
async def test_registered_file_is_valid_with_registration_info() -> None:
    ledger = InMemoryLedgerClient()
    ledger.seed(digest(b"abc"), metadata="Diploma")

    response = await VerificationOrchestrator(ledger).verify(b"abc")

    body = response.to_dict()
    assert body["success"] is True
    assert body["message"] == (
        "Certificate has been successfully verified on the blockchain."
    )
    assert body["registrationInfo"].startswith("Registered on ")
    assert REGISTRAR in body["registrationInfo"]
    assert "(Diploma)" in body["registrationInfo"]


@pytest.mark.asyncio
async def test_enrichment_failure_does_not_change_validity() -> None:
    ledger = InMemoryLedgerClient()
    ledger.seed(digest(b"abc"))
    ledger.record_error = RuntimeError("decoding failed")

    response = await VerificationOrchestrator(ledger).verify(b"abc")

    body = response.to_dict()
    assert response.status_code == 200
    assert body["success"] is True
    assert "registrationInfo" not in body


@pytest.mark.asyncio
async def test_unrepresentable_registration_date_is_dropped() -> None:
    ledger = InMemoryLedgerClient()
    ledger.records[digest(b"abc")] = LedgerRecord(
        registrar=REGISTRAR, timestamp=2**64, metadata="Diploma", exists=True
    )

    response = await VerificationOrchestrator(ledger).verify(b"abc")

    body = response.to_dict()
    assert response.status_code == 200
    assert body["success"] is True
    assert "registrationInfo" not in body


@pytest.mark.asyncio
async def test_lookup_failure_is_server_error() -> None:
    ledger = InMemoryLedgerClient()
    ledger.exists_error = LedgerUnavailableError("node down")

    response = await VerificationOrchestrator(ledger).verify(b"abc")

    body = response.to_dict()
    assert response.status_code == 500
    assert body["success"] is False
    assert body["message"] == "An error occurred during verification."
    assert "node down" in body["error"]


@pytest.mark.asyncio
async def test_missing_file_is_rejected() -> None:
    ledger = InMemoryLedgerClient()

    response = await VerificationOrchestrator(ledger).verify(None)

    assert response.status_code == 400
    assert ledger.exists_calls == 0


@pytest.mark.asyncio
async def test_repeated_and_concurrent_verification_is_stable() -> None:
    ledger = InMemoryLedgerClient()
    ledger.seed(digest(b"abc"))
    verifier = VerificationOrchestrator(ledger)

    results = await asyncio.gather(
        *(verifier.check(data) for data in [b"abc", b"xyz", b"abc", b"xyz"])
    )

    assert [result.valid for result in results] == [True, False, True, False]
    assert results[0].digest == results[2].digest
    assert ledger.records.keys() == {digest(b"abc")}


@pytest.mark.asyncio
async def test_simulated_verification_is_labelled() -> None:
    ledger = SimulatedLedgerClient(latency_seconds=0, rng=random.Random(3))
    verifier = VerificationOrchestrator(ledger)

    seen = set()
    for _ in range(20):
        body = (await verifier.verify(b"abc")).to_dict()
        seen.add(body["success"])
        assert body["hash"] == digest(b"abc").hex()
        assert body["message"] in {
            "Certificate is valid (Simulated)",
            "Certificate is invalid (Simulated)",
        }
        if body["success"]:
            assert "placeholder" in body["registrationInfo"]
    assert seen == {True, False}


@settings(
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(st.binary(max_size=512))
def test_simulated_verification_is_always_well_formed(data: bytes) -> None:
    verifier = VerificationOrchestrator(SimulatedLedgerClient(latency_seconds=0))

    response = asyncio.run(verifier.verify(data))

    assert response.status_code == 200
    assert set(response.to_dict()) <= {"success", "message", "hash", "registrationInfo"}
