"""Tests for the simulated ledger used without a configured endpoint."""

from __future__ import annotations

import random

import pytest

from certchain.hashing import digest
from certchain.ledger import SimulatedLedgerClient, create_ledger_client
from certchain.ledger.connection import LedgerConnection
from certchain.ledger.errors import NoSignerConfiguredError
from certchain.ledger.simulated import PLACEHOLDER_METADATA, PLACEHOLDER_REGISTRAR


@pytest.mark.asyncio
async def test_lookup_follows_injected_randomness() -> None:
    seeded = SimulatedLedgerClient(latency_seconds=0, rng=random.Random(7))
    reference = random.Random(7)

    results = [await seeded.exists(digest(b"abc")) for _ in range(20)]

    assert results == [reference.random() > 0.5 for _ in range(20)]
    assert set(results) == {True, False}


@pytest.mark.asyncio
async def test_records_are_marked_as_placeholders() -> None:
    ledger = SimulatedLedgerClient(latency_seconds=0)

    record = await ledger.get_record(digest(b"abc"))

    assert record is not None
    assert record.registrar == PLACEHOLDER_REGISTRAR
    assert record.metadata == PLACEHOLDER_METADATA
    assert "placeholder" in record.metadata


@pytest.mark.asyncio
async def test_registration_is_unavailable() -> None:
    ledger = SimulatedLedgerClient(latency_seconds=0)

    assert ledger.simulated
    assert not ledger.has_signer
    with pytest.raises(NoSignerConfiguredError):
        await ledger.register(digest(b"abc"), "meta")


def test_factory_selects_simulation_without_endpoint() -> None:
    connection = LedgerConnection(read_endpoint=None, contract_address=None, chain_id=80002)

    assert isinstance(create_ledger_client(connection), SimulatedLedgerClient)
