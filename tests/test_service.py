"""Tests for service wiring and health reporting."""

from __future__ import annotations

import pytest

from certchain.ledger import SimulatedLedgerClient, Web3LedgerClient
from certchain.service import build_service
from certchain.settings import CertchainSettings
from ledger_doubles import TEST_CONTRACT_ADDRESS, TEST_PRIVATE_KEY, InMemoryLedgerClient


def test_health_without_configuration() -> None:
    service = build_service(CertchainSettings())

    assert isinstance(service.ledger, SimulatedLedgerClient)
    response = service.health()
    assert response.status_code == 200
    assert response.to_dict() == {
        "status": "ok",
        "ledgerConfigured": False,
        "signerConfigured": False,
        "env": "development",
        "networkId": 80002,
    }


def test_health_reflects_configured_ledger_and_signer() -> None:
    service = build_service(
        CertchainSettings(
            rpc_url="http://127.0.0.1:8545",
            contract_address=TEST_CONTRACT_ADDRESS,
            signer_private_key=TEST_PRIVATE_KEY,
            chain_id=31337,
            node_env="test",
        )
    )

    assert isinstance(service.ledger, Web3LedgerClient)
    assert service.ledger.has_signer
    assert service.health().to_dict() == {
        "status": "ok",
        "ledgerConfigured": True,
        "signerConfigured": True,
        "env": "test",
        "networkId": 31337,
    }


@pytest.mark.asyncio
async def test_service_shares_one_ledger_between_workflows() -> None:
    ledger = InMemoryLedgerClient()
    service = build_service(CertchainSettings(), ledger=ledger)

    registered = await service.register(b"certificate", "Diploma")
    verified = await service.verify(b"certificate")

    assert registered.to_dict()["success"] is True
    assert verified.to_dict()["success"] is True
    assert verified.to_dict()["hash"] == registered.to_dict()["hash"]


@pytest.mark.asyncio
async def test_manual_instructions_name_contract_without_rpc_url() -> None:
    service = build_service(
        CertchainSettings(contract_address=TEST_CONTRACT_ADDRESS.lower()),
        ledger=InMemoryLedgerClient(signer=False),
    )

    body = (await service.register(b"certificate", "Diploma")).to_dict()

    assert service.health().to_dict()["ledgerConfigured"] is False
    assert body["contractAddress"] == TEST_CONTRACT_ADDRESS
    assert TEST_CONTRACT_ADDRESS in body["instructions"]["step1"]
