"""
Tests for the HTTP API
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from soltx.api import app
from soltx.errors import RPCError
from soltx.fees import get_fee_estimator


@pytest.fixture
def client(estimator):
    app.dependency_overrides[get_fee_estimator] = lambda: estimator
    yield TestClient(app)
    app.dependency_overrides.clear()

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "soltx"

def test_decode_transaction(client, sample_transaction):
    response = client.post("/transactions/decode", json={"transaction": sample_transaction})
    assert response.status_code == 200
    data = response.json()
    assert data["format"] == "legacy"
    assert len(data["instructions"]) == 3
    assert data["instructions"][2]["decoded"]["lamports"] == 2_000_000_000
    assert data["fee"]["total_fee_lamports"] == 80_000

def test_decode_invalid_base64(client):
    response = client.post("/transactions/decode", json={"transaction": "not base64!!"})
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "InvalidEncoding"
    assert data["stage"] == "base64"

def test_decode_truncated_transaction(client, sample_transaction):
    response = client.post("/transactions/decode", json={"transaction": sample_transaction[:-8]})
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "TruncatedBuffer"
    assert data["stage"] == "instruction_data"
    assert isinstance(data["offset"], int)

def test_decode_requires_transaction(client):
    response = client.post("/transactions/decode", json={})
    assert response.status_code == 422

def test_transaction_fee(client, sample_transaction):
    response = client.post("/transactions/fee", json={"transaction": sample_transaction})
    assert response.status_code == 200
    data = response.json()
    assert data["priority_fee_lamports"] == 75_000
    assert data["compute_unit_limit"] == 500

def test_network_fee(client):
    response = client.get("/fees/mainnet")
    assert response.status_code == 200
    data = response.json()
    assert data["network"] == "mainnet"
    assert data["total_fee_lamports"] == 5003
    assert data["network_status"] == "healthy"
    assert data["last_updated"] is not None

def test_network_fee_unhealthy(client, mock_oracle):
    mock_oracle.get_latest_blockhash.side_effect = ConnectionError("refused")
    response = client.get("/fees/devnet")
    assert response.status_code == 200
    data = response.json()
    assert data["network_status"] == "unhealthy"
    assert data["total_fee_lamports"] == 5000

def test_estimate_transfer(client):
    response = client.get("/fees/devnet/estimate", params={"amount": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["network"] == "devnet"
    assert data["total_cost"] == pytest.approx(2 + 5003 / 1_000_000_000)

def test_estimate_requires_amount(client):
    assert client.get("/fees/mainnet/estimate").status_code == 422

def test_network_status(client):
    response = client.get("/network/testnet/status")
    assert response.status_code == 200
    data = response.json()
    assert data["network"] == "testnet"
    assert data["status"] == "healthy"

def test_transaction_details(client, transaction_signature):
    response = client.get(f"/network/devnet/transactions/{transaction_signature}")
    assert response.status_code == 200
    data = response.json()
    assert data["network"] == "devnet"
    assert data["status"] == "success"
    assert data["fee_paid_lamports"] == 80_000
    assert data["fee_difference_lamports"] == 0
    assert data["transaction"]["summary"]["total_instructions"] == 3

def test_transaction_details_invalid_signature(client):
    response = client.get("/network/devnet/transactions/not-a-signature")
    assert response.status_code == 400

def test_transaction_details_not_found(client, mock_oracle, transaction_signature):
    mock_oracle.get_transaction = AsyncMock(return_value=None)
    response = client.get(f"/network/mainnet/transactions/{transaction_signature}")
    assert response.status_code == 404

def test_transaction_details_node_error(client, mock_oracle, transaction_signature):
    mock_oracle.get_transaction = AsyncMock(side_effect=RPCError("RPC error (-32600): invalid request"))
    response = client.get(f"/network/mainnet/transactions/{transaction_signature}")
    assert response.status_code == 502
    assert "invalid request" in response.json()["detail"]
