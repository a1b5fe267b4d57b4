"""
Tests for on-chain transaction details
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from soltx.errors import (
    NetworkFeeError,
    RPCError,
    TransactionNotFoundError,
    TruncatedBuffer,
)
from soltx.fees import transaction_details_from_rpc


def test_details_from_successful_transaction(sample_transaction, make_transaction_result, transaction_signature):
    details = transaction_details_from_rpc(transaction_signature, make_transaction_result(sample_transaction))

    assert details.status == "success"
    assert details.succeeded is True
    assert details.slot == 250_000_000
    assert details.block_time == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert details.fee_paid_lamports == 80_000
    assert details.compute_units_consumed == 450
    assert details.expected_fee.total_fee_lamports == 80_000
    assert details.fee_difference_lamports == 0
    assert len(details.transaction.instructions) == 3

def test_details_to_dict(sample_transaction, make_transaction_result, transaction_signature):
    data = transaction_details_from_rpc(
        transaction_signature, make_transaction_result(sample_transaction, fee=90_000)
    ).to_dict()

    assert data["signature"] == transaction_signature
    assert data["status"] == "success"
    assert data["block_time"] == "2023-11-14T22:13:20+00:00"
    assert data["fee_paid_sol"] == pytest.approx(0.00009)
    assert data["fee_difference_lamports"] == 10_000
    assert data["expected_fee"]["priority_fee_lamports"] == 75_000
    assert data["transaction"]["format"] == "legacy"

def test_failed_transaction(sample_transaction, make_transaction_result, transaction_signature):
    err = {"InstructionError": [2, {"Custom": 1}]}
    details = transaction_details_from_rpc(
        transaction_signature, make_transaction_result(sample_transaction, err=err)
    )
    assert details.status == "failed"
    assert details.error == err

def test_missing_meta_reports_unknown_status(sample_transaction, make_transaction_result, transaction_signature):
    result = make_transaction_result(sample_transaction)
    result["meta"] = None
    result["blockTime"] = None
    details = transaction_details_from_rpc(transaction_signature, result)

    assert details.status == "unknown"
    assert details.fee_paid_lamports is None
    assert details.fee_difference_lamports is None
    assert details.block_time is None
    assert details.to_dict()["fee_paid_sol"] is None

def test_unknown_signature(transaction_signature):
    with pytest.raises(TransactionNotFoundError):
        transaction_details_from_rpc(transaction_signature, None)

def test_unexpected_encoding(sample_transaction, make_transaction_result, transaction_signature):
    result = make_transaction_result(sample_transaction)
    result["transaction"] = {"message": {}, "signatures": []}
    with pytest.raises(RPCError, match="encoding"):
        transaction_details_from_rpc(transaction_signature, result)

def test_malformed_embedded_transaction(sample_transaction, make_transaction_result, transaction_signature):
    with pytest.raises(TruncatedBuffer):
        transaction_details_from_rpc(
            transaction_signature, make_transaction_result(sample_transaction[:-8])
        )

@pytest.mark.asyncio
async def test_estimator_transaction_details(estimator, mock_oracle, transaction_signature):
    details = await estimator.get_transaction_details(transaction_signature, "devnet")
    assert details.fee_paid_lamports == 80_000
    mock_oracle.get_transaction.assert_awaited_once_with(transaction_signature)

@pytest.mark.asyncio
async def test_estimator_rejects_invalid_signature(estimator, mock_oracle):
    with pytest.raises(ValueError, match="Invalid transaction signature"):
        await estimator.get_transaction_details("not-a-signature")
    mock_oracle.get_transaction.assert_not_awaited()

@pytest.mark.asyncio
async def test_estimator_transaction_not_found(estimator, mock_oracle, transaction_signature):
    mock_oracle.get_transaction = AsyncMock(return_value=None)
    with pytest.raises(TransactionNotFoundError):
        await estimator.get_transaction_details(transaction_signature)

@pytest.mark.asyncio
async def test_estimator_transaction_lookup_timeout(estimator, mock_oracle, transaction_signature):
    async def slow(signature):
        await asyncio.sleep(5)

    mock_oracle.get_transaction = AsyncMock(side_effect=slow)
    with pytest.raises(NetworkFeeError, match="timed out"):
        await estimator.get_transaction_details(transaction_signature, timeout=0.01)
