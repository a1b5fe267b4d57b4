"""
Tests for fee calculation from compute budget instructions
"""

from datetime import datetime, timezone

import pytest

from soltx.constants import BASE_FEE_LAMPORTS
from soltx.decoder import ComputeBudgetLimit, ComputeBudgetPrice, DecodedInstruction, RecognizedProgram
from soltx.fees import (
    FeeBreakdown,
    calculate_priority_fee,
    fee_from_compute_budget,
    fee_from_decoded_instructions,
    fee_from_transaction,
)


def _instruction(index, payload):
    return DecodedInstruction(
        index=index,
        program_index=0,
        program_id=bytes(32),
        account_indexes=(),
        raw_payload=b"",
        recognized_program=RecognizedProgram.COMPUTE_BUDGET,
        decoded_payload=payload,
    )

def test_calculate_priority_fee():
    assert calculate_priority_fee(150_000_000, 500) == 75_000
    assert calculate_priority_fee(1, 999_999) == 0
    assert calculate_priority_fee(0, 1_400_000) == 0

def test_calculate_priority_fee_rejects_negative_values():
    with pytest.raises(ValueError):
        calculate_priority_fee(-1, 100)

def test_fee_from_compute_budget():
    fee = fee_from_compute_budget(150_000_000, 500)
    assert fee.base_fee_lamports == BASE_FEE_LAMPORTS
    assert fee.priority_fee_lamports == 75_000
    assert fee.total_fee_lamports == 80_000
    assert fee.total_fee_sol == pytest.approx(0.00008)

def test_fee_from_sample_transaction(decoder, sample_transaction):
    fee = fee_from_transaction(decoder.decode_base64(sample_transaction))
    assert fee.priority_fee_lamports == 75_000
    assert fee.total_fee_lamports == 80_000
    assert fee.compute_unit_price == 150_000_000
    assert fee.compute_unit_limit == 500
    assert fee.network_status is None

def test_fee_without_compute_budget(decoder, builder):
    fee = fee_from_transaction(decoder.decode(builder.transfer(1_000)))
    assert fee.priority_fee_lamports == 0
    assert fee.total_fee_lamports == BASE_FEE_LAMPORTS
    assert fee.compute_unit_price is None
    assert fee.compute_unit_limit is None
    assert "compute_unit_price" not in fee.to_dict()

def test_price_without_limit_pays_no_priority_fee():
    fee = fee_from_decoded_instructions([_instruction(0, ComputeBudgetPrice(micro_lamports=10_000))])
    assert fee.priority_fee_lamports == 0
    assert fee.compute_unit_price == 10_000
    assert fee.compute_unit_limit is None
    assert fee.to_dict()["compute_unit_limit"] is None

def test_first_compute_budget_instruction_wins():
    instructions = [
        _instruction(0, ComputeBudgetLimit(units=1_000)),
        _instruction(1, ComputeBudgetPrice(micro_lamports=2_000_000)),
        _instruction(2, ComputeBudgetLimit(units=9_999)),
        _instruction(3, ComputeBudgetPrice(micro_lamports=1)),
    ]
    fee = fee_from_decoded_instructions(instructions)
    assert fee.compute_unit_limit == 1_000
    assert fee.compute_unit_price == 2_000_000
    assert fee.priority_fee_lamports == 2_000

def test_fee_calculation_is_pure(decoder, sample_transaction):
    decoded = decoder.decode_base64(sample_transaction)
    assert fee_from_transaction(decoded) == fee_from_transaction(decoded)
    assert fee_from_decoded_instructions(decoded.instructions, base_fee_lamports=10_000).total_fee_lamports == 85_000

def test_fee_breakdown_to_dict():
    updated = datetime(2024, 1, 1, tzinfo=timezone.utc)
    fee = FeeBreakdown(base_fee_lamports=5000, priority_fee_lamports=1000,
                       network_status="healthy", last_updated=updated)
    data = fee.to_dict()
    assert data["total_fee_lamports"] == 6000
    assert data["total_fee_sol"] == pytest.approx(0.000006)
    assert data["network_status"] == "healthy"
    assert data["last_updated"] == "2024-01-01T00:00:00+00:00"
    assert "compute_unit_price" not in data
