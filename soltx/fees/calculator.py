"""
Fee model: base fee plus compute-budget priority fee.

All arithmetic is integer lamports / micro-lamports. SOL values are produced
only by the display properties of FeeBreakdown.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from ..constants import BASE_FEE_LAMPORTS, MICRO_LAMPORTS_PER_LAMPORT
from ..decoder.models import (
    ComputeBudgetLimit,
    ComputeBudgetPrice,
    DecodedInstruction,
    DecodedTransaction,
    lamports_to_sol,
)


@dataclass(frozen=True)
class FeeBreakdown:
    """Fee components of a transaction, in lamports."""
    base_fee_lamports: int
    priority_fee_lamports: int
    network_status: Optional[str] = None
    last_updated: Optional[datetime] = None
    compute_unit_price: Optional[int] = None
    compute_unit_limit: Optional[int] = None

    @property
    def total_fee_lamports(self) -> int:
        return self.base_fee_lamports + self.priority_fee_lamports

    @property
    def base_fee_sol(self) -> float:
        return lamports_to_sol(self.base_fee_lamports)

    @property
    def priority_fee_sol(self) -> float:
        return lamports_to_sol(self.priority_fee_lamports)

    @property
    def total_fee_sol(self) -> float:
        return lamports_to_sol(self.total_fee_lamports)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "base_fee_lamports": self.base_fee_lamports,
            "priority_fee_lamports": self.priority_fee_lamports,
            "total_fee_lamports": self.total_fee_lamports,
            "base_fee_sol": self.base_fee_sol,
            "priority_fee_sol": self.priority_fee_sol,
            "total_fee_sol": self.total_fee_sol,
            "network_status": self.network_status,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
        if self.compute_unit_price is not None or self.compute_unit_limit is not None:
            data["compute_unit_price"] = self.compute_unit_price
            data["compute_unit_limit"] = self.compute_unit_limit
        return data


def calculate_priority_fee(compute_unit_price: int, compute_unit_limit: int) -> int:
    """
    Priority fee in lamports for a price (micro-lamports per unit) and a unit limit.

    >>> calculate_priority_fee(150_000_000, 500)
    75000
    """
    if compute_unit_price < 0 or compute_unit_limit < 0:
        raise ValueError("compute unit price and limit must be non-negative")
    return compute_unit_price * compute_unit_limit // MICRO_LAMPORTS_PER_LAMPORT


def fee_from_compute_budget(compute_unit_price: Optional[int], compute_unit_limit: Optional[int],
                            base_fee_lamports: int = BASE_FEE_LAMPORTS) -> FeeBreakdown:
    """A missing price or limit is kept as None and counts as 0."""
    return FeeBreakdown(
        base_fee_lamports=base_fee_lamports,
        priority_fee_lamports=calculate_priority_fee(compute_unit_price or 0, compute_unit_limit or 0),
        compute_unit_price=compute_unit_price,
        compute_unit_limit=compute_unit_limit,
    )


def fee_from_decoded_instructions(instructions: Iterable[DecodedInstruction],
                                  base_fee_lamports: int = BASE_FEE_LAMPORTS) -> FeeBreakdown:
    """
    Compute the fee set by a transaction's compute-budget instructions.

    The first SetComputeUnitPrice and the first SetComputeUnitLimit are used;
    a missing instruction is reported as None and adds no priority fee.

    Args:
        instructions: Decoded instructions of one transaction
        base_fee_lamports: Fixed base fee

    Returns:
        FeeBreakdown: Base, priority and total fee
    """
    price: Optional[int] = None
    limit: Optional[int] = None
    for instruction in instructions:
        payload = instruction.decoded_payload
        if price is None and isinstance(payload, ComputeBudgetPrice):
            price = payload.micro_lamports
        elif limit is None and isinstance(payload, ComputeBudgetLimit):
            limit = payload.units
        if price is not None and limit is not None:
            break
    return fee_from_compute_budget(price, limit, base_fee_lamports)


def fee_from_transaction(transaction: DecodedTransaction,
                         base_fee_lamports: int = BASE_FEE_LAMPORTS) -> FeeBreakdown:
    return fee_from_decoded_instructions(transaction.instructions, base_fee_lamports)
