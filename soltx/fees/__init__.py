"""
Fee calculation and live network fee estimation.
"""
from .cache import TTLCache
from .calculator import (
    FeeBreakdown,
    calculate_priority_fee,
    fee_from_compute_budget,
    fee_from_decoded_instructions,
    fee_from_transaction,
)
from .details import TransactionDetails, transaction_details_from_rpc
from .estimator import FeeEstimator, get_fee_estimator
from .rpc import FeeOracle, SolanaRPCClient

__all__ = [
    'FeeBreakdown',
    'FeeEstimator',
    'FeeOracle',
    'SolanaRPCClient',
    'TTLCache',
    'TransactionDetails',
    'calculate_priority_fee',
    'fee_from_compute_budget',
    'fee_from_decoded_instructions',
    'fee_from_transaction',
    'get_fee_estimator',
    'transaction_details_from_rpc',
]
