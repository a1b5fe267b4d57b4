"""
On-chain transaction details: execution status and the fee actually charged.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..constants import BASE_FEE_LAMPORTS
from ..decoder import DecodedTransaction, TransactionDecoder, get_decoder
from ..decoder.models import lamports_to_sol
from ..errors import RPCError, TransactionNotFoundError
from .calculator import FeeBreakdown, fee_from_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionDetails:
    """A confirmed transaction as reported by a node."""
    signature: str
    slot: Optional[int]
    block_time: Optional[datetime]
    succeeded: Optional[bool]
    error: Optional[Any]
    fee_paid_lamports: Optional[int]
    compute_units_consumed: Optional[int]
    transaction: Optional[DecodedTransaction]
    expected_fee: Optional[FeeBreakdown]

    @property
    def status(self) -> str:
        if self.succeeded is None:
            return "unknown"
        return "success" if self.succeeded else "failed"

    @property
    def fee_difference_lamports(self) -> Optional[int]:
        """Charged fee minus the fee computed from the compute-budget instructions."""
        if self.fee_paid_lamports is None or self.expected_fee is None:
            return None
        return self.fee_paid_lamports - self.expected_fee.total_fee_lamports

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "slot": self.slot,
            "block_time": self.block_time.isoformat() if self.block_time else None,
            "status": self.status,
            "error": self.error,
            "fee_paid_lamports": self.fee_paid_lamports,
            "fee_paid_sol": (
                lamports_to_sol(self.fee_paid_lamports) if self.fee_paid_lamports is not None else None
            ),
            "compute_units_consumed": self.compute_units_consumed,
            "expected_fee": self.expected_fee.to_dict() if self.expected_fee else None,
            "fee_difference_lamports": self.fee_difference_lamports,
            "transaction": self.transaction.to_dict() if self.transaction else None,
        }


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _encoded_transaction(signature: str, value: Any) -> Optional[str]:
    # base64 encoding yields [data, "base64"]
    if value is None:
        return None
    if isinstance(value, list) and len(value) == 2 and value[1] == "base64":
        return value[0]
    raise RPCError(f"Unexpected transaction encoding for {signature}")


def transaction_details_from_rpc(signature: str, result: Optional[Dict[str, Any]],
                                 decoder: Optional[TransactionDecoder] = None,
                                 base_fee_lamports: int = BASE_FEE_LAMPORTS) -> TransactionDetails:
    """
    Build TransactionDetails from a getTransaction result.

    Args:
        signature: Signature the result was requested for
        result: The "result" member of a base64-encoded getTransaction response
        decoder: Decoder for the embedded wire transaction
        base_fee_lamports: Base fee used for the expected fee

    Returns:
        TransactionDetails: Status, charged fee and the decoded transaction

    Raises:
        TransactionNotFoundError: If the node returned no transaction
        RPCError: If the result is not shaped like a getTransaction response
        DecodeError: If the embedded transaction is malformed
    """
    if result is None:
        raise TransactionNotFoundError(f"Transaction {signature} not found")
    if not isinstance(result, dict):
        raise RPCError(f"Malformed getTransaction result for {signature}")

    meta = result.get("meta")
    if meta is not None and not isinstance(meta, dict):
        raise RPCError(f"Malformed transaction metadata for {signature}")

    encoded = _encoded_transaction(signature, result.get("transaction"))
    decoded = None
    expected_fee = None
    if encoded is not None:
        decoded = (decoder or get_decoder()).decode_base64(encoded)
        expected_fee = fee_from_transaction(decoded, base_fee_lamports)

    block_time = result.get("blockTime")
    details = TransactionDetails(
        signature=signature,
        slot=_optional_int(result.get("slot")),
        block_time=datetime.fromtimestamp(block_time, tz=timezone.utc) if block_time is not None else None,
        succeeded=meta.get("err") is None if meta is not None else None,
        error=meta.get("err") if meta is not None else None,
        fee_paid_lamports=_optional_int(meta.get("fee")) if meta is not None else None,
        compute_units_consumed=_optional_int(meta.get("computeUnitsConsumed")) if meta is not None else None,
        transaction=decoded,
        expected_fee=expected_fee,
    )
    logger.debug(f"Transaction {signature}: {details.status}, fee {details.fee_paid_lamports}")
    return details
