"""
Transaction and fee endpoints.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..config import get_network_config
from ..decoder import TransactionDecoder, get_decoder
from ..errors import NetworkFeeError, RPCError, TransactionNotFoundError
from ..fees import FeeEstimator, fee_from_transaction, get_fee_estimator

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["soltx"],
    responses={404: {"description": "Not found"}},
)


class TransactionRequest(BaseModel):
    """Base64-encoded wire transaction."""
    transaction: str = Field(..., min_length=1, description="Base64-encoded transaction bytes")


@router.post("/transactions/decode", response_model=Dict[str, Any])
async def decode_transaction(
    request: TransactionRequest,
    decoder: TransactionDecoder = Depends(get_decoder),
) -> Dict[str, Any]:
    """
    Decode a transaction into its structural parts.

    Returns the format, header, account table, signatures, decoded
    instructions, an instruction summary and the fee set by the
    transaction's compute-budget instructions.

    Structural errors are returned as 422 with the failing stage and offset.
    """
    decoded = decoder.decode_base64(request.transaction)
    response = decoded.to_dict()
    response["fee"] = fee_from_transaction(decoded).to_dict()
    return response


@router.post("/transactions/fee", response_model=Dict[str, Any])
async def transaction_fee(
    request: TransactionRequest,
    decoder: TransactionDecoder = Depends(get_decoder),
) -> Dict[str, Any]:
    """Compute the base, priority and total fee of a transaction."""
    decoded = decoder.decode_base64(request.transaction)
    return fee_from_transaction(decoded).to_dict()


@router.get("/fees/{network}", response_model=Dict[str, Any])
async def network_fee(
    network: str,
    estimator: FeeEstimator = Depends(get_fee_estimator),
) -> Dict[str, Any]:
    """
    Current network fee estimate.

    Served from a 30 second cache; on node failure the base fee is returned
    with network_status "unhealthy".
    """
    config = get_network_config(network)
    fee = await estimator.get_network_fee(config)
    response = fee.to_dict()
    response["network"] = config.key
    return response


@router.get("/fees/{network}/estimate", response_model=Dict[str, Any])
async def estimate_transfer(
    network: str,
    amount: float = Query(..., ge=0, description="Amount of SOL to send"),
    estimator: FeeEstimator = Depends(get_fee_estimator),
) -> Dict[str, Any]:
    """Estimate the total cost (amount + fee) of a SOL transfer."""
    config = get_network_config(network)
    estimate = await estimator.estimate_transfer_total(amount, config)
    estimate["amount"] = amount
    estimate["network"] = config.key
    return estimate


@router.get("/network/{network}/status", response_model=Dict[str, Any])
async def network_status(
    network: str,
    estimator: FeeEstimator = Depends(get_fee_estimator),
) -> Dict[str, Any]:
    """Connectivity status of a network's RPC node."""
    config = get_network_config(network)
    status = await estimator.get_network_status(config)
    return {
        "network": config.key,
        "rpc_url": config.rpc_url,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/network/{network}/transactions/{signature}", response_model=Dict[str, Any])
async def transaction_details(
    network: str,
    signature: str,
    estimator: FeeEstimator = Depends(get_fee_estimator),
) -> Dict[str, Any]:
    """
    Look up a confirmed transaction by signature.

    Reports slot, block time, success or failure, the fee actually charged
    and the fee computed from the transaction's compute-budget instructions.
    An invalid signature is a 400, an unknown one a 404 and a node failure
    a 502.
    """
    config = get_network_config(network)
    try:
        details = await estimator.get_transaction_details(signature, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransactionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (RPCError, NetworkFeeError) as e:
        logger.error(f"Transaction lookup failed on {config.key}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    response = details.to_dict()
    response["network"] = config.key
    return response
