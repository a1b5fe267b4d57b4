"""
Solana JSON-RPC client used as the fee oracle.
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Protocol, Sequence

import aiohttp
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_RPC_TIMEOUT
from ..errors import NodeUnhealthyError, RateLimitError, RetryableError, RPCError

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = -32005
RETRYABLE_CODES = (-32603, -32002)


class FeeOracle(Protocol):
    """Network collaborator consumed by the fee estimator."""

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        ...

    async def get_recent_prioritization_fees(self) -> List[int]:
        ...

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        ...


class SolanaRPCClient:
    """
    Minimal Solana JSON-RPC client.

    Handles per-call timeouts, error classification and retries of
    transient failures.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        commitment: str = "confirmed",
    ):
        """Initialize the Solana RPC client"""
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.commitment = commitment
        self._session: Optional[aiohttp.ClientSession] = None

        logger.debug(f"Initialized SolanaRPCClient for endpoint: {endpoint}")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout,
                    connect=min(5.0, self.timeout / 2),
                )
            )
        return self._session

    async def close(self):
        """Close the underlying HTTP session"""
        if self._session is not None:
            try:
                await self._session.close()
            finally:
                self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _make_rpc_call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a single RPC call to the Solana node.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The "result" member of the response

        Raises:
            RPCError: If the node returns a non-retryable error
            RetryableError: If the call failed but can be retried
        """
        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or [],
        }
        session = await self._ensure_session()
        start_time = time.time()

        try:
            async with asyncio.timeout(self.timeout):
                async with session.post(self.endpoint, json=payload) as response:
                    if response.status == 429:
                        raise RateLimitError(f"HTTP 429 for {method}")
                    if response.status >= 400:
                        raise RetryableError(f"HTTP error {response.status} for {method}")
                    try:
                        result = await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise RetryableError(f"Failed to parse JSON response for {method}: {e}") from e
        except asyncio.TimeoutError as e:
            elapsed = time.time() - start_time
            logger.warning(f"Timeout after {elapsed:.2f}s for {method} on {self.endpoint}")
            raise RetryableError(f"Timeout after {elapsed:.2f}s") from e
        except aiohttp.ClientError as e:
            logger.warning(f"Client error in {method}: {str(e)}")
            raise RetryableError(f"Connection error: {str(e)}") from e

        logger.debug(f"{method} completed in {time.time() - start_time:.2f}s")

        if not isinstance(result, dict):
            raise RPCError(f"Malformed response for {method}: expected a JSON object")

        if "error" in result:
            error = result["error"]
            error_msg = error.get("message", str(error))
            error_code = error.get("code", 0)

            if "unhealthy" in error_msg.lower() or "node is behind" in error_msg.lower():
                logger.warning(f"Node unhealthy on {method}: {error_msg}")
                raise NodeUnhealthyError(f"Node unhealthy: {error_msg}")
            if error_code == RATE_LIMIT_CODE or "rate limit" in error_msg.lower():
                logger.warning(f"Rate limited on {method}: {error_msg}")
                raise RateLimitError(f"Rate limited: {error_msg}")
            if error_code in RETRYABLE_CODES or "internal error" in error_msg.lower():
                logger.warning(f"Retryable RPC error for {method}: {error_msg}")
                raise RetryableError(f"Retryable RPC error ({error_code}): {error_msg}")

            logger.error(f"RPC error in {method}: {error_msg}")
            raise RPCError(f"RPC error ({error_code}): {error_msg}")

        if "result" not in result:
            raise RPCError(f"Malformed response for {method}: missing result")
        return result["result"]

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make an RPC call, retrying transient failures with exponential backoff."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_delay, max=8),
            retry=retry_if_exception_type(RetryableError),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        ):
            with attempt:
                result = await self._make_rpc_call(method, params)
        return result

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        """Get the latest blockhash; used as the connectivity probe."""
        result = await self.call("getLatestBlockhash", [{"commitment": self.commitment}])
        return result.get("value", result) if isinstance(result, dict) else {"value": result}

    async def get_recent_prioritization_fees(self, addresses: Optional[Sequence[str]] = None) -> List[int]:
        """
        Get recently observed prioritization fees.

        Returns:
            List of per-slot priority fees in micro-lamports per compute unit
        """
        params = [list(addresses)] if addresses else []
        entries = await self.call("getRecentPrioritizationFees", params)
        return [int(entry.get("prioritizationFee", 0)) for entry in entries or []]

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """
        Get a confirmed transaction with its execution metadata.

        The transaction is requested base64-encoded so it can be run through
        the wire decoder; v0 transactions are accepted.

        Returns:
            The raw "result" object, or None if the node does not know the signature
        """
        return await self.call("getTransaction", [
            signature,
            {
                "encoding": "base64",
                "commitment": self.commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ])
