"""
Network fee estimation backed by a cached sample of recent priority fees.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Union

from solders.signature import Signature

from .. import config as settings
from ..config import NetworkConfig, get_network_config
from ..constants import (
    BASE_FEE_LAMPORTS,
    LAMPORTS_PER_SOL,
    MICRO_LAMPORTS_PER_LAMPORT,
    NETWORK_FEE_CACHE_PURPOSE,
    NETWORK_HEALTHY,
    NETWORK_UNHEALTHY,
)
from ..errors import NetworkFeeError
from .cache import Clock, TTLCache
from .calculator import FeeBreakdown
from .details import TransactionDetails, transaction_details_from_rpc
from .rpc import FeeOracle, SolanaRPCClient

logger = logging.getLogger(__name__)

NetworkKey = Union[str, NetworkConfig, None]
ClientFactory = Callable[[NetworkConfig], FeeOracle]


class FeeEstimator:
    """
    Produces FeeBreakdowns from live network samples.

    One cache entry per (network, purpose) is kept for `cache_ttl` seconds.
    Fee sampling failures never escape: they degrade to a base-fee-only
    breakdown with an "unhealthy" status, which is not cached. Transaction
    lookups have no fallback and raise.
    """

    def __init__(
        self,
        clients: Optional[Dict[str, FeeOracle]] = None,
        client_factory: Optional[ClientFactory] = None,
        cache: Optional[TTLCache] = None,
        clock: Optional[Clock] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[float] = None,
        min_priority_fee_lamports: Optional[int] = None,
        base_fee_lamports: int = BASE_FEE_LAMPORTS,
    ):
        self.timeout = settings.RPC_TIMEOUT if timeout is None else timeout
        self.min_priority_fee_lamports = (
            settings.MIN_PRIORITY_FEE_LAMPORTS if min_priority_fee_lamports is None
            else min_priority_fee_lamports
        )
        if self.min_priority_fee_lamports <= 0:
            raise ValueError("min_priority_fee_lamports must be positive")
        self.base_fee_lamports = base_fee_lamports
        self.cache: TTLCache[FeeBreakdown] = cache or TTLCache(
            ttl=settings.FEE_CACHE_TTL if cache_ttl is None else cache_ttl,
            clock=clock,
        )
        self._clients: Dict[str, FeeOracle] = dict(clients or {})
        self._owned_clients: List[SolanaRPCClient] = []
        self._client_factory = client_factory or self._default_client

    def _default_client(self, network: NetworkConfig) -> FeeOracle:
        client = SolanaRPCClient(network.rpc_url, timeout=self.timeout)
        self._owned_clients.append(client)
        return client

    @staticmethod
    def network_key(network: NetworkConfig) -> str:
        return network.key if network.key != "custom" else network.rpc_url

    def _cache_key(self, network: NetworkConfig) -> Hashable:
        return (self.network_key(network), NETWORK_FEE_CACHE_PURPOSE)

    def _get_client(self, network: NetworkConfig) -> FeeOracle:
        key = self.network_key(network)
        client = self._clients.get(key)
        if client is None:
            client = self._clients[key] = self._client_factory(network)
        return client

    def _timestamp(self, now: float) -> datetime:
        return datetime.fromtimestamp(now, tz=timezone.utc)

    def priority_fee_from_samples(self, samples: Sequence[int]) -> int:
        """
        Average of the non-zero samples, converted to lamports.

        Samples are micro-lamports per compute unit. When no non-zero sample
        exists the configured minimum priority fee is used instead of 0.
        """
        non_zero = [int(sample) for sample in samples if sample > 0]
        if not non_zero:
            return self.min_priority_fee_lamports
        average_micro_lamports = sum(non_zero) // len(non_zero)
        return average_micro_lamports // MICRO_LAMPORTS_PER_LAMPORT

    def degraded_breakdown(self) -> FeeBreakdown:
        return FeeBreakdown(
            base_fee_lamports=self.base_fee_lamports,
            priority_fee_lamports=0,
            network_status=NETWORK_UNHEALTHY,
            last_updated=self._timestamp(self.cache.now()),
        )

    async def _sample(self, client: FeeOracle) -> List[int]:
        try:
            await client.get_latest_blockhash()
        except Exception as e:
            raise NetworkFeeError(f"connectivity probe failed: {e}") from e
        try:
            return list(await client.get_recent_prioritization_fees())
        except Exception as e:
            raise NetworkFeeError(f"fee sample fetch failed: {e}") from e

    async def get_network_fee(self, network: NetworkKey = None,
                              timeout: Optional[float] = None) -> FeeBreakdown:
        """
        Get the current fee estimate for a network.

        Args:
            network: Preset name, NetworkConfig, or None for the default network
            timeout: Seconds allowed for probe + sample fetch (defaults to the estimator timeout)

        Returns:
            FeeBreakdown: Cached, freshly sampled, or degraded estimate
        """
        config = get_network_config(network)
        key = self._cache_key(config)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached network fee for {config.name}")
            return cached

        async with self.cache.lock(key):
            cached = self.cache.get(key)
            if cached is not None:
                return cached

            client = self._get_client(config)
            call_timeout = self.timeout if timeout is None else timeout
            try:
                samples = await asyncio.wait_for(self._sample(client), timeout=call_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Fee sampling for {config.name} timed out after {call_timeout}s")
                return self.degraded_breakdown()
            except NetworkFeeError as e:
                logger.error(f"Failed to get network fee for {config.name}: {e}")
                return self.degraded_breakdown()

            now = self.cache.now()
            breakdown = FeeBreakdown(
                base_fee_lamports=self.base_fee_lamports,
                priority_fee_lamports=self.priority_fee_from_samples(samples),
                network_status=NETWORK_HEALTHY,
                last_updated=self._timestamp(now),
            )
            self.cache.set(key, breakdown, computed_at=now)
            logger.info(
                f"Refreshed network fee for {config.name}: {breakdown.total_fee_lamports} lamports "
                f"from {len(samples)} sample(s)"
            )
            return breakdown

    async def get_network_status(self, network: NetworkKey = None,
                                 timeout: Optional[float] = None) -> str:
        """Probe connectivity only and report "healthy" or "unhealthy"."""
        config = get_network_config(network)
        client = self._get_client(config)
        try:
            await asyncio.wait_for(client.get_latest_blockhash(),
                                   timeout=self.timeout if timeout is None else timeout)
            return NETWORK_HEALTHY
        except Exception as e:
            logger.error(f"Failed to get network status for {config.name}: {e}")
            return NETWORK_UNHEALTHY

    async def estimate_transfer_total(self, amount: float, network: NetworkKey = None) -> Dict[str, Any]:
        """
        Estimate the total cost of sending `amount` SOL.

        Returns:
            Dict with total_cost and fee, both in SOL
        """
        fee = await self.get_network_fee(network)
        fee_sol = fee.total_fee_lamports / LAMPORTS_PER_SOL
        return {
            "total_cost": amount + fee_sol,
            "fee": fee_sol,
        }

    async def get_transaction_details(self, signature: str, network: NetworkKey = None,
                                      timeout: Optional[float] = None) -> TransactionDetails:
        """
        Look up a confirmed transaction and compare the fee it was charged
        with the fee its compute-budget instructions imply.

        Args:
            signature: Base58 transaction signature
            network: Preset name, NetworkConfig, or None for the default network
            timeout: Seconds allowed for the lookup (defaults to the estimator timeout)

        Raises:
            ValueError: If the signature is not valid base58 of 64 bytes
            TransactionNotFoundError: If the node does not know the signature
            NetworkFeeError: If the node cannot be reached in time
            RPCError: If the node rejects the request
        """
        try:
            Signature.from_string(signature)
        except ValueError as e:
            raise ValueError(f"Invalid transaction signature: {signature!r}") from e

        config = get_network_config(network)
        client = self._get_client(config)
        call_timeout = self.timeout if timeout is None else timeout
        try:
            result = await asyncio.wait_for(client.get_transaction(signature), timeout=call_timeout)
        except asyncio.TimeoutError as e:
            raise NetworkFeeError(
                f"Transaction lookup on {config.name} timed out after {call_timeout}s"
            ) from e
        return transaction_details_from_rpc(signature, result, base_fee_lamports=self.base_fee_lamports)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def close(self) -> None:
        """Close RPC clients created by this estimator."""
        for client in self._owned_clients:
            await client.close()
        self._owned_clients.clear()


_default_estimator: Optional[FeeEstimator] = None


def get_fee_estimator() -> FeeEstimator:
    """Return the process-wide estimator (and therefore the shared fee cache)."""
    global _default_estimator
    if _default_estimator is None:
        _default_estimator = FeeEstimator()
    return _default_estimator
