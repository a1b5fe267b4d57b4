"""
Time-windowed cache for network fee samples.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from ..constants import NETWORK_FEE_CACHE_TTL

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    computed_at: float


class TTLCache(Generic[T]):
    """
    Process-wide cache keyed by (network, purpose).

    Entries are replaced wholesale on refresh and never mutated. The clock is
    injectable so tests control expiry without sleeping.
    """

    def __init__(self, ttl: float = NETWORK_FEE_CACHE_TTL, clock: Optional[Clock] = None):
        self.ttl = ttl
        self.clock: Clock = clock or time.time
        self._entries: Dict[Hashable, CacheEntry[T]] = {}
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def now(self) -> float:
        return self.clock()

    def is_valid(self, entry: CacheEntry[T]) -> bool:
        return self.now() - entry.computed_at < self.ttl

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value if it is still inside the validity window."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self.is_valid(entry):
            logger.debug(f"Cache entry for {key} expired")
            return None
        return entry.value

    def set(self, key: Hashable, value: T, computed_at: Optional[float] = None) -> None:
        self._entries[key] = CacheEntry(
            value=value,
            computed_at=self.now() if computed_at is None else computed_at,
        )

    def lock(self, key: Hashable) -> asyncio.Lock:
        """Per-key lock used to coalesce concurrent refreshes."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def clear(self, key: Optional[Hashable] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
