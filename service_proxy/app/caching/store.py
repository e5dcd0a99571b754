"""
Cache store interface and the in-process memory backend.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple, Optional

from shared.logging import get_logger


class CachedValue(NamedTuple):
    """A cached upstream response: status code and decoded JSON body."""

    status: int
    body: Any


@dataclass
class CacheEntry:
    """Stored value with its absolute expiry (wall-clock seconds)."""

    key: str
    value: CachedValue
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheStore(ABC):
    """Key/value store with per-entry expiry.

    ``get`` after expiry behaves exactly like ``get`` on a key that was never
    written. Implementations must tolerate concurrent callers and must not
    raise on backend failures: a broken backend reads as a miss.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedValue]:
        """Return the live value for ``key`` or None."""

    @abstractmethod
    async def set(self, key: str, value: CachedValue, ttl: float) -> bool:
        """Store ``value`` until ``now + ttl``; return whether it was stored."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Drop ``key``; return whether anything was removed."""

    async def ping(self) -> bool:
        """Report backend health."""
        return True

    async def close(self) -> None:
        """Release backend resources."""


class MemoryCacheStore(CacheStore):
    """Process-local cache.

    All operations are synchronous dict updates inside a coroutine, so they
    never yield and need no lock under asyncio. Expired entries are dropped
    lazily on read. Past ``max_entries`` the oldest-written entries are
    evicted; under a single TTL those expire soonest.
    """

    def __init__(self, max_entries: int = 10000, clock: Callable[[], float] = time.time):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.logger = get_logger("proxy.cache.memory")

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[CachedValue]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: CachedValue, ttl: float) -> bool:
        if ttl <= 0:
            return False

        # Rewrites move the key to the end of insertion order
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

        if len(self._entries) > self.max_entries:
            self._evict()
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict(self) -> None:
        overflow = len(self._entries) - self.max_entries
        for _ in range(overflow):
            del self._entries[next(iter(self._entries))]
        self.logger.debug(
            "Cache evicted entries",
            evicted=overflow,
            size=len(self._entries)
        )
