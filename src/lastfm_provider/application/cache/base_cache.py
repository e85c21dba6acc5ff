"""Base cache interface and in-memory implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry[V]:
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: int

    def is_expired(self) -> bool:
        """Check if cache entry is expired."""
        return time.monotonic() > (self.created_at + self.ttl_seconds)


class BaseCache[K, V](ABC):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: int = 3600) -> None:
        """Set value in cache."""
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass


class InMemoryCache[K, V](BaseCache[K, V]):
    """In-memory TTL cache using a dictionary.

    Process-local only, restarting the host loses everything.
    """

    # Listen up future me, the asyncio.Lock guards every touch of self._cache. Two coroutines
    # resolving the same track would otherwise race on read-modify-write of the dict.
    # get() only evicts the key it reads, so every `sweep_every` inserts set() also sweeps out
    # expired entries nobody asks for again (one-off search queries pile up otherwise).
    def __init__(self, default_ttl_seconds: int = 3600, sweep_every: int = 256) -> None:
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()
        self.default_ttl_seconds = default_ttl_seconds
        self.sweep_every = sweep_every
        self._inserts_since_sweep = 0

    # get() evicts expired entries on read, so it has a side effect even though it looks
    # like a pure getter. None means "not cached" OR "expired" - callers can't tell apart.
    async def get(self, key: K) -> V | None:
        """Get value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return entry.value

    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        """Set value in cache, overwriting any existing entry."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=time.monotonic(),
                ttl_seconds=self.default_ttl_seconds if ttl_seconds is None else ttl_seconds,
            )
            self._inserts_since_sweep += 1
            if self._inserts_since_sweep >= self.sweep_every:
                self._remove_expired()

    async def delete(self, key: K) -> bool:
        """Delete value from cache."""
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        """Clear all entries from cache."""
        async with self._lock:
            self._cache.clear()

    def _remove_expired(self) -> int:
        # Caller holds self._lock
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired()]
        for key in expired_keys:
            del self._cache[key]
        self._inserts_since_sweep = 0
        return len(expired_keys)

    async def cleanup_expired(self) -> int:
        """Remove expired entries from cache.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            return self._remove_expired()

    # Hey future me, the loader runs OUTSIDE the lock - it does network I/O and holding
    # the lock across it would serialize every cache user behind one slow Last.fm call.
    # Two concurrent misses for the same key may both load; last set() wins, same value.
    # Misses (loader returned None) are NOT cached, the next call asks again.
    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V | None]]) -> V | None:
        """Return the cached value, or load, cache and return it."""
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await loader()
        if value is not None:
            await self.set(key, value)
        return value

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics (unlocked, for monitoring only)."""
        total_entries = len(self._cache)
        expired_entries = sum(1 for entry in self._cache.values() if entry.is_expired())

        return {
            "total_entries": total_entries,
            "active_entries": total_entries - expired_entries,
            "expired_entries": expired_entries,
        }
