"""Time-to-live cache for provider quote results.

Shared across concurrent requests without locking: two requests that
miss the same key both go upstream and the last writer wins. Quotes are
advisory, so that is acceptable. Nothing here survives a restart.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class _CacheEntry(Generic[T]):
    value: T
    expires_at: float


class ResultCache(Generic[T]):
    """Key -> value cache where every entry expires after a TTL.

    Usage:
        cache: ResultCache[list[RouteOption]] = ResultCache(default_ttl=30)
        cache.set("lifi:base:arbitrum:...", routes)
        routes = cache.get("lifi:base:arbitrum:...")  # None once expired
    """

    def __init__(
        self,
        default_ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            default_ttl: TTL in seconds used when `set` is called without one
            clock: Monotonic time source, injectable for tests
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            # Another request may have refreshed the key meanwhile; only drop ours
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store a value. A non-positive TTL stores nothing."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ResultCache"]
