"""In-memory TTL cache for local artifacts.

The default cache capability carried by a StoreConfiguration. Higher layers
use it to keep downloaded or deserialized artifacts keyed by store path.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CacheEntry:
    """A cached artifact with expiration metadata."""

    value: Any
    expires_at: float | None
    created_at: float = field(default_factory=time.time)

    @property
    def is_expired(self) -> bool:
        """Check if the entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class TTLCache:
    """Asyncio-safe TTL cache with size-bounded eviction.

    Example:
        cache = TTLCache(ttl_seconds=300)
        await cache.set("/data/a.bin", payload)
        payload = await cache.get("/data/a.bin")
    """

    def __init__(
        self,
        ttl_seconds: int | None = 300,
        max_size: int = 1000,
        **kwargs: Any,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Default time-to-live; None keeps entries until evicted
            max_size: Maximum number of entries before eviction
            **kwargs: Ignored (for compatibility with other caches)
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._cache: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        """Get a cached artifact. Returns None if not found or expired."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired:
                del self._cache[key]
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Cache an artifact.

        Args:
            key: Cache key
            value: Artifact to cache
            ttl: Optional TTL override in seconds
        """
        ttl_seconds = ttl if ttl is not None else self.ttl_seconds
        expires_at = time.time() + ttl_seconds if ttl_seconds is not None else None

        async with self._lock:
            if len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_oldest()
            self._cache[key] = CacheEntry(value=value, expires_at=expires_at)

    def _evict_oldest(self) -> None:
        """Evict the oldest 10% of entries (caller must hold lock)."""
        if not self._cache:
            return

        sorted_keys = sorted(
            self._cache.keys(),
            key=lambda k: self._cache[k].created_at,
        )
        evict_count = max(1, len(sorted_keys) // 10)
        for key in sorted_keys[:evict_count]:
            del self._cache[key]

    async def delete(self, key: str) -> bool:
        """Evict a key. Returns True if it was cached."""
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        """Clear all entries."""
        async with self._lock:
            self._cache.clear()

    async def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns number of entries removed."""
        async with self._lock:
            expired_keys = [
                key for key, entry in self._cache.items()
                if entry.is_expired
            ]
            for key in expired_keys:
                del self._cache[key]
            return len(expired_keys)

    @property
    def size(self) -> int:
        """Get current cache size."""
        return len(self._cache)
