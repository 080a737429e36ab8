"""Cache protocol for local artifact caches."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cache(Protocol):
    """Protocol for key-to-artifact caches carried by a store configuration."""

    async def get(self, key: str) -> Any | None:
        """Get an artifact by key. Returns None if not cached."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Cache an artifact with optional TTL in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Evict an artifact. Returns True if it was cached."""
        ...
