"""Cache protocol for the cache managers (DIP)."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    """Protocol for cache backends (e.g. Redis). Used by EntityCacheManager.

    Implementations never raise for backend failures: reads return None,
    writes return False, pattern operations return 0.
    """

    def is_available(self) -> bool:
        """Return True if cache is connected and usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL in seconds. Returns True on success."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the backend accepted the delete."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if key is present."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns number deleted."""
        ...
