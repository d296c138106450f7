"""Redis-based cache service (system-wide cache backend).

Provides async Redis caching with TTL support. Used by the entity cache
managers and the authorization resolver. Values are JSON-serialized.
A Redis outage never propagates: every operation degrades to a miss.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from platform_core.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SCAN_CHUNK_SIZE = 500


class CacheService:
    """Async Redis cache service with TTL support.

    Uses platform_core.core.config for connection settings. Call connect()
    at startup and disconnect() at shutdown. A client may be injected for
    tests or DI; connect() then only verifies it with PING.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize cache service.

        Args:
            redis_client: Optional Redis client for testing or DI.
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = False
        self._owns_client = redis_client is None

    async def connect(self) -> None:
        """Establish (or verify) the Redis connection. Call on app startup."""
        try:
            if self.redis is None:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=(
                        self.settings.redis_password.get_secret_value()
                        if self.settings.redis_password
                        else None
                    ),
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                self._owns_client = True
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._connected = False
            if self._owns_client:
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis is not None:
            if self._owns_client:
                await self.redis.aclose()
                self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Attempt to reconnect after a connection error. Returns True if reconnected."""
        if self.redis is None:
            return False
        if self._owns_client:
            try:
                await self.redis.aclose()
            except redis.RedisError:
                logger.debug("Ignoring error while closing broken Redis client")
            self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _call(
        self,
        op: str,
        target: str,
        fn: Callable[[redis.Redis], Awaitable[T]],
        default: T,
    ) -> T:
        """Run fn against the client; retry once after reconnect; never raise.

        Args:
            op: Operation name for log messages.
            target: Key or pattern for log messages.
            fn: Coroutine factory receiving the live client.
            default: Value returned when the cache is unavailable or fails.
        """
        if not self.is_available() or self.redis is None:
            return default
        try:
            return await fn(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect() and self.redis is not None:
                try:
                    return await fn(self.redis)
                except redis.RedisError:
                    logger.exception("Cache %s error for %s after reconnect", op, target)
                    return default
            logger.warning("Cache %s unavailable for %s (Redis disconnected)", op, target)
            return default
        except redis.RedisError:
            logger.exception("Cache %s error for %s", op, target)
            return default

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable.

        Args:
            key: Full cache key (namespace included).

        Returns:
            Cached value or None.
        """

        async def _get(client: redis.Redis) -> Any | None:
            value = await client.get(key)
            if value is None:
                logger.debug("Cache MISS: %s", key)
                return None
            logger.debug("Cache HIT: %s", key)
            try:
                return json.loads(value)
            except ValueError:
                logger.warning("Cache value for %s is not valid JSON; ignoring", key)
                return None

        return await self._call("get", key, _get, None)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL. Returns True on success.

        Args:
            key: Full cache key.
            value: Value to cache (JSON-serializable).
            ttl: Time-to-live in seconds (default 300).

        Returns:
            True if stored, False otherwise.
        """
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError):
            logger.warning("Cache set skipped for %s: value is not JSON-serializable", key)
            return False

        async def _set(client: redis.Redis) -> bool:
            await client.setex(key, ttl, serialized)
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
            return True

        return await self._call("set", key, _set, False)

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the delete reached Redis.

        Args:
            key: Full cache key to delete.
        """

        async def _delete(client: redis.Redis) -> bool:
            await client.delete(key)
            logger.debug("Cache DELETE: %s", key)
            return True

        return await self._call("delete", key, _delete, False)

    async def exists(self, key: str) -> bool:
        """Return True if key is present."""

        async def _exists(client: redis.Redis) -> bool:
            return bool(await client.exists(key))

        return await self._call("exists", key, _exists, False)

    async def scan_keys(self, pattern: str) -> list[str]:
        """Return every key matching pattern (SCAN, non-blocking)."""

        async def _scan(client: redis.Redis) -> list[str]:
            return [key async for key in client.scan_iter(match=pattern, count=_SCAN_CHUNK_SIZE)]

        return await self._call("scan", pattern, _scan, [])

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern using SCAN + batched UNLINK (non-blocking).

        Uses scan_iter to avoid KEYS blocking; collects keys in chunks and
        UNLINKs each chunk to minimize round-trips.

        Args:
            pattern: Redis SCAN match pattern (e.g. customer:datatable:customer_list:*).

        Returns:
            Number of keys deleted.
        """

        async def _delete_pattern(client: redis.Redis) -> int:
            deleted = 0
            chunk: list[str] = []
            async for key in client.scan_iter(match=pattern, count=_SCAN_CHUNK_SIZE):
                chunk.append(key)
                if len(chunk) >= _SCAN_CHUNK_SIZE:
                    deleted += int(await client.unlink(*chunk) or 0)
                    chunk = []
            if chunk:
                deleted += int(await client.unlink(*chunk) or 0)
            if deleted > 0:
                logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
            return deleted

        return await self._call("delete_pattern", pattern, _delete_pattern, 0)

    async def clear_all(self) -> bool:
        """Clear entire cache database. Use with caution.

        Returns:
            True if cleared, False otherwise.
        """

        async def _flush(client: redis.Redis) -> bool:
            await client.flushdb()
            logger.warning("Cache CLEARED: all keys deleted")
            return True

        return await self._call("clear_all", "*", _flush, False)
