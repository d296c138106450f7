"""Cache: Redis service, key derivation and per-entity cache managers.

CacheService uses platform_core.core.config; key format is in keys.py (DRY).
EntityCacheManager is the only cache entry point for entity code.
"""

from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.cache.keys import (
    build_key,
    escape_pattern,
    namespace_pattern,
    namespaced,
    prefix_pattern,
)
from platform_core.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "CacheService",
    "EntityCacheManager",
    "build_key",
    "escape_pattern",
    "namespace_pattern",
    "namespaced",
    "prefix_pattern",
]
