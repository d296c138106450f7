"""Per-entity cache manager: namespaced keys, paged results, prefix sweeps.

One EntityCacheManager serves one CacheDescriptor. It is the only place
entity code talks to the cache backend, and it never raises: a backend
outage or a bad key component is logged and reported as a miss (None) or
a failed write (False). The relational store stays the system of record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from platform_core.core.config import Settings, get_settings
from platform_core.domain.descriptors import CacheDescriptor, PagedQuery
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.keys import (
    build_key,
    namespace_pattern,
    namespaced,
    prefix_pattern,
)
from platform_core.shared.utils.serialization import content_hash

logger = logging.getLogger(__name__)


class EntityCacheManager:
    """Cache operations for one entity type, driven by its CacheDescriptor.

    Backend keys are "<namespace>:<derived key>" where the derived key is
    built by build_key() from the resolved key prefix and the components.
    A None cache (or an unavailable one) turns every read into a miss.
    """

    def __init__(
        self,
        cache: CacheProtocol | None,
        descriptor: CacheDescriptor,
        settings: Settings | None = None,
    ) -> None:
        self.cache = cache
        self.descriptor = descriptor
        self.settings = settings or get_settings()

    @property
    def label(self) -> str:
        return self.descriptor.entity_label

    @property
    def default_ttl(self) -> int:
        return self.descriptor.default_ttl or self.settings.cache_ttl_default

    def _available(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    def _derive(self, key_type: str, *components: Any) -> str:
        """Derived key (without namespace) for a logical key type."""
        return build_key(
            self.descriptor.resolve(key_type),
            *components,
            max_length=self.settings.cache_key_max_length,
        )

    def make_key(self, key_type: str, *components: Any) -> str:
        """Full backend key for key_type and components."""
        return namespaced(self.descriptor.namespace, self._derive(key_type, *components))

    # ----- basic operations -----

    async def get(self, key_type: str, *components: Any) -> Any | None:
        """Return the cached value, or None on miss or backend failure."""
        if not self._available():
            return None
        try:
            key = self.make_key(key_type, *components)
            value = await self.cache.get(key)
        except Exception as e:
            logger.warning("[%s cache] get %s failed: %s", self.label, key_type, e)
            return None
        if value is None:
            logger.debug("[%s cache] miss %s", self.label, key)
        return value

    async def set(
        self, key_type: str, value: Any, ttl: int | None = None, *components: Any
    ) -> bool:
        """Store value under key_type/components; ttl defaults to the descriptor's TTL."""
        if not self._available():
            return False
        try:
            key = self.make_key(key_type, *components)
            return bool(await self.cache.set(key, value, ttl=ttl or self.default_ttl))
        except Exception as e:
            logger.warning("[%s cache] set %s failed: %s", self.label, key_type, e)
            return False

    async def delete(self, key_type: str, *components: Any) -> bool:
        if not self._available():
            return False
        try:
            return bool(await self.cache.delete(self.make_key(key_type, *components)))
        except Exception as e:
            logger.warning("[%s cache] delete %s failed: %s", self.label, key_type, e)
            return False

    async def exists(self, key_type: str, *components: Any) -> bool:
        if not self._available():
            return False
        try:
            return bool(await self.cache.exists(self.make_key(key_type, *components)))
        except Exception as e:
            logger.warning("[%s cache] exists %s failed: %s", self.label, key_type, e)
            return False

    # ----- paged results -----

    def _paged_components(self, query: PagedQuery) -> list[Any]:
        components: list[Any] = [
            query.context,
            query.access_scope,
            f"start_{query.offset}",
            f"length_{query.limit}",
            content_hash(query.search or ""),
            query.sort_column,
            query.sort_direction.lower(),
        ]
        for name in sorted(query.extra_params or {}):
            components.append(f"{name}_{content_hash(query.extra_params[name])}")
        return components

    def paged_key(self, query: PagedQuery) -> str:
        """Full backend key of one paginated query shape."""
        return self.make_key(self.descriptor.paged_key_type, *self._paged_components(query))

    def _paged_key_components(self, query: PagedQuery) -> list[Any] | None:
        """Key components of a cacheable query; None (logged) for anything else."""
        try:
            if query.is_valid():
                return self._paged_components(query)
        except Exception as e:
            logger.warning("[%s cache] paged key for %r failed: %s", self.label, query, e)
            return None
        logger.warning("[%s cache] invalid paged query, not cached: %r", self.label, query)
        return None

    async def get_paged(self, query: PagedQuery) -> Any | None:
        """Return the cached result of a paginated query, or None."""
        components = self._paged_key_components(query)
        if components is None:
            return None
        return await self.get(self.descriptor.paged_key_type, *components)

    async def set_paged(self, query: PagedQuery, value: Any) -> bool:
        """Cache the result of a paginated query with the short paged TTL."""
        components = self._paged_key_components(query)
        if components is None:
            return False
        return await self.set(
            self.descriptor.paged_key_type,
            value,
            self.settings.cache_ttl_paged,
            *components,
        )

    async def get_paged_result(
        self,
        context: str,
        access_scope: str,
        offset: int,
        limit: int,
        search: str = "",
        sort_column: str = "",
        sort_direction: str = "asc",
        extra_params: Mapping[str, Any] | None = None,
    ) -> Any | None:
        return await self.get_paged(
            PagedQuery(
                context=context,
                access_scope=access_scope,
                offset=offset,
                limit=limit,
                search=search,
                sort_column=sort_column,
                sort_direction=sort_direction,
                extra_params=extra_params,
            )
        )

    async def set_paged_result(
        self,
        context: str,
        access_scope: str,
        offset: int,
        limit: int,
        search: str,
        sort_column: str,
        sort_direction: str,
        value: Any,
        extra_params: Mapping[str, Any] | None = None,
    ) -> bool:
        return await self.set_paged(
            PagedQuery(
                context=context,
                access_scope=access_scope,
                offset=offset,
                limit=limit,
                search=search,
                sort_column=sort_column,
                sort_direction=sort_direction,
                extra_params=extra_params,
            ),
            value,
        )

    async def invalidate_paged_result(
        self,
        context: str,
        filters: PagedQuery | Mapping[str, Any] | None = None,
    ) -> bool:
        """Invalidate paginated results of one list context.

        Args:
            context: List context (e.g. 'customer_list').
            filters: Exact query shape (PagedQuery or a mapping of its fields
                other than context). When given, only that one key is
                deleted; otherwise every paged key of the context is swept.

        Returns:
            True if the backend accepted the invalidation.
        """
        if not context:
            logger.warning("[%s cache] invalidate_paged_result without context", self.label)
            return False
        if filters is None:
            prefix = self._derive(self.descriptor.paged_key_type, context)
            return await self._sweep(prefix)
        try:
            if isinstance(filters, PagedQuery):
                query = replace(filters, context=context)
            else:
                fields = {k: v for k, v in filters.items() if k != "context"}
                query = PagedQuery(context=context, **fields)
        except TypeError as e:
            logger.warning("[%s cache] invalid paged filters for %s: %s", self.label, context, e)
            return False
        components = self._paged_key_components(query)
        if components is None:
            return False
        return await self.delete(self.descriptor.paged_key_type, *components)

    # ----- bulk invalidation -----

    async def _sweep(self, prefix: str) -> bool:
        """Delete the key equal to prefix and every key below it in the namespace."""
        if not self._available():
            return False
        namespace = self.descriptor.namespace
        try:
            await self.cache.delete(namespaced(namespace, prefix))
            deleted = await self.cache.delete_pattern(prefix_pattern(namespace, prefix))
        except Exception as e:
            logger.warning("[%s cache] sweep %s failed: %s", self.label, prefix, e)
            return False
        logger.debug("[%s cache] swept %s (%s keys)", self.label, prefix, deleted)
        return True

    async def sweep(self, key_type: str, *components: Any) -> bool:
        """Delete every entry of key_type whose components start with components."""
        return await self._sweep(self._derive(key_type, *components))

    async def clear(self, key_type: str | None = None) -> bool:
        """Clear one key type's entries, or every entry in the namespace when omitted."""
        if key_type is not None:
            return await self.sweep(key_type)
        if not self._available():
            return False
        try:
            deleted = await self.cache.delete_pattern(
                namespace_pattern(self.descriptor.namespace)
            )
        except Exception as e:
            logger.warning("[%s cache] clear failed: %s", self.label, e)
            return False
        logger.info(
            "[%s cache] cleared namespace %s (%s keys)",
            self.label,
            self.descriptor.namespace,
            deleted,
        )
        return True

    async def invalidate_record(self, record_id: Any | None = None) -> bool:
        """Invalidate everything a mutation of one record can make stale.

        Deletes the record key (when record_id is given), sweeps every
        collection key type (list, stats, ...) and every paged result.
        """
        ok = True
        if record_id is not None:
            ok = await self.delete(self.descriptor.record_key_type, record_id) and ok
        for key_type in self.descriptor.collection_key_types:
            ok = await self.clear(key_type) and ok
        ok = await self.clear(self.descriptor.paged_key_type) and ok
        return ok
