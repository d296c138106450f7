"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the cache, the current actor and the
per-entity context (store + authorization resolver). Routes depend only
on these; no manual store/resolver construction in endpoints.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.application.services.authorization_resolver import AuthorizationResolver
from platform_core.core.config import get_settings
from platform_core.domain.descriptors import EntityDescriptor
from platform_core.domain.exceptions import AuthenticationException, ResourceNotFoundException
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.persistence.database import get_db, get_db_transactional
from platform_core.infrastructure.persistence.repositories import EntityStore
from platform_core.modules import (
    CACHE_DESCRIPTORS_BY_TABLE,
    build_registry,
    get_descriptor,
    get_relation_provider,
)
from platform_core.shared.context import clear_current_actor, set_current_actor


def get_cache(request: Request) -> CacheProtocol | None:
    """Cache service created at startup (None when Redis is disabled)."""
    return getattr(request.app.state, "cache", None)


async def get_current_actor(request: Request) -> AsyncGenerator[int, None]:
    """Resolve the acting actor from the actor header and bind it to the request context.

    Identity is established upstream (gateway / auth service); this service
    trusts the header. Missing or malformed values are rejected with 401.
    """
    name = get_settings().actor_header_name
    value = request.headers.get(name)
    if not value:
        raise AuthenticationException(f"Missing required header: {name}")
    try:
        actor_id = int(value)
    except ValueError:
        raise AuthenticationException(f"Invalid {name} header") from None
    if actor_id <= 0:
        raise AuthenticationException(f"Invalid {name} header")
    set_current_actor(actor_id)
    try:
        yield actor_id
    finally:
        clear_current_actor()


@dataclass
class EntityContext:
    """Everything an entity route needs for one request."""

    descriptor: EntityDescriptor
    store: EntityStore
    resolver: AuthorizationResolver
    actor_id: int

    @property
    def name(self) -> str:
        return self.descriptor.name


def _build_entity_context(
    entity: str,
    db: AsyncSession,
    cache: CacheProtocol | None,
    actor_id: int,
) -> EntityContext:
    descriptor = get_descriptor(entity)
    provider = get_relation_provider(entity, db)
    if provider is None:
        # Entity types without relations (actor) are not exposed over HTTP.
        raise ResourceNotFoundException("entity type", entity)
    settings = get_settings()
    registry = build_registry(db, settings)
    store = EntityStore(
        db,
        descriptor,
        EntityCacheManager(cache, descriptor.cache, settings),
        registry,
        related_caches=CACHE_DESCRIPTORS_BY_TABLE,
    )
    resolver = AuthorizationResolver(
        entity,
        provider,
        registry,
        cache=cache,
        settings=settings,
        current_actor=lambda: actor_id,
    )
    return EntityContext(descriptor=descriptor, store=store, resolver=resolver, actor_id=actor_id)


async def get_entity_context(
    entity: Annotated[str, Path(description="Entity type, e.g. customer")],
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
    actor_id: Annotated[int, Depends(get_current_actor)],
) -> EntityContext:
    """Entity context for read operations."""
    return _build_entity_context(entity, db, cache, actor_id)


async def get_entity_context_for_write(
    entity: Annotated[str, Path(description="Entity type, e.g. customer")],
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
    actor_id: Annotated[int, Depends(get_current_actor)],
) -> EntityContext:
    """Entity context for writes (transactional: commit on success, rollback on error)."""
    return _build_entity_context(entity, db, cache, actor_id)
