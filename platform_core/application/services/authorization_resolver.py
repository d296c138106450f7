"""Authorization resolver: local relation first, then the monotonic grant chain.

Single pass per check:
1. The module-local relation (owner / admin / member), cached briefly.
   Any relation grants immediately.
2. Otherwise the "<entity>.can<Capability>" filter chain, seeded with
   False and the relation. Subscribers may only upgrade the decision;
   a returned False after a True is ignored and logged, a raising
   subscriber contributes nothing.
3. The chain outcome is cached per (actor, capability).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from platform_core.application.interfaces.services import RelationProvider
from platform_core.core.config import Settings, get_settings
from platform_core.core.constants import (
    CACHE_KEY_TYPE_GRANT,
    CACHE_KEY_TYPE_RELATION,
    CACHE_NAMESPACE_ACCESS,
)
from platform_core.domain.descriptors import CacheDescriptor
from platform_core.domain.enums import AccessType, Capability, GrantSource
from platform_core.domain.exceptions import AuthorizationException
from platform_core.domain.value_objects import EntityRelation, GrantDecision
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.extensions.registry import (
    ExtensionRegistry,
    hook_name,
    invoke_callback,
)
from platform_core.shared.context import get_current_actor_id

logger = logging.getLogger(__name__)


def access_cache_descriptor(entity: str) -> CacheDescriptor:
    """Cache shape of one entity's access decisions (namespace 'access')."""
    return CacheDescriptor(
        namespace=CACHE_NAMESPACE_ACCESS,
        entity_label=f"{entity} access",
        record_key_type=CACHE_KEY_TYPE_RELATION,
        key_map={
            CACHE_KEY_TYPE_RELATION: f"{entity}_{CACHE_KEY_TYPE_RELATION}",
            CACHE_KEY_TYPE_GRANT: f"{entity}_{CACHE_KEY_TYPE_GRANT}",
        },
    )


async def invalidate_access_cache(
    cache: CacheProtocol | None,
    entities: Iterable[str],
    actor_id: int | None = None,
    settings: Settings | None = None,
) -> bool:
    """Drop cached access decisions of entities.

    With actor_id, that actor's cached relations and grants (its roles
    changed or it was removed). Without it, every cached grant, since a
    role's capabilities changed for all of its holders.
    """
    ok = True
    for entity in entities:
        manager = EntityCacheManager(cache, access_cache_descriptor(entity), settings)
        if actor_id is None:
            ok = await manager.clear(CACHE_KEY_TYPE_GRANT) and ok
            continue
        ok = await manager.sweep(CACHE_KEY_TYPE_RELATION, actor_id) and ok
        ok = await manager.sweep(CACHE_KEY_TYPE_GRANT, actor_id) and ok
    return ok


class AuthorizationResolver:
    """Resolves view/edit/delete checks for one entity type.

    Args:
        entity: Entity name; selects the "<entity>.can*" hooks.
        relation_provider: Module-local relation lookup.
        registry: Extension registry holding the grant subscribers.
        cache: Cache backend; None disables decision caching.
        settings: Source of the relation and grant TTLs.
        current_actor: Accessor for the ambient actor id.
    """

    def __init__(
        self,
        entity: str,
        relation_provider: RelationProvider,
        registry: ExtensionRegistry,
        cache: CacheProtocol | None = None,
        settings: Settings | None = None,
        current_actor: Callable[[], int | None] = get_current_actor_id,
    ) -> None:
        self.entity = entity
        self.relation_provider = relation_provider
        self.registry = registry
        self.settings = settings or get_settings()
        self.cache = EntityCacheManager(cache, access_cache_descriptor(entity), self.settings)
        self.current_actor = current_actor

    async def get_relation(self, actor_id: int, entity_id: int) -> EntityRelation:
        """Module-local relation, from cache when available."""
        cached = await self.cache.get(CACHE_KEY_TYPE_RELATION, actor_id, entity_id)
        if cached is not None:
            try:
                return EntityRelation.from_dict(cached)
            except (KeyError, TypeError, ValueError):
                logger.warning(
                    "Discarding malformed cached relation %s/%s", actor_id, entity_id
                )
        relation = await self.relation_provider.get_relation(actor_id, entity_id)
        await self.cache.set(
            CACHE_KEY_TYPE_RELATION,
            relation.to_dict(),
            self.settings.cache_ttl_relation,
            actor_id,
            entity_id,
        )
        return relation

    async def _run_grant_chain(
        self, capability: Capability, relation: EntityRelation
    ) -> bool:
        name = hook_name(self.entity, capability.hook_suffix)
        decision = False
        for callback in self.registry.filters(name):
            try:
                result = await invoke_callback(callback, decision, relation)
            except Exception:
                logger.exception(
                    "Grant subscriber %r for %s failed; no contribution", callback, name
                )
                continue
            if decision and not result:
                logger.warning(
                    "Grant subscriber %r for %s tried to revoke a granted decision; ignored",
                    callback,
                    name,
                )
            decision = decision or bool(result)
        return decision

    async def resolve(
        self, capability: Capability, entity_id: int, actor_id: int | None = None
    ) -> GrantDecision:
        """Evaluate one (actor, entity instance, capability) check."""
        actor = actor_id if actor_id is not None else self.current_actor()
        if actor is None:
            return GrantDecision(
                None, self.entity, entity_id, capability, False, GrantSource.DENIED
            )

        relation = await self.get_relation(actor, entity_id)
        if relation.grants_access:
            return GrantDecision(
                actor,
                self.entity,
                entity_id,
                capability,
                True,
                GrantSource.RELATION,
                relation.access_type,
            )

        return await self._extension_decision(capability, relation)

    async def _extension_decision(
        self, capability: Capability, relation: EntityRelation
    ) -> GrantDecision:
        actor = relation.actor_id
        cached = await self.cache.get(CACHE_KEY_TYPE_GRANT, actor, capability.value)
        if cached is not None:
            granted = bool(cached)
            source = GrantSource.CACHE
        else:
            granted = await self._run_grant_chain(capability, relation)
            await self.cache.set(
                CACHE_KEY_TYPE_GRANT,
                granted,
                self.settings.cache_ttl_grants,
                actor,
                capability.value,
            )
            source = GrantSource.EXTENSION if granted else GrantSource.DENIED
        return GrantDecision(
            actor,
            self.entity,
            relation.entity_id,
            capability,
            granted,
            source,
            AccessType.PLATFORM if granted else AccessType.NONE,
        )

    async def resolve_unrelated(
        self, capability: Capability, actor_id: int | None = None
    ) -> GrantDecision:
        """Grant chain only, for checks not tied to one record (list all, create).

        The chain sees an empty relation with entity_id 0.
        """
        actor = actor_id if actor_id is not None else self.current_actor()
        if actor is None:
            return GrantDecision(None, self.entity, 0, capability, False, GrantSource.DENIED)
        return await self._extension_decision(capability, EntityRelation.none(actor, 0))

    async def can(
        self, capability: Capability, entity_id: int, actor_id: int | None = None
    ) -> bool:
        return (await self.resolve(capability, entity_id, actor_id)).granted

    async def can_view(self, entity_id: int, actor_id: int | None = None) -> bool:
        return await self.can(Capability.VIEW, entity_id, actor_id)

    async def can_edit(self, entity_id: int, actor_id: int | None = None) -> bool:
        return await self.can(Capability.EDIT, entity_id, actor_id)

    async def can_delete(self, entity_id: int, actor_id: int | None = None) -> bool:
        return await self.can(Capability.DELETE, entity_id, actor_id)

    async def require(
        self, capability: Capability, entity_id: int, actor_id: int | None = None
    ) -> GrantDecision:
        """Return the granted decision or raise AuthorizationException."""
        decision = await self.resolve(capability, entity_id, actor_id)
        if not decision.granted:
            raise AuthorizationException(resource=self.entity, action=capability.value)
        return decision

    async def invalidate_actor(self, actor_id: int) -> bool:
        """Drop cached relations and grants of one actor (e.g. after a role change)."""
        return await invalidate_access_cache(
            self.cache.cache, [self.entity], actor_id, self.settings
        )
