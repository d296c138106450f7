"""Service interfaces (ports) for the application layer.

Protocols define contracts for infrastructure implementations (DIP).
"""

from __future__ import annotations

from typing import Protocol

from platform_core.domain.value_objects import EntityRelation


class RelationProvider(Protocol):
    """Module-local relation lookup for one entity type.

    Implementations answer from direct relational lookups only (ownership,
    administration of the owning unit, membership); cross-module grants go
    through the extension registry instead.
    """

    entity: str

    async def get_relation(self, actor_id: int, entity_id: int) -> EntityRelation:
        """Return the relation of actor_id to entity_id (EntityRelation.none() if unrelated)."""
        ...

    async def related_ids(self, actor_id: int) -> list[int]:
        """Ids of the records actor_id owns, administers or belongs to, ascending."""
        ...


class RoleCapabilityLookup(Protocol):
    """Protocol for resolving capabilities an actor holds through its roles."""

    async def get_capabilities(self, actor_id: int, role_prefix: str = "") -> set[str]:
        """Return capability codes of the actor's roles (optionally only roles with role_prefix)."""
        ...
