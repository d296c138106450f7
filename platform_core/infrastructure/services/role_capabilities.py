"""Resolves actor capabilities from roles (implements RoleCapabilityLookup)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.infrastructure.persistence.models import ActorRole, RoleCapability


class RoleCapabilityResolver:
    """Resolves actor capabilities by joining actor_role and role_capability."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_capabilities(self, actor_id: int, role_prefix: str = "") -> set[str]:
        """Return capability codes carried by the actor's roles."""
        query = (
            select(RoleCapability.capability)
            .select_from(ActorRole)
            .join(RoleCapability, RoleCapability.role == ActorRole.role)
            .where(ActorRole.actor_id == actor_id)
        )
        if role_prefix:
            query = query.where(ActorRole.role.startswith(role_prefix, autoescape=True))
        result = await self.db.execute(query)
        return {row[0] for row in result.fetchall()}
