"""Reproducible fixture generation for platform staff.

Offline tool: fixture n is always created as actor id start_id + n and
platform_staff id start_id + n, with the same login, employee id and
attributes on every run (seeded PRNG). Each fixture is one savepoint, so
a conflicting or rejected fixture is rolled back and reported without
affecting the others.

Not safe under concurrency: identity assignment checks target ids without
locking. Run one seeder at a time per database.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from platform_core.application.services.actor_linked_entity_service import (
    ActorLinkedEntityService,
)
from platform_core.application.services.authorization_resolver import invalidate_access_cache
from platform_core.core.constants import HOOK_BEFORE_INSERT
from platform_core.domain.exceptions import IdentityConflictException
from platform_core.infrastructure.cache.cache_protocol import CacheProtocol
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.extensions.registry import ExtensionRegistry
from platform_core.infrastructure.persistence.models import (
    ActorRole,
    PlatformStaff,
    RoleCapability,
)
from platform_core.infrastructure.persistence.repositories.entity_store import EntityStore
from platform_core.infrastructure.persistence.repositories.identity_assignment import (
    IdentityAssigner,
    static_identity_filter,
)
from platform_core.modules import CACHE_DESCRIPTORS_BY_TABLE, RELATION_PROVIDERS
from platform_core.modules.actor import ACTOR
from platform_core.modules.platform_staff import PLATFORM_ROLES, PLATFORM_STAFF

logger = logging.getLogger(__name__)

_DEPARTMENTS = ("Support", "Operations", "Finance", "Sales", "Engineering")
_FIRST_NAMES = ("Amina", "Brian", "Grace", "Joseph", "Ruth", "Samuel", "Esther", "David")
_LAST_NAMES = ("Okello", "Namusoke", "Mugisha", "Achieng", "Kato", "Nansubuga")
_HIRE_DATE_BASE = date(2020, 1, 6)

# Entity types whose access decisions are cached per actor.
_ACCESS_ENTITIES = tuple(RELATION_PROVIDERS)


@dataclass
class SeedResult:
    """Counts of created records and per-fixture error messages."""

    actors_created: int = 0
    entities_created: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class FixtureSeeder:
    """Creates and removes deterministic platform staff fixtures.

    Args:
        db: Session; the caller commits.
        cache: Cache backend whose entity entries are invalidated as
            fixtures are written (None to run without a cache).
        seed: PRNG seed for fixture attributes.
    """

    def __init__(
        self, db: AsyncSession, cache: CacheProtocol | None = None, seed: int = 42
    ) -> None:
        self.db = db
        self.cache = cache
        self.seed = seed
        self.registry = ExtensionRegistry()
        assigner = IdentityAssigner(
            db, cache=cache, cache_descriptors=CACHE_DESCRIPTORS_BY_TABLE
        )
        self.actor_store = EntityStore(
            db,
            ACTOR,
            EntityCacheManager(cache, ACTOR.cache),
            self.registry,
            assigner,
            related_caches=CACHE_DESCRIPTORS_BY_TABLE,
        )
        self.staff_store = EntityStore(
            db,
            PLATFORM_STAFF,
            EntityCacheManager(cache, PLATFORM_STAFF.cache),
            self.registry,
            assigner,
            related_caches=CACHE_DESCRIPTORS_BY_TABLE,
        )
        for descriptor in (ACTOR, PLATFORM_STAFF):
            self.registry.add_filter(
                descriptor.hook(HOOK_BEFORE_INSERT),
                static_identity_filter(primary_key=descriptor.primary_key),
            )
        self.linker = ActorLinkedEntityService(self.actor_store, self.staff_store)

    async def ensure_roles(self, roles: Mapping[str, Sequence[str]] = PLATFORM_ROLES) -> int:
        """Insert missing role -> capability rows. Returns number inserted.

        Cached grant decisions are dropped when a role gains capabilities.
        """
        result = await self.db.execute(select(RoleCapability.role, RoleCapability.capability))
        existing = {(row[0], row[1]) for row in result.fetchall()}
        missing = [
            {"role": role, "capability": capability}
            for role, capabilities in roles.items()
            for capability in capabilities
            if (role, capability) not in existing
        ]
        if missing:
            await self.db.execute(insert(RoleCapability), missing)
            await invalidate_access_cache(self.cache, _ACCESS_ENTITIES)
        return len(missing)

    def fixture(self, index: int, start_id: int) -> tuple[dict, dict]:
        """Actor and staff input of fixture index (identical on every run)."""
        rng = random.Random(f"{self.seed}:{index}")
        number = start_id + index
        first = rng.choice(_FIRST_NAMES)
        last = rng.choice(_LAST_NAMES)
        actor_data = {
            "login": f"staff{number:05d}",
            "email": f"staff{number:05d}@platform.test",
            "display_name": f"{first} {last}",
        }
        staff_data = {
            "employee_id": f"EMP-{number:05d}",
            "full_name": f"{first} {last}",
            "department": rng.choice(_DEPARTMENTS),
            "hire_date": _HIRE_DATE_BASE + timedelta(days=7 * index),
            "phone": f"+256700{rng.randrange(100000, 999999)}",
        }
        return actor_data, staff_data

    async def seed_platform_staff(
        self,
        count: int,
        start_id: int = 1000,
        roles: Sequence[str] = ("platform_support",),
    ) -> SeedResult:
        """Create count staff fixtures at ids start_id .. start_id + count - 1."""
        result = SeedResult()
        await self.ensure_roles()
        for index in range(count):
            target = start_id + index
            actor_data, staff_data = self.fixture(index, start_id)
            try:
                async with self.db.begin_nested():
                    linked = await self.linker.create_with_actor(
                        actor_data, staff_data, actor_id=target, entity_id=target
                    )
                    if linked is None:
                        result.errors.append(f"fixture {target}: rejected by a constraint")
                        continue
                    if roles:
                        await self.db.execute(
                            insert(ActorRole),
                            [{"actor_id": linked.actor_id, "role": role} for role in roles],
                        )
                        await invalidate_access_cache(
                            self.cache, _ACCESS_ENTITIES, linked.actor_id
                        )
            except IdentityConflictException as e:
                result.errors.append(f"fixture {target}: {e.message}")
                continue
            result.actors_created += 1
            result.entities_created += 1
        logger.info(
            "Seeded %s platform staff fixtures from id %s (%s errors)",
            result.entities_created,
            start_id,
            len(result.errors),
        )
        return result

    async def delete_range(self, start_id: int, end_id: int) -> int:
        """Delete staff fixtures (and their actors) with actor ids in [start_id, end_id].

        Returns:
            Number of staff records deleted.
        """
        rows = await self.db.execute(
            select(PlatformStaff.id, PlatformStaff.actor_id).where(
                PlatformStaff.actor_id.between(start_id, end_id)
            )
        )
        deleted = 0
        for staff_id, actor_id in rows.fetchall():
            if await self.staff_store.delete(staff_id):
                deleted += 1
            await self.db.execute(delete(ActorRole).where(ActorRole.actor_id == actor_id))
            await self.actor_store.delete(actor_id)
            await invalidate_access_cache(self.cache, _ACCESS_ENTITIES, actor_id)
        logger.info("Deleted %s platform staff fixtures in [%s, %s]", deleted, start_id, end_id)
        return deleted
