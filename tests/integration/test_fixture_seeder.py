"""Integration tests for FixtureSeeder (reproducible ids and attributes, conflicts, cleanup)."""

from sqlalchemy import func, select

from platform_core.application.services.authorization_resolver import access_cache_descriptor
from platform_core.application.services.fixture_seeder import FixtureSeeder
from platform_core.core.constants import CACHE_KEY_TYPE_GRANT, CACHE_KEY_TYPE_RELATION
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.persistence.models import (
    Actor,
    ActorRole,
    PlatformStaff,
    RoleCapability,
)
from platform_core.infrastructure.persistence.repositories import IdentityAssigner


def _access_cache(cache, entity: str = "customer") -> EntityCacheManager:
    return EntityCacheManager(cache, access_cache_descriptor(entity))


async def _staff_rows(db) -> list[tuple]:
    rows = await db.execute(
        select(PlatformStaff.id, PlatformStaff.actor_id, PlatformStaff.employee_id).order_by(
            PlatformStaff.id
        )
    )
    return [tuple(r) for r in rows]


async def test_seed_places_fixtures_at_requested_ids(db_session, cache) -> None:
    result = await FixtureSeeder(db_session, cache=cache).seed_platform_staff(3, start_id=1000)

    assert result.ok
    assert (result.actors_created, result.entities_created) == (3, 3)
    assert await _staff_rows(db_session) == [
        (1000, 1000, "EMP-01000"),
        (1001, 1001, "EMP-01001"),
        (1002, 1002, "EMP-01002"),
    ]
    logins = (await db_session.execute(select(Actor.login).order_by(Actor.id))).scalars().all()
    assert logins == ["staff01000", "staff01001", "staff01002"]
    roles = await db_session.scalar(
        select(func.count()).select_from(ActorRole).where(ActorRole.role == "platform_support")
    )
    assert roles == 3
    assert await db_session.scalar(select(func.count()).select_from(RoleCapability)) > 0


def test_fixtures_are_reproducible() -> None:
    a = FixtureSeeder(db=None, seed=7)
    b = FixtureSeeder(db=None, seed=7)
    other = FixtureSeeder(db=None, seed=8)
    assert a.fixture(3, 1000) == b.fixture(3, 1000)
    assert a.fixture(3, 1000) != a.fixture(4, 1000)
    assert a.fixture(3, 1000)[1]["department"] is not None
    assert any(a.fixture(i, 1000) != other.fixture(i, 1000) for i in range(5))


async def test_occupied_id_is_reported_and_rolled_back(db_session, make_actor) -> None:
    squatter = await make_actor("squatter")
    await IdentityAssigner(db_session).reassign("actor", squatter, 1001)

    result = await FixtureSeeder(db_session).seed_platform_staff(3, start_id=1000)

    assert result.entities_created == 2
    assert len(result.errors) == 1
    assert "1001" in result.errors[0]
    actor_ids = (await db_session.execute(select(Actor.id).order_by(Actor.id))).scalars().all()
    assert actor_ids == [1000, 1001, 1002]
    assert await db_session.scalar(select(Actor.login).where(Actor.id == 1001)) == "squatter"
    assert [row[0] for row in await _staff_rows(db_session)] == [1000, 1002]


async def test_rejected_fixture_is_reported(db_session) -> None:
    seeder = FixtureSeeder(db_session)
    assert (await seeder.seed_platform_staff(1, start_id=1000)).ok

    # Fixture 1 of a range starting at 999 reuses login staff01000.
    result = await seeder.seed_platform_staff(2, start_id=999)

    assert result.entities_created == 1
    assert result.errors == ["fixture 1000: rejected by a constraint"]
    assert [row[0] for row in await _staff_rows(db_session)] == [999, 1000]


async def test_ensure_roles_is_idempotent(db_session) -> None:
    seeder = FixtureSeeder(db_session)
    inserted = await seeder.ensure_roles()
    assert inserted > 0
    assert await seeder.ensure_roles() == 0


async def test_delete_range_removes_staff_actors_and_roles(db_session, cache) -> None:
    seeder = FixtureSeeder(db_session, cache=cache)
    await seeder.seed_platform_staff(3, start_id=2000)

    deleted = await seeder.delete_range(2000, 2001)

    assert deleted == 2
    assert [row[0] for row in await _staff_rows(db_session)] == [2002]
    remaining_roles = (await db_session.execute(select(ActorRole.actor_id))).scalars().all()
    assert remaining_roles == [2002]
    assert await seeder.actor_store.find(2000) is None
    assert (await seeder.actor_store.find(2002))["login"] == "staff02002"


async def test_ensure_roles_drops_cached_grants_when_roles_change(db_session, cache) -> None:
    access = _access_cache(cache)
    await access.set(CACHE_KEY_TYPE_GRANT, False, None, 7, "view")
    seeder = FixtureSeeder(db_session, cache=cache)

    assert await seeder.ensure_roles() > 0
    assert await access.get(CACHE_KEY_TYPE_GRANT, 7, "view") is None

    # Nothing inserted, nothing dropped.
    await access.set(CACHE_KEY_TYPE_GRANT, False, None, 7, "view")
    assert await seeder.ensure_roles() == 0
    assert await access.get(CACHE_KEY_TYPE_GRANT, 7, "view") is False


async def test_delete_range_drops_cached_access_of_removed_actors(db_session, cache) -> None:
    seeder = FixtureSeeder(db_session, cache=cache)
    await seeder.seed_platform_staff(2, start_id=3000)
    customers, staff = _access_cache(cache), _access_cache(cache, "platform_staff")
    for actor_id in (3000, 3001):
        await customers.set(CACHE_KEY_TYPE_GRANT, True, None, actor_id, "view")
        await staff.set(CACHE_KEY_TYPE_RELATION, {"is_owner": True}, None, actor_id, actor_id)

    assert await seeder.delete_range(3000, 3000) == 1

    assert await customers.get(CACHE_KEY_TYPE_GRANT, 3000, "view") is None
    assert await staff.get(CACHE_KEY_TYPE_RELATION, 3000, 3000) is None
    assert await customers.get(CACHE_KEY_TYPE_GRANT, 3001, "view") is True
    assert await staff.get(CACHE_KEY_TYPE_RELATION, 3001, 3001) == {"is_owner": True}
