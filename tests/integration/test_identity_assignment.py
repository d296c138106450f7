"""Integration tests for deterministic identity assignment (SQLite, FK enforcement on)."""

import pytest
from sqlalchemy import insert, select

from platform_core.core.constants import STATIC_ID_FIELD
from platform_core.domain.enums import IdentityAssignmentStatus
from platform_core.domain.exceptions import IdentityConflictException, ResourceNotFoundException
from platform_core.infrastructure.persistence.models import (
    Actor,
    ActorRole,
    Customer,
    PlatformStaff,
)
from platform_core.infrastructure.persistence.repositories import (
    IdentityAssigner,
    static_identity_filter,
)
from platform_core.modules import ACTOR, CACHE_DESCRIPTORS_BY_TABLE, CUSTOMER


async def _role_actor_ids(db) -> list[int]:
    return list((await db.execute(select(ActorRole.actor_id))).scalars())


def test_static_identity_filter() -> None:
    inject = static_identity_filter()
    assert inject({"login": "a"}, {STATIC_ID_FIELD: "500"}) == {"login": "a", "id": 500}
    assert inject({"login": "a"}, {"login": "a"}) == {"login": "a"}
    assert inject({"login": "a"}, {STATIC_ID_FIELD: ""}) == {"login": "a"}


async def test_dependents_of_actor(db_session) -> None:
    dependents = set(IdentityAssigner(db_session).dependents_of("actor"))
    assert {
        ("actor_role", "actor_id"),
        ("customer", "actor_id"),
        ("branch", "admin_actor_id"),
        ("customer_employee", "actor_id"),
        ("platform_staff", "actor_id"),
    } <= dependents


async def test_reassign_moves_record_and_dependents(db_session, make_actor) -> None:
    actor_id = await make_actor("mover", roles=("platform_support", "platform_auditor"))
    assigner = IdentityAssigner(db_session)

    assignment = await assigner.reassign("actor", actor_id, 700)

    assert assignment.status is IdentityAssignmentStatus.ASSIGNED
    assert assignment.effective_id == 700
    assert assignment.dependents_updated == 2
    login = await db_session.scalar(select(Actor.login).where(Actor.id == 700))
    assert login == "mover"
    assert await db_session.scalar(select(Actor.id).where(Actor.id == actor_id)) is None
    assert await _role_actor_ids(db_session) == [700, 700]


async def test_reassign_same_id_is_unchanged(db_session, make_actor) -> None:
    actor_id = await make_actor("same")
    assignment = await IdentityAssigner(db_session).reassign("actor", actor_id, actor_id)
    assert assignment.status is IdentityAssignmentStatus.UNCHANGED
    assert assignment.effective_id == actor_id


async def test_reassign_to_occupied_id_is_conflict(db_session, make_actor) -> None:
    first = await make_actor("first")
    second = await make_actor("second", roles=("platform_support",))
    assignment = await IdentityAssigner(db_session).reassign("actor", second, first)
    assert assignment.is_conflict
    assert assignment.effective_id == second
    assert await _role_actor_ids(db_session) == [second]


async def test_reassign_unknown_source_raises(db_session) -> None:
    with pytest.raises(ResourceNotFoundException):
        await IdentityAssigner(db_session).reassign("actor", 12345, 1)


async def test_reassign_unknown_table_raises(db_session) -> None:
    with pytest.raises(ValueError):
        await IdentityAssigner(db_session).reassign("invoice", 1, 2)


async def test_failed_rewrite_leaves_no_partial_state(db_session, make_actor) -> None:
    """A failure mid-rewrite rolls back the primary key and every dependent."""
    actor_id = await make_actor("atomic", roles=("platform_support",))
    await db_session.execute(
        insert(PlatformStaff).values(actor_id=actor_id, employee_id="E-1", full_name="Atomic")
    )
    assigner = IdentityAssigner(db_session)
    original = assigner.dependents_of

    def dependents_with_bogus_column(table_name):
        return original(table_name) + [("platform_staff", "no_such_column")]

    assigner.dependents_of = dependents_with_bogus_column
    with pytest.raises(KeyError):
        await assigner.reassign("actor", actor_id, 800)

    assert await db_session.scalar(select(Actor.id).where(Actor.id == actor_id)) == actor_id
    assert await db_session.scalar(select(Actor.id).where(Actor.id == 800)) is None
    assert await _role_actor_ids(db_session) == [actor_id]
    staff_actor = await db_session.scalar(select(PlatformStaff.actor_id))
    assert staff_actor == actor_id


async def test_store_create_with_static_id(make_store, registry, db_session) -> None:
    registry.add_filter("actor.beforeInsert", static_identity_filter())
    store = make_store(ACTOR, IdentityAssigner(db_session))
    new_id = await store.create({"login": "fixed", "email": "f@example.test", STATIC_ID_FIELD: 500})
    assert new_id == 500
    assert (await store.find(500))["login"] == "fixed"


async def test_store_create_static_id_conflict_keeps_store_assigned_id(
    make_store, registry, db_session, make_actor
) -> None:
    """Requesting an occupied id reports a conflict; the new record keeps its own id."""
    occupant = await make_actor("occupant")
    await IdentityAssigner(db_session).reassign("actor", occupant, 500)
    created = []
    registry.add_filter("actor.beforeInsert", static_identity_filter())
    registry.add_listener("actor.created", lambda new_id, payload: created.append(new_id))
    store = make_store(ACTOR, IdentityAssigner(db_session))

    with pytest.raises(IdentityConflictException) as exc_info:
        await store.create({"login": "late", "email": "l@example.test", STATIC_ID_FIELD: 500})

    exc = exc_info.value
    assert exc.requested_id == 500
    assert exc.current_id != 500
    assert (await store.find(500))["login"] == "occupant"
    assert (await store.find(exc.current_id))["login"] == "late"
    assert created == [exc.current_id]


async def test_reassign_reports_and_drops_cached_dependents(
    db_session, cache, make_store, make_actor
) -> None:
    """Cached records whose foreign key was rewritten are re-read after a move."""
    actor_id = await make_actor("cached")
    customers = make_store(CUSTOMER)
    customer_id = await customers.create({"code": "C", "name": "C", "actor_id": actor_id})
    assert (await customers.find(customer_id))["actor_id"] == actor_id

    assigner = IdentityAssigner(
        db_session, cache=cache, cache_descriptors=CACHE_DESCRIPTORS_BY_TABLE
    )
    assignment = await assigner.reassign("actor", actor_id, 900)

    assert assignment.touched["customer"] == frozenset({customer_id})
    assert assignment.touched["actor"] == frozenset({actor_id, 900})
    assert (await customers.find(customer_id))["actor_id"] == 900
    assert await db_session.scalar(select(Customer.actor_id)) == 900


async def test_store_create_with_static_id_drops_entry_at_vacated_key(
    make_store, registry, db_session
) -> None:
    """The key the record was inserted under is not served from cache after the move."""
    registry.add_filter("actor.beforeInsert", static_identity_filter())
    actors = make_store(ACTOR, IdentityAssigner(db_session))
    record_type = ACTOR.cache.record_key_type
    # The first insert into the empty table gets key 1.
    await actors.cache.set(record_type, {"login": "stale"}, None, 1)

    new_id = await actors.create({"login": "fixed", "email": "f@example.test", STATIC_ID_FIELD: 42})

    assert new_id == 42
    assert await actors.cache.get(record_type, 1) is None
    assert await actors.find(1) is None
    assert (await actors.find(42))["login"] == "fixed"
