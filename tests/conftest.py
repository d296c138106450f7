"""Pytest configuration and fixtures for platform_core.

Tests run against an in-memory SQLite database (aiosqlite, one shared
connection) and an in-process fake Redis; no external services needed.
Env is set before platform_core is imported so Settings picks it up.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.pool import StaticPool

from platform_core.core.config import get_settings
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.cache.redis_cache import CacheService
from platform_core.infrastructure.extensions.registry import ExtensionRegistry
from platform_core.infrastructure.persistence.database import (
    build_engine,
    get_db,
    get_db_transactional,
    init_models,
    session_factory,
)
from platform_core.infrastructure.persistence.models import Actor, ActorRole, RoleCapability
from platform_core.infrastructure.persistence.repositories import EntityStore
from platform_core.modules import CACHE_DESCRIPTORS_BY_TABLE, PLATFORM_ROLES

get_settings.cache_clear()


@pytest.fixture
async def engine() -> AsyncEngine:
    """Fresh in-memory database with every table created."""
    eng = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncSession:
    """Session for repository/integration tests. Rolls back after test."""
    async with session_factory(engine)() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
async def cache(redis_client) -> CacheService:
    """CacheService backed by fake Redis (connected)."""
    service = CacheService(redis_client=redis_client)
    await service.connect()
    assert service.is_available()
    return service


@pytest.fixture
def registry() -> ExtensionRegistry:
    return ExtensionRegistry()


@pytest.fixture
def make_store(db_session: AsyncSession, cache: CacheService, registry: ExtensionRegistry):
    """Factory: EntityStore for a descriptor, sharing the session, cache and registry.

    Stores drop the cached records of other entity types their writes change.
    """

    def _make(descriptor, identity_assigner=None) -> EntityStore:
        return EntityStore(
            db_session,
            descriptor,
            EntityCacheManager(cache, descriptor.cache),
            registry,
            identity_assigner,
            related_caches=CACHE_DESCRIPTORS_BY_TABLE,
        )

    return _make


async def _add_actor(db: AsyncSession, login: str, roles: tuple[str, ...] = ()) -> int:
    """Insert an actor (and role assignments) directly; returns its id."""
    result = await db.execute(
        insert(Actor).values(login=login, email=f"{login}@example.test", display_name=login)
    )
    actor_id = int(result.inserted_primary_key[0])
    if roles:
        await db.execute(insert(ActorRole), [{"actor_id": actor_id, "role": r} for r in roles])
    return actor_id


async def _add_platform_roles(db: AsyncSession) -> None:
    await db.execute(
        insert(RoleCapability),
        [
            {"role": role, "capability": capability}
            for role, capabilities in PLATFORM_ROLES.items()
            for capability in capabilities
        ],
    )


@pytest.fixture
async def client(engine: AsyncEngine, cache: CacheService) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), wired to the test database and cache.

    The ASGI transport does not run the lifespan; state and DB dependencies
    are set up here instead.
    """
    from platform_core.main import create_app

    app = create_app()
    factory = session_factory(engine)

    async def _get_db():
        async with factory() as session:
            yield session

    async def _get_db_transactional():
        async with factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_db_transactional] = _get_db_transactional
    app.state.cache = cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seeded_actors(engine: AsyncEngine) -> dict[str, int]:
    """Committed actors for API tests: a customer owner, a platform admin, an outsider."""
    async with session_factory(engine)() as session:
        async with session.begin():
            await _add_platform_roles(session)
            actors = {
                "owner": await _add_actor(session, "owner"),
                "admin": await _add_actor(session, "padmin", roles=("platform_admin",)),
                "auditor": await _add_actor(session, "pauditor", roles=("platform_auditor",)),
                "outsider": await _add_actor(session, "outsider"),
            }
    return actors


@pytest.fixture
def make_actor(db_session: AsyncSession):
    """Factory: insert an actor (optionally with roles) in the test session; returns its id."""

    async def _make(login: str, roles: tuple[str, ...] = ()) -> int:
        return await _add_actor(db_session, login, roles)

    return _make


@pytest.fixture
async def platform_roles(db_session: AsyncSession) -> None:
    """Role -> capability rows of the platform roles, in the test session."""
    await _add_platform_roles(db_session)
