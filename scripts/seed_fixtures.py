"""Seed (or remove) deterministic platform staff fixtures.

Fixture n is created as actor id start_id + n and platform_staff id
start_id + n with the same attributes on every run, so fixtures can be
referenced by id from other seed data and test suites.

Usage:
    python -m scripts.seed_fixtures seed <count> [start_id] [seed]
    python -m scripts.seed_fixtures delete <start_id> <end_id>

Default start_id: 1000. Requires DATABASE_URL; the schema is created if
missing. Run one seeder at a time per database.
"""

from __future__ import annotations

import asyncio
import sys

from platform_core.application.services.fixture_seeder import FixtureSeeder
from platform_core.core.config import get_settings
from platform_core.infrastructure.persistence import database
from platform_core.shared.context import clear_current_actor, set_current_actor
from platform_core.shared.enums import ActorType
from platform_core.shared.telemetry.logging import setup_logging

USAGE = (
    "Usage:\n"
    "  python -m scripts.seed_fixtures seed <count> [start_id] [seed]\n"
    "  python -m scripts.seed_fixtures delete <start_id> <end_id>"
)


def _int_args(values: list[str]) -> list[int]:
    try:
        return [int(v) for v in values]
    except ValueError:
        print(USAGE, file=sys.stderr)
        sys.exit(1)


async def _connect_cache():
    if not get_settings().redis_enabled:
        return None
    from platform_core.infrastructure.cache.redis_cache import CacheService

    cache = CacheService()
    await cache.connect()
    return cache


async def main() -> None:
    """Run the seed or delete command against the configured database."""
    if len(sys.argv) < 3 or sys.argv[1] not in ("seed", "delete"):
        print(USAGE, file=sys.stderr)
        sys.exit(1)
    command = sys.argv[1]
    args = _int_args(sys.argv[2:])
    if command == "delete" and len(args) != 2:
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    setup_logging()
    await database.init_models()
    if database.AsyncSessionLocal is None:
        print("AsyncSessionLocal not configured", file=sys.stderr)
        sys.exit(1)
    cache = await _connect_cache()
    set_current_actor(None, ActorType.SEEDER)

    try:
        async with database.AsyncSessionLocal() as session:
            async with session.begin():
                if command == "seed":
                    count = args[0]
                    start_id = args[1] if len(args) > 1 else 1000
                    seed = args[2] if len(args) > 2 else 42
                    seeder = FixtureSeeder(session, cache=cache, seed=seed)
                    result = await seeder.seed_platform_staff(count, start_id=start_id)
                    print(
                        f"Created {result.entities_created} platform staff fixtures "
                        f"starting at id {start_id}"
                    )
                    for error in result.errors:
                        print(f"  skipped: {error}", file=sys.stderr)
                else:
                    seeder = FixtureSeeder(session, cache=cache)
                    deleted = await seeder.delete_range(args[0], args[1])
                    print(f"Deleted {deleted} platform staff fixtures in [{args[0]}, {args[1]}]")
    finally:
        clear_current_actor()
        if cache is not None:
            await cache.disconnect()
        await database.dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
