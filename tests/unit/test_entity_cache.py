"""Tests for EntityCacheManager against fake Redis (keys, paged results, sweeps, degradation)."""

import fakeredis
import fakeredis.aioredis

from platform_core.core.config import get_settings
from platform_core.domain.descriptors import CacheDescriptor, PagedQuery
from platform_core.infrastructure.cache.entity_cache import EntityCacheManager
from platform_core.infrastructure.cache.redis_cache import CacheService

CUSTOMER_CACHE = CacheDescriptor.for_entity("customer")
BRANCH_CACHE = CacheDescriptor.for_entity("branch")


def _query(**overrides) -> PagedQuery:
    fields = {
        "context": "customer_list",
        "access_scope": "platform",
        "offset": 0,
        "limit": 10,
        "search": "",
        "sort_column": "name",
        "sort_direction": "asc",
    }
    fields.update(overrides)
    return PagedQuery(**fields)


async def test_set_get_round_trip_uses_namespaced_key(cache, redis_client) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    assert await manager.set("customer", {"id": 5, "name": "Acme"}, None, 5)
    assert await manager.get("customer", 5) == {"id": 5, "name": "Acme"}
    assert await manager.exists("customer", 5)
    assert await redis_client.exists("customer:customer:5")
    assert manager.make_key("list", "ctx") == "customer:customer_list:ctx"


async def test_default_ttl_from_settings(cache, redis_client) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set("customer", {"id": 1}, None, 1)
    ttl = await redis_client.ttl("customer:customer:1")
    assert 0 < ttl <= get_settings().cache_ttl_default


async def test_delete(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set("customer", {"id": 1}, 60, 1)
    assert await manager.delete("customer", 1)
    assert await manager.get("customer", 1) is None
    assert not await manager.exists("customer", 1)


async def test_falsy_values_are_cached(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set("stats", 0, 60, "count")
    await manager.set("list", [], 60, "empty")
    assert await manager.get("stats", "count") == 0
    assert await manager.get("list", "empty") == []


async def test_long_components_produce_bounded_keys(cache, redis_client) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    component = "s" * 400
    await manager.set("list", ["x"], 60, component)
    assert await manager.get("list", component) == ["x"]
    keys = [k async for k in redis_client.scan_iter(match="customer:*")]
    assert len(keys) == 1
    assert len(keys[0]) <= len("customer:") + get_settings().cache_key_max_length


async def test_paged_result_round_trip_with_short_ttl(cache, redis_client) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    page = {"items": [{"id": 1}], "total": 1, "offset": 0, "limit": 10}
    assert await manager.set_paged_result(
        "customer_list", "platform", 0, 10, "acme", "name", "asc", page
    )
    assert (
        await manager.get_paged_result("customer_list", "platform", 0, 10, "acme", "name", "asc")
        == page
    )
    ttl = await redis_client.ttl(manager.paged_key(_query(search="acme")))
    assert 0 < ttl <= get_settings().cache_ttl_paged


async def test_paged_key_distinguishes_every_dimension(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    base = manager.paged_key(_query())
    for overrides in (
        {"access_scope": "actor_1"},
        {"offset": 10},
        {"limit": 25},
        {"search": "acme"},
        {"sort_column": "code"},
        {"sort_direction": "desc"},
        {"extra_params": {"actor_id": 1}},
    ):
        assert manager.paged_key(_query(**overrides)) != base


async def test_invalid_paged_query_is_not_cached(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    assert await manager.set_paged(_query(access_scope=""), {"items": []}) is False
    assert await manager.get_paged(_query(offset=-1)) is None


async def test_malformed_paged_query_degrades_to_miss(cache) -> None:
    """Wrongly typed query fields never raise out of the paged cache."""
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    missing_direction = await manager.get_paged_result(
        "customer_list", "platform", 0, 10, sort_direction=None
    )
    assert missing_direction is None
    assert (
        await manager.set_paged_result("customer_list", "platform", "x", 10, "", "name", "asc", {})
        is False
    )
    assert await manager.set_paged(_query(sort_direction=None), {"page": 1}) is False
    assert await manager.get_paged(_query(limit="10")) is None


async def test_invalidate_paged_result_sweeps_whole_context(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set_paged(_query(), {"page": 1})
    await manager.set_paged(_query(offset=10), {"page": 2})
    await manager.set_paged(_query(context="customer_list_archive"), {"page": "archive"})
    assert await manager.invalidate_paged_result("customer_list")
    assert await manager.get_paged(_query()) is None
    assert await manager.get_paged(_query(offset=10)) is None
    # Component boundary: a context sharing the prefix is untouched.
    assert await manager.get_paged(_query(context="customer_list_archive")) == {"page": "archive"}


async def test_invalidate_paged_result_exact_shape(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set_paged(_query(), {"page": 1})
    await manager.set_paged(_query(offset=10), {"page": 2})
    assert await manager.invalidate_paged_result("customer_list", _query(offset=10))
    assert await manager.get_paged(_query()) == {"page": 1}
    assert await manager.get_paged(_query(offset=10)) is None

    mapping = {
        "access_scope": "platform",
        "offset": 0,
        "limit": 10,
        "sort_column": "name",
    }
    assert await manager.invalidate_paged_result("customer_list", mapping)
    assert await manager.get_paged(_query()) is None


async def test_invalidate_paged_result_rejects_bad_input(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    assert await manager.invalidate_paged_result("") is False
    assert await manager.invalidate_paged_result("customer_list", {"bogus": 1}) is False


async def test_clear_key_type_and_namespace(cache) -> None:
    customers = EntityCacheManager(cache, CUSTOMER_CACHE)
    branches = EntityCacheManager(cache, BRANCH_CACHE)
    await customers.set("list", ["a"], 60, "ctx")
    await customers.set("list", ["bare"], 60)
    await customers.set("customer", {"id": 1}, 60, 1)
    await branches.set("list", ["b"], 60, "ctx")

    assert await customers.clear("list")
    assert await customers.get("list", "ctx") is None
    assert await customers.get("list") is None
    assert await customers.get("customer", 1) == {"id": 1}

    assert await customers.clear()
    assert await customers.get("customer", 1) is None
    assert await branches.get("list", "ctx") == ["b"]


async def test_sweep_by_component_prefix(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set("stats", 1, 60, 7, "open")
    await manager.set("stats", 2, 60, 7, "closed")
    await manager.set("stats", 3, 60, 70, "open")
    assert await manager.sweep("stats", 7)
    assert await manager.get("stats", 7, "open") is None
    assert await manager.get("stats", 7, "closed") is None
    assert await manager.get("stats", 70, "open") == 3


async def test_invalidate_record(cache) -> None:
    manager = EntityCacheManager(cache, CUSTOMER_CACHE)
    await manager.set("customer", {"id": 1}, 60, 1)
    await manager.set("customer", {"id": 2}, 60, 2)
    await manager.set("list", ["x"], 60, "ctx")
    await manager.set("stats", 2, 60, "count")
    await manager.set_paged(_query(), {"page": 1})

    assert await manager.invalidate_record(1)
    assert await manager.get("customer", 1) is None
    assert await manager.get("list", "ctx") is None
    assert await manager.get("stats", "count") is None
    assert await manager.get_paged(_query()) is None
    assert await manager.get("customer", 2) == {"id": 2}


async def test_no_cache_degrades_to_misses() -> None:
    manager = EntityCacheManager(None, CUSTOMER_CACHE)
    assert await manager.set("customer", {"id": 1}, 60, 1) is False
    assert await manager.get("customer", 1) is None
    assert await manager.exists("customer", 1) is False
    assert await manager.clear() is False
    assert await manager.invalidate_record(1) is False


class _BrokenBackend:
    """Cache backend whose every call fails."""

    def is_available(self) -> bool:
        return True

    async def get(self, key):
        raise RuntimeError("backend down")

    async def set(self, key, value, ttl=300):
        raise RuntimeError("backend down")

    async def delete(self, key):
        raise RuntimeError("backend down")

    async def exists(self, key):
        raise RuntimeError("backend down")

    async def delete_pattern(self, pattern):
        raise RuntimeError("backend down")


async def test_backend_failures_never_raise() -> None:
    manager = EntityCacheManager(_BrokenBackend(), CUSTOMER_CACHE)
    assert await manager.get("customer", 1) is None
    assert await manager.set("customer", {"id": 1}, 60, 1) is False
    assert await manager.delete("customer", 1) is False
    assert await manager.exists("customer", 1) is False
    assert await manager.clear() is False
    assert await manager.clear("list") is False
    assert await manager.get_paged(_query()) is None
    assert await manager.invalidate_paged_result("customer_list") is False


async def test_disconnected_redis_is_unavailable() -> None:
    server = fakeredis.FakeServer()
    server.connected = False
    service = CacheService(redis_client=fakeredis.aioredis.FakeRedis(server=server))
    await service.connect()
    assert not service.is_available()
    manager = EntityCacheManager(service, CUSTOMER_CACHE)
    assert await manager.set("customer", {"id": 1}, 60, 1) is False
    assert await manager.get("customer", 1) is None
