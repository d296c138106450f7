"""API tests for the generic entity routes (authorization, CRUD, list scoping, errors)."""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/entities"


def _as(actor_id: int) -> dict[str, str]:
    return {"X-Actor-ID": str(actor_id)}


async def _create_customer(client, admin: int, code: str, owner: int | None = None) -> int:
    body = {"code": code, "name": f"Customer {code}"}
    if owner is not None:
        body["actor_id"] = owner
    response = await client.post(f"{BASE}/customer", json=body, headers=_as(admin))
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def test_missing_or_invalid_actor_header_is_401(client: AsyncClient) -> None:
    assert (await client.get(f"{BASE}/customer")).status_code == 401
    response = await client.get(f"{BASE}/customer", headers={"X-Actor-ID": "abc"})
    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


@pytest.mark.parametrize("entity", ["invoice", "actor"])
async def test_unexposed_entity_types_are_404(client, seeded_actors, entity) -> None:
    response = await client.get(f"{BASE}/{entity}", headers=_as(seeded_actors["admin"]))
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_platform_admin_creates_and_reads_customer(client, seeded_actors) -> None:
    admin = seeded_actors["admin"]
    response = await client.post(
        f"{BASE}/customer",
        json={"code": "ACME", "name": "Acme", "actor_id": seeded_actors["owner"]},
        headers=_as(admin),
    )
    assert response.status_code == 201
    created = response.json()
    assert created["entity"] == "customer"
    assert created["data"]["name"] == "Acme"
    assert created["data"]["status"] == "active"

    response = await client.get(f"{BASE}/customer/{created['id']}", headers=_as(admin))
    assert response.status_code == 200
    assert response.json()["data"]["code"] == "ACME"


@pytest.mark.parametrize("who", ["outsider", "owner", "auditor"])
async def test_create_requires_platform_edit_grant(client, seeded_actors, who) -> None:
    response = await client.post(
        f"{BASE}/customer", json={"code": "X", "name": "X"}, headers=_as(seeded_actors[who])
    )
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"


async def test_create_validates_body(client, seeded_actors) -> None:
    headers = _as(seeded_actors["admin"])
    missing = await client.post(f"{BASE}/customer", json={"code": "X"}, headers=headers)
    assert missing.status_code == 422
    unknown = await client.post(
        f"{BASE}/customer", json={"code": "X", "name": "X", "_static_id": 5}, headers=headers
    )
    assert unknown.status_code == 422
    assert unknown.json()["error"] == "VALIDATION_ERROR"


async def test_duplicate_create_is_409(client, seeded_actors) -> None:
    admin = seeded_actors["admin"]
    await _create_customer(client, admin, "DUP")
    response = await client.post(
        f"{BASE}/customer", json={"code": "DUP", "name": "Again"}, headers=_as(admin)
    )
    assert response.status_code == 409
    assert response.json()["error"] == "ENTITY_WRITE_REJECTED"


async def test_record_access_by_relation_and_platform_role(client, seeded_actors) -> None:
    customer_id = await _create_customer(
        client, seeded_actors["admin"], "OWNED", owner=seeded_actors["owner"]
    )
    url = f"{BASE}/customer/{customer_id}"
    assert (await client.get(url, headers=_as(seeded_actors["owner"]))).status_code == 200
    assert (await client.get(url, headers=_as(seeded_actors["auditor"]))).status_code == 200
    denied = await client.get(url, headers=_as(seeded_actors["outsider"]))
    assert denied.status_code == 403
    assert denied.json()["details"] == {"resource": "customer", "action": "view"}


async def test_owner_updates_customer(client, seeded_actors) -> None:
    owner = seeded_actors["owner"]
    customer_id = await _create_customer(client, seeded_actors["admin"], "UPD", owner=owner)
    url = f"{BASE}/customer/{customer_id}"

    response = await client.patch(
        url, json={"name": "Renamed", "status": "inactive"}, headers=_as(owner)
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"
    assert response.json()["data"]["status"] == "inactive"

    # Read-through after the write sees the new value (cache invalidated).
    assert (await client.get(url, headers=_as(owner))).json()["data"]["name"] == "Renamed"


async def test_update_errors(client, seeded_actors) -> None:
    owner = seeded_actors["owner"]
    customer_id = await _create_customer(client, seeded_actors["admin"], "ERR", owner=owner)
    url = f"{BASE}/customer/{customer_id}"
    assert (await client.patch(url, json={}, headers=_as(owner))).status_code == 400
    assert (await client.patch(url, json={"code": "NEW"}, headers=_as(owner))).status_code == 422
    forbidden = await client.patch(url, json={"name": "X"}, headers=_as(seeded_actors["outsider"]))
    assert forbidden.status_code == 403
    missing = await client.patch(
        f"{BASE}/customer/9999", json={"name": "X"}, headers=_as(seeded_actors["admin"])
    )
    assert missing.status_code == 404


async def test_delete(client, seeded_actors) -> None:
    admin = seeded_actors["admin"]
    customer_id = await _create_customer(client, admin, "DEL", owner=seeded_actors["owner"])
    url = f"{BASE}/customer/{customer_id}"

    assert (await client.delete(url, headers=_as(seeded_actors["auditor"]))).status_code == 403
    assert (await client.delete(url, headers=_as(admin))).status_code == 204
    assert (await client.get(url, headers=_as(admin))).status_code == 404
    assert (await client.delete(url, headers=_as(admin))).status_code == 404


async def test_list_is_scoped_to_actor_without_platform_grant(client, seeded_actors) -> None:
    admin, owner = seeded_actors["admin"], seeded_actors["owner"]
    await _create_customer(client, admin, "MINE", owner=owner)
    await _create_customer(client, admin, "THEIRS")

    everything = await client.get(f"{BASE}/customer", headers=_as(admin))
    assert everything.status_code == 200
    assert everything.json()["total"] == 2

    mine = await client.get(f"{BASE}/customer", headers=_as(owner))
    assert [item["code"] for item in mine.json()["items"]] == ["MINE"]

    nothing = await client.get(f"{BASE}/customer", headers=_as(seeded_actors["outsider"]))
    assert nothing.json()["total"] == 0


async def test_list_reflects_writes(client, seeded_actors) -> None:
    admin = seeded_actors["admin"]
    await _create_customer(client, admin, "L1")
    assert (await client.get(f"{BASE}/customer", headers=_as(admin))).json()["total"] == 1
    await _create_customer(client, admin, "L2")
    response = await client.get(
        f"{BASE}/customer",
        params={"search": "l2", "sort": "code", "direction": "desc"},
        headers=_as(admin),
    )
    assert [item["code"] for item in response.json()["items"]] == ["L2"]
    assert (await client.get(f"{BASE}/customer", headers=_as(admin))).json()["total"] == 2


async def test_list_query_validation(client, seeded_actors) -> None:
    headers = _as(seeded_actors["admin"])
    zero_limit = await client.get(f"{BASE}/customer", params={"limit": 0}, headers=headers)
    assert zero_limit.status_code == 422
    assert (
        await client.get(f"{BASE}/customer", params={"direction": "up"}, headers=headers)
    ).status_code == 422


async def test_branch_admin_sees_branch(client, seeded_actors) -> None:
    admin, owner = seeded_actors["admin"], seeded_actors["owner"]
    customer_id = await _create_customer(client, admin, "BR")
    response = await client.post(
        f"{BASE}/branch",
        json={
            "customer_id": customer_id,
            "code": "KLA",
            "name": "Kampala",
            "admin_actor_id": owner,
        },
        headers=_as(admin),
    )
    assert response.status_code == 201
    branch_id = response.json()["id"]
    assert (await client.get(f"{BASE}/branch/{branch_id}", headers=_as(owner))).status_code == 200
    listed = await client.get(f"{BASE}/branch", headers=_as(owner))
    assert [item["code"] for item in listed.json()["items"]] == ["KLA"]


async def test_list_includes_records_the_actor_administers(client, seeded_actors) -> None:
    """Without a platform grant, a list shows every record the actor can open."""
    admin, branch_admin = seeded_actors["admin"], seeded_actors["owner"]
    customer_id = await _create_customer(client, admin, "PARENT")
    await _create_customer(client, admin, "UNRELATED")
    response = await client.post(
        f"{BASE}/branch",
        json={
            "customer_id": customer_id,
            "code": "EBB",
            "name": "Entebbe",
            "admin_actor_id": branch_admin,
        },
        headers=_as(admin),
    )
    assert response.status_code == 201

    listed = await client.get(f"{BASE}/customer", headers=_as(branch_admin))
    assert listed.status_code == 200
    assert [item["code"] for item in listed.json()["items"]] == ["PARENT"]
    url = f"{BASE}/customer/{customer_id}"
    assert (await client.get(url, headers=_as(branch_admin))).status_code == 200


async def test_deleting_customer_drops_cached_branch(client, seeded_actors) -> None:
    admin = seeded_actors["admin"]
    customer_id = await _create_customer(client, admin, "GONE")
    response = await client.post(
        f"{BASE}/branch",
        json={"customer_id": customer_id, "code": "GULU", "name": "Gulu"},
        headers=_as(admin),
    )
    branch_url = f"{BASE}/branch/{response.json()['id']}"
    assert (await client.get(branch_url, headers=_as(admin))).status_code == 200

    customer_url = f"{BASE}/customer/{customer_id}"
    assert (await client.delete(customer_url, headers=_as(admin))).status_code == 204
    assert (await client.get(branch_url, headers=_as(admin))).status_code == 404
    assert (await client.get(f"{BASE}/branch", headers=_as(admin))).json()["total"] == 0
