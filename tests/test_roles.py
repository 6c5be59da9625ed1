"""
Tests for role endpoints and permission-set synchronization.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission

API = "/api/v1/admin/role"


async def _links(session_factory, role_id: int) -> dict[int, bool]:
    async with session_factory() as session:
        result = await session.execute(
            select(RoleHasPermission).where(RoleHasPermission.role_id == role_id)
        )
        return {link.permission_id: link.status for link in result.unique().scalars().all()}


@pytest.mark.asyncio
async def test_create_and_get_role(client: AsyncClient, admin_auth_headers: dict):
    response = await client.post(API, headers=admin_auth_headers, json={"name": "Auditors"})

    assert response.status_code == 201
    role = response.json()
    assert role["name"] == "Auditors"
    assert role["status"] is True
    assert role["permissions"] == []
    assert "createdAt" in role

    response = await client.get(f"{API}/{role['id']}", headers=admin_auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Auditors"


@pytest.mark.asyncio
async def test_create_duplicate_role(client: AsyncClient, admin_auth_headers: dict, role_factory):
    await role_factory.create(name="Dup")

    response = await client.post(API, headers=admin_auth_headers, json={"name": "Dup"})

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_get_missing_role(client: AsyncClient, admin_auth_headers: dict):
    response = await client.get(f"{API}/9999", headers=admin_auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_roles(client: AsyncClient, admin_auth_headers: dict, role_factory):
    await role_factory.create(name="Alpha")
    await role_factory.create(name="Beta", status=False)

    response = await client.get(
        API,
        headers=admin_auth_headers,
        params={"filters[status]": "false", "perPage": "5"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [r["name"] for r in body["data"]] == ["Beta"]
    assert body["meta"] == {"total": 1, "perPage": 5, "currentPage": 1, "lastPage": 1}


@pytest.mark.asyncio
async def test_list_roles_bad_query_json(client: AsyncClient, admin_auth_headers: dict):
    response = await client.get(API, headers=admin_auth_headers, params={"query": "{nope"})

    assert response.status_code == 400
    assert "Could not parse 'query' as JSON" in response.json()["message"]


@pytest.mark.asyncio
async def test_update_role_syncs_permissions(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    permission_factory,
    session_factory,
):
    role = await role_factory.create(name="Editors")
    p1, p2, p3, p4 = [await permission_factory.create(name=f"perm_{i}") for i in range(1, 5)]

    response = await client.put(
        f"{API}/{role.id}",
        headers=admin_auth_headers,
        json={"permissions": [p1.id, p2.id, p3.id]},
    )
    assert response.status_code == 200
    assert sorted(p["id"] for p in response.json()["permissions"]) == [p1.id, p2.id, p3.id]

    response = await client.put(
        f"{API}/{role.id}",
        headers=admin_auth_headers,
        json={"name": "Senior Editors", "permissions": [p2.id, p3.id, p4.id]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Senior Editors"
    assert sorted(p["id"] for p in body["permissions"]) == [p2.id, p3.id, p4.id]

    # One row per pair; removed permissions are deactivated, not deleted
    assert await _links(session_factory, role.id) == {p1.id: False, p2.id: True, p3.id: True, p4.id: True}

    response = await client.put(
        f"{API}/{role.id}",
        headers=admin_auth_headers,
        json={"permissions": [p1.id]},
    )
    assert response.status_code == 200
    assert await _links(session_factory, role.id) == {p1.id: True, p2.id: False, p3.id: False, p4.id: False}


@pytest.mark.asyncio
async def test_update_role_unknown_permission_changes_nothing(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    permission_factory,
    session_factory,
):
    role = await role_factory.create(name="Viewers")
    p1 = await permission_factory.create(name="view_things")

    response = await client.put(
        f"{API}/{role.id}",
        headers=admin_auth_headers,
        json={"name": "Renamed", "permissions": [p1.id, 9999]},
    )

    assert response.status_code == 404
    assert response.json()["details"] == {"permission_ids": [9999]}
    assert await _links(session_factory, role.id) == {}
    async with session_factory() as session:
        assert (await session.get(Role, role.id)).name == "Viewers"


@pytest.mark.asyncio
async def test_update_role_empty_permissions_clears_set(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    session_factory,
):
    role = await role_factory.create(name="Temp", permissions=["read_forms", "edit_forms"])

    response = await client.put(f"{API}/{role.id}", headers=admin_auth_headers, json={"permissions": []})

    assert response.status_code == 200
    assert response.json()["permissions"] == []
    assert set((await _links(session_factory, role.id)).values()) == {False}


@pytest.mark.asyncio
async def test_assign_and_remove_permission(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    permission_factory,
    session_factory,
):
    role = await role_factory.create(name="Support")
    permission = await permission_factory.create(name="read_tickets")
    payload = {"roleId": role.id, "permissionId": permission.id}

    response = await client.post(f"{API}/assign-permission", headers=admin_auth_headers, json=payload)
    assert response.status_code == 200
    link = response.json()
    assert link["status"] is True
    assert link["roleId"] == role.id

    response = await client.post(f"{API}/remove-permission", headers=admin_auth_headers, json=payload)
    assert response.status_code == 200
    assert response.json()["status"] is False

    # Assigning again reactivates the same row
    response = await client.post(f"{API}/assign-permission", headers=admin_auth_headers, json=payload)
    assert response.status_code == 200
    assert response.json()["id"] == link["id"]
    assert response.json()["status"] is True

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(RoleHasPermission).where(RoleHasPermission.role_id == role.id)
        )
    assert count == 1


@pytest.mark.asyncio
async def test_assign_inactive_permission(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    permission_factory,
):
    role = await role_factory.create()
    permission = await permission_factory.create(status=False)

    response = await client.post(
        f"{API}/assign-permission",
        headers=admin_auth_headers,
        json={"roleId": role.id, "permissionId": permission.id},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_remove_missing_link(client: AsyncClient, admin_auth_headers: dict, role_factory, permission_factory):
    role = await role_factory.create()
    permission = await permission_factory.create()

    response = await client.post(
        f"{API}/remove-permission",
        headers=admin_auth_headers,
        json={"roleId": role.id, "permissionId": permission.id},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_delete_and_bulk(client: AsyncClient, admin_auth_headers: dict, role_factory):
    a = await role_factory.create(name="A")
    b = await role_factory.create(name="B")

    response = await client.patch(f"{API}/{a.id}", headers=admin_auth_headers, json={"status": False})
    assert response.status_code == 200
    assert response.json()["status"] is False

    response = await client.post(
        f"{API}/bulk-status",
        headers=admin_auth_headers,
        json={"ids": [a.id, b.id], "status": True},
    )
    assert response.status_code == 200
    assert response.json() == {"count": 2}

    response = await client.delete(f"{API}/{b.id}", headers=admin_auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] is False


@pytest.mark.asyncio
async def test_bulk_status_requires_ids(client: AsyncClient, admin_auth_headers: dict):
    response = await client.post(f"{API}/bulk-status", headers=admin_auth_headers, json={"ids": [], "status": True})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_role_routes_require_permission(client: AsyncClient, auth_headers: dict):
    response = await client.get(API, headers=auth_headers)
    assert response.status_code == 403

    response = await client.get(API)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_specific_permission_grants_access(client: AsyncClient, user_factory, role_factory, headers_for):
    reader = await role_factory.create(name="RoleReader", permissions=["read_admin_role"])
    user = await user_factory.create(role=reader)
    headers = headers_for(user)

    assert (await client.get(API, headers=headers)).status_code == 200
    assert (await client.post(API, headers=headers, json={"name": "Nope"})).status_code == 403
