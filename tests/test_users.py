"""
Tests for user endpoints.
"""

import pytest
from httpx import AsyncClient

from rbac_admin.models.profile_user import ProfileUser
from rbac_admin.models.user import User
from rbac_admin.services.auth import verify_password

API = "/api/v1/admin/user"


async def _profile(session_factory, user_id: int | None = None, first_name: str = "Ana") -> ProfileUser:
    profile = ProfileUser(
        user_id=user_id,
        first_name=first_name,
        last_name="Lopez",
        email=f"{first_name.lower()}@profiles.example.com",
    )
    async with session_factory() as session:
        session.add(profile)
        await session.commit()
    return profile


@pytest.mark.asyncio
async def test_create_user(client: AsyncClient, admin_auth_headers: dict, role_factory):
    role = await role_factory.create(name="Clerks")

    response = await client.post(
        API,
        headers=admin_auth_headers,
        json={"email": " New.User@Example.com ", "password": "secret123", "roleId": role.id},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.user@example.com"
    assert data["roleId"] == role.id
    assert data["role"]["name"] == "Clerks"
    assert data["profile"] is None
    assert "password" not in data
    assert "passwordHash" not in data
    assert "refreshToken" not in data


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client: AsyncClient, admin_auth_headers: dict, test_user: User):
    response = await client.post(
        API,
        headers=admin_auth_headers,
        json={"email": test_user.email, "password": "secret123", "roleId": test_user.role_id},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_user_inactive_role(client: AsyncClient, admin_auth_headers: dict, role_factory):
    role = await role_factory.create(status=False)

    response = await client.post(
        API,
        headers=admin_auth_headers,
        json={"email": "x@example.com", "password": "secret123", "roleId": role.id},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_user_validation(client: AsyncClient, admin_auth_headers: dict):
    response = await client.post(
        API,
        headers=admin_auth_headers,
        json={"email": "not-an-email", "password": "123", "roleId": 0},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_users_requires_permission(client: AsyncClient, auth_headers: dict):
    response = await client.get(API, headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


@pytest.mark.asyncio
async def test_list_users_as_admin(client: AsyncClient, admin_auth_headers: dict, user_factory):
    await user_factory.create(email="user1@example.com")
    await user_factory.create(email="user2@example.com")

    response = await client.get(API, headers=admin_auth_headers, params={"search": "user"})

    assert response.status_code == 200
    body = response.json()
    assert [u["email"] for u in body["data"]] == ["user2@example.com", "user1@example.com"]
    assert body["meta"]["total"] == 2
    assert body["meta"]["lastPage"] == 1


@pytest.mark.asyncio
async def test_list_users_pagination(client: AsyncClient, admin_auth_headers: dict, user_factory):
    for i in range(5):
        await user_factory.create(email=f"page{i}@example.com")

    response = await client.get(
        API,
        headers=admin_auth_headers,
        params={"query": '{"q": "page", "pageSize": 2, "page": 3, "sortBy": "email", "sortDir": "asc"}'},
    )

    assert response.status_code == 200
    body = response.json()
    assert [u["email"] for u in body["data"]] == ["page4@example.com"]
    assert body["meta"] == {"total": 5, "perPage": 2, "currentPage": 3, "lastPage": 3}


@pytest.mark.asyncio
async def test_list_users_ignores_garbage_paging(client: AsyncClient, admin_auth_headers: dict):
    response = await client.get(API, headers=admin_auth_headers, params={"page": "abc", "perPage": "-5"})

    assert response.status_code == 200
    assert response.json()["meta"]["perPage"] == 1
    assert response.json()["meta"]["currentPage"] == 1


@pytest.mark.asyncio
async def test_get_user(client: AsyncClient, admin_auth_headers: dict, test_user: User):
    response = await client.get(f"{API}/{test_user.id}", headers=admin_auth_headers)

    assert response.status_code == 200
    assert response.json()["email"] == test_user.email

    response = await client.get(f"{API}/424242", headers=admin_auth_headers)
    assert response.status_code == 404

    response = await client.get(f"{API}/0", headers=admin_auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient, admin_auth_headers: dict, test_user: User, session_factory):
    response = await client.put(
        f"{API}/{test_user.id}",
        headers=admin_auth_headers,
        json={"email": "renamed@example.com", "password": "brandnew1", "status": None},
    )

    assert response.status_code == 200
    assert response.json()["email"] == "renamed@example.com"
    assert response.json()["status"] is True

    async with session_factory() as session:
        user = await session.get(User, test_user.id)
    assert verify_password("brandnew1", user.password_hash)


@pytest.mark.asyncio
async def test_update_user_empty_body(client: AsyncClient, admin_auth_headers: dict, test_user: User):
    response = await client.put(f"{API}/{test_user.id}", headers=admin_auth_headers, json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_user_email_taken(client: AsyncClient, admin_auth_headers: dict, user_factory):
    first = await user_factory.create(email="first@example.com")
    await user_factory.create(email="second@example.com")

    response = await client.put(
        f"{API}/{first.id}",
        headers=admin_auth_headers,
        json={"email": "SECOND@example.com"},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_status_and_soft_delete(client: AsyncClient, admin_auth_headers: dict, test_user: User, session_factory):
    response = await client.patch(f"{API}/{test_user.id}", headers=admin_auth_headers, json={"status": False})
    assert response.status_code == 200
    assert response.json()["status"] is False

    response = await client.patch(f"{API}/{test_user.id}", headers=admin_auth_headers, json={"status": True})
    assert response.json()["status"] is True

    response = await client.delete(f"{API}/{test_user.id}", headers=admin_auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] is False

    # Soft delete keeps the row
    async with session_factory() as session:
        assert await session.get(User, test_user.id) is not None


@pytest.mark.asyncio
async def test_bulk_status(client: AsyncClient, admin_auth_headers: dict, user_factory):
    users = [await user_factory.create() for _ in range(3)]

    response = await client.post(
        f"{API}/bulk-status",
        headers=admin_auth_headers,
        json={"ids": [u.id for u in users] + [98765], "status": False},
    )

    assert response.status_code == 200
    assert response.json() == {"count": 3}

    response = await client.get(API, headers=admin_auth_headers, params={"filters[status]": "false"})
    assert response.json()["meta"]["total"] == 3


@pytest.mark.asyncio
async def test_disabled_user_token_rejected(client: AsyncClient, user_factory, role_factory, headers_for):
    role = await role_factory.create(permissions=["read_admin_user"])
    user = await user_factory.create(role=role, status=False)

    response = await client.get(API, headers=headers_for(user))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_role_grants_nothing(client: AsyncClient, user_factory, role_factory, headers_for):
    role = await role_factory.create(status=False, permissions=["read_admin_user"])
    user = await user_factory.create(role=role)

    response = await client.get(API, headers=headers_for(user))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_change_password_ends_refresh_session(
    client: AsyncClient,
    admin_auth_headers: dict,
    test_user: User,
    session_factory,
):
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": "testpassword123"},
    )
    refresh_token = login.json()["refreshToken"]

    response = await client.put(
        f"{API}/{test_user.id}/password",
        headers=admin_auth_headers,
        json={"password": "changed123"},
    )
    assert response.status_code == 200

    async with session_factory() as session:
        user = await session.get(User, test_user.id)
    assert user.refresh_token is None
    assert verify_password("changed123", user.password_hash)

    response = await client.post("/api/v1/auth/refresh-token", json={"refreshToken": refresh_token})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_verify_password(client: AsyncClient, auth_headers: dict):
    response = await client.post(f"{API}/verify-password", headers=auth_headers, json={"password": "testpassword123"})
    assert response.status_code == 200
    assert response.json() == {"valid": True}

    response = await client.post(f"{API}/verify-password", headers=auth_headers, json={"password": "wrong"})
    assert response.json() == {"valid": False}


@pytest.mark.asyncio
async def test_change_role(client: AsyncClient, admin_auth_headers: dict, test_user: User, role_factory):
    role = await role_factory.create(name="Promoted")

    response = await client.post(f"{API}/{test_user.id}/role", headers=admin_auth_headers, json={"roleId": role.id})

    assert response.status_code == 200
    assert response.json()["roleId"] == role.id
    assert response.json()["role"]["name"] == "Promoted"

    response = await client.post(f"{API}/{test_user.id}/role", headers=admin_auth_headers, json={"roleId": 5555})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_profile_link_and_unlink(
    client: AsyncClient,
    admin_auth_headers: dict,
    test_user: User,
    session_factory,
):
    first = await _profile(session_factory, first_name="Ana")
    second = await _profile(session_factory, first_name="Eva")

    response = await client.get(f"{API}/{test_user.id}/profile", headers=admin_auth_headers)
    assert response.status_code == 404

    response = await client.post(
        f"{API}/{test_user.id}/profile",
        headers=admin_auth_headers,
        json={"profileId": first.id},
    )
    assert response.status_code == 200
    assert response.json()["userId"] == test_user.id

    # Linking another profile releases the first one
    response = await client.post(
        f"{API}/{test_user.id}/profile",
        headers=admin_auth_headers,
        json={"profileId": second.id},
    )
    assert response.status_code == 200
    async with session_factory() as session:
        assert (await session.get(ProfileUser, first.id)).user_id is None

    response = await client.get(f"{API}/{test_user.id}", headers=admin_auth_headers)
    assert response.json()["profile"]["firstName"] == "Eva"

    response = await client.delete(f"{API}/{test_user.id}/profile", headers=admin_auth_headers)
    assert response.status_code == 200
    assert response.json()["userId"] is None

    # The profile itself survives
    async with session_factory() as session:
        assert await session.get(ProfileUser, second.id) is not None


@pytest.mark.asyncio
async def test_profile_owned_by_someone_else(
    client: AsyncClient,
    admin_auth_headers: dict,
    test_user: User,
    user_factory,
    session_factory,
):
    other = await user_factory.create()
    taken = await _profile(session_factory, user_id=other.id)

    response = await client.post(
        f"{API}/{test_user.id}/profile",
        headers=admin_auth_headers,
        json={"profileId": taken.id},
    )

    assert response.status_code == 409
