"""
Tests for the audit trail.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from rbac_admin.models.audit_log import AuditLog
from rbac_admin.models.user import User
from rbac_admin.schemas.audit_log import AuditEntry, AuditModule
from rbac_admin.services.audit import AuditSink


async def _entries(session_factory) -> list[AuditLog]:
    async with session_factory() as session:
        result = await session.execute(select(AuditLog).order_by(AuditLog.id))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_writes_audit_entry(
    client: AsyncClient,
    admin_user: User,
    admin_auth_headers: dict,
    session_factory,
):
    response = await client.post(
        "/api/v1/admin/role",
        headers={**admin_auth_headers, "X-Request-ID": "req-123", "User-Agent": "pytest-agent"},
        json={"name": "Audited"},
    )
    assert response.status_code == 201
    assert response.headers["X-Request-ID"] == "req-123"

    entries = await _entries(session_factory)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.module == "Role"
    assert entry.action == "create"
    assert entry.entity_id == response.json()["id"]
    assert entry.user_id == admin_user.id
    assert entry.data_before is None
    assert entry.data_after["name"] == "Audited"
    assert entry.request_id == "req-123"
    assert entry.user_agent == "pytest-agent"
    assert entry.ip_address


@pytest.mark.asyncio
async def test_update_snapshots_exclude_secrets(
    client: AsyncClient,
    admin_auth_headers: dict,
    test_user: User,
    session_factory,
):
    response = await client.put(
        f"/api/v1/admin/user/{test_user.id}",
        headers=admin_auth_headers,
        json={"email": "audited@example.com"},
    )
    assert response.status_code == 200

    [entry] = await _entries(session_factory)
    assert entry.module == "User"
    assert entry.action == "update"
    assert entry.data_before["email"] == test_user.email
    assert entry.data_after["email"] == "audited@example.com"
    assert "password_hash" not in entry.data_before
    assert "refresh_token" not in entry.data_before


@pytest.mark.asyncio
async def test_failed_operation_is_not_audited(client: AsyncClient, admin_auth_headers: dict, session_factory):
    response = await client.delete("/api/v1/admin/role/4040", headers=admin_auth_headers)

    assert response.status_code == 404
    assert await _entries(session_factory) == []


@pytest.mark.asyncio
async def test_reads_are_not_audited(client: AsyncClient, admin_auth_headers: dict, session_factory):
    await client.get("/api/v1/admin/user", headers=admin_auth_headers)
    assert await _entries(session_factory) == []


@pytest.mark.asyncio
async def test_assign_permission_is_audited(
    client: AsyncClient,
    admin_auth_headers: dict,
    role_factory,
    permission_factory,
    session_factory,
):
    role = await role_factory.create()
    permission = await permission_factory.create()

    await client.post(
        "/api/v1/admin/role/assign-permission",
        headers=admin_auth_headers,
        json={"roleId": role.id, "permissionId": permission.id},
    )

    [entry] = await _entries(session_factory)
    assert entry.module == "RoleHasPermission"
    assert entry.action == "assignPermission"
    assert entry.data_after["permissionId"] == permission.id


@pytest.mark.asyncio
async def test_sink_never_raises():
    def broken_factory():
        raise RuntimeError("database is gone")

    sink = AuditSink(session_factory=broken_factory)

    # Must not raise
    await sink.log(AuditEntry(module=AuditModule.USER, action="create", entity_id=1))
