"""
Tests for the seed command and health checks.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.permissions import FULL_PERMISSIONS, Module, PermissionVerb
from rbac_admin.models.permission import Permission
from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission
from rbac_admin.models.user import User
from rbac_admin.seed import SUPER_ADMIN, USER_MANAGEMENT, USER_STANDARD, default_role_permissions, seed
from rbac_admin.utils.health import HealthStatus, check_database, check_permissions_seeded


async def _count(db: AsyncSession, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_seed_creates_catalogue(db: AsyncSession):
    report = await seed(db, admin_email="Root@Example.com", admin_password="rootpass1")

    assert FULL_PERMISSIONS in report.permissions_created
    assert len(report.permissions_created) == 1 + len(Module) * len(PermissionVerb)
    assert report.roles_created == [SUPER_ADMIN, USER_MANAGEMENT, USER_STANDARD]
    assert report.admin_created == "root@example.com"

    admin = await db.scalar(select(User).where(User.email == "root@example.com"))
    assert admin.role.name == SUPER_ADMIN


@pytest.mark.asyncio
async def test_seed_is_idempotent(db: AsyncSession):
    await seed(db, admin_email="root@example.com", admin_password="rootpass1")
    counts = [await _count(db, model) for model in (Permission, Role, RoleHasPermission, User)]

    report = await seed(db, admin_email="root@example.com", admin_password="rootpass1")

    assert report.permissions_created == []
    assert report.roles_created == []
    assert report.links_created == 0
    assert report.admin_created is None
    assert [await _count(db, model) for model in (Permission, Role, RoleHasPermission, User)] == counts


def test_default_role_permissions():
    grants = default_role_permissions()

    assert grants[SUPER_ADMIN] == [FULL_PERMISSIONS]
    assert "edit_admin_user" in grants[USER_MANAGEMENT]
    assert "edit_forms" not in grants[USER_MANAGEMENT]
    assert "read_forms" in grants[USER_STANDARD]
    assert "navbar_building" in grants[USER_STANDARD]
    assert "edit_profile_user" in grants[USER_STANDARD]
    assert "delete_forms" not in grants[USER_STANDARD]


@pytest.mark.asyncio
async def test_health_checks(session_factory):
    database = await check_database(session_factory)
    assert database.status in (HealthStatus.HEALTHY, HealthStatus.DEGRADED)
    assert database.details["dialect"] == "sqlite"

    unseeded = await check_permissions_seeded(session_factory)
    assert unseeded.status != HealthStatus.HEALTHY

    async with session_factory() as session:
        await seed(session)
        await session.commit()

    seeded = await check_permissions_seeded(session_factory)
    assert seeded.status == HealthStatus.HEALTHY


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
