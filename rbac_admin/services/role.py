"""
Role service.

Roles own a set of permission links. A link is never deleted: removing a
permission deactivates its link and assigning it again reactivates it, so a
(role, permission) pair has at most one row.
"""

from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import NotFoundError, ValidationError
from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission
from rbac_admin.repositories.filters import build_role_query
from rbac_admin.repositories.permission import PermissionRepository
from rbac_admin.repositories.role import RoleHasPermissionRepository, RoleRepository
from rbac_admin.schemas.role import RoleCreate, RoleUpdate
from rbac_admin.utils.pagination import PageFetchResult
from rbac_admin.utils.query import ListParams

logger = structlog.get_logger()


class RoleService:
    """Role management service."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.roles = RoleRepository(db)
        self.links = RoleHasPermissionRepository(db)
        self.permissions = PermissionRepository(db)

    async def get(self, role_id: int) -> Role:
        """Get role by ID or raise NotFoundError."""
        role = await self.roles.get_by_id(role_id)
        if not role:
            raise NotFoundError(f"Role {role_id} not found")
        return role

    async def list_roles(self, params: ListParams) -> PageFetchResult[Role]:
        query = build_role_query(params, tz_name=settings.date_range_timezone)
        return await self.roles.fetch_page(query, params)

    async def create(self, data: RoleCreate) -> Role:
        role = await self.roles.create(name=data.name, status=data.status)
        logger.info("role_created", role_id=role.id)
        return await self.roles.reload(role)

    async def update(self, role_id: int, data: RoleUpdate) -> Role:
        """
        Update name/status and, when given, replace the permission set.

        Everything happens in one transaction; an unknown permission id
        leaves the role untouched.
        """
        role = await self.get(role_id)
        changes = data.model_dump(exclude_unset=True, exclude={"permissions"})
        changes = {k: v for k, v in changes.items() if v is not None}

        async with self.roles.transaction():
            if changes:
                await self.roles.update(role, **changes)
            if data.permissions is not None:
                await self.sync_permissions(role, data.permissions)

        logger.info("role_updated", role_id=role.id, fields=sorted(changes))
        return await self.roles.reload(role)

    async def sync_permissions(self, role: Role, permission_ids: Iterable[int]) -> None:
        """
        Make the role's active permissions exactly `permission_ids`.

        Missing links are created, inactive wanted links reactivated and
        active unwanted links deactivated.
        """
        wanted = set(permission_ids)
        found = {p.id for p in await self.permissions.get_by_ids(wanted)} if wanted else set()
        missing = wanted - found
        if missing:
            raise NotFoundError(
                "Unknown permission ids",
                details={"permission_ids": sorted(missing)},
            )

        existing = await self.links.links_for_role(role.id)

        created = [pid for pid in sorted(wanted) if pid not in existing]
        for permission_id in created:
            await self.links.create(role_id=role.id, permission_id=permission_id, status=True)

        reactivated = [pid for pid, link in existing.items() if pid in wanted and not link.status]
        if reactivated:
            await self.links.update_many(
                [RoleHasPermission.role_id == role.id, RoleHasPermission.permission_id.in_(reactivated)],
                {"status": True},
            )

        deactivated = [pid for pid, link in existing.items() if pid not in wanted and link.status]
        if deactivated:
            await self.links.update_many(
                [RoleHasPermission.role_id == role.id, RoleHasPermission.permission_id.in_(deactivated)],
                {"status": False},
            )

        logger.info(
            "role_permissions_synced",
            role_id=role.id,
            created=created,
            reactivated=sorted(reactivated),
            deactivated=sorted(deactivated),
        )

    async def delete(self, role_id: int) -> Role:
        """Soft delete role."""
        role = await self.get(role_id)
        await self.roles.soft_delete(role)
        logger.info("role_deleted", role_id=role.id)
        return role

    async def set_status(self, role_id: int, status: bool) -> Role:
        role = await self.get(role_id)
        await self.roles.update(role, status=status)
        return role

    async def bulk_set_status(self, ids: list[int], status: bool) -> int:
        count = await self.roles.update_many([Role.id.in_(ids)], {"status": status})
        logger.info("roles_status_updated", count=count, status=status)
        return count

    async def assign_permission(self, role_id: int, permission_id: int) -> RoleHasPermission:
        """Link a permission, reactivating an existing inactive link."""
        await self.get(role_id)
        permission = await self.permissions.get_by_id(permission_id)
        if not permission:
            raise NotFoundError(f"Permission {permission_id} not found")
        if not permission.status:
            raise ValidationError(f"Permission {permission_id} is inactive")

        link = await self.links.get_link(role_id, permission_id)
        if link is None:
            link = await self.links.create(role_id=role_id, permission_id=permission_id, status=True)
        elif not link.status:
            await self.links.update(link, status=True)

        logger.info("role_permission_assigned", role_id=role_id, permission_id=permission_id)
        return link

    async def remove_permission(self, role_id: int, permission_id: int) -> RoleHasPermission:
        """Deactivate a permission link."""
        link = await self.links.get_link(role_id, permission_id)
        if link is None:
            raise NotFoundError(f"Role {role_id} has no permission {permission_id}")

        if link.status:
            await self.links.update(link, status=False)
        logger.info("role_permission_removed", role_id=role_id, permission_id=permission_id)
        return link
