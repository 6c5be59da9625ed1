"""
Permission service.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import NotFoundError
from rbac_admin.models.permission import Permission
from rbac_admin.repositories.filters import build_permission_query
from rbac_admin.repositories.permission import PermissionRepository
from rbac_admin.schemas.permission import PermissionCreate, PermissionUpdate
from rbac_admin.utils.pagination import PageFetchResult
from rbac_admin.utils.query import ListParams

logger = structlog.get_logger()


class PermissionService:
    """Permission management service."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.permissions = PermissionRepository(db)

    async def get(self, permission_id: int) -> Permission:
        permission = await self.permissions.get_by_id(permission_id)
        if not permission:
            raise NotFoundError(f"Permission {permission_id} not found")
        return permission

    async def list_permissions(self, params: ListParams) -> PageFetchResult[Permission]:
        query = build_permission_query(params, tz_name=settings.date_range_timezone)
        return await self.permissions.fetch_page(query, params)

    async def list_all(self) -> list[Permission]:
        """Every permission by name, capped at the maximum page size."""
        return await self.permissions.find_many(
            order_by=[Permission.name.asc()],
            limit=settings.pagination.max_page_size,
        )

    async def create(self, data: PermissionCreate) -> Permission:
        permission = await self.permissions.create(name=data.name, status=data.status)
        logger.info("permission_created", permission_id=permission.id, name=permission.name)
        return permission

    async def update(self, permission_id: int, data: PermissionUpdate) -> Permission:
        permission = await self.get(permission_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if changes:
            await self.permissions.update(permission, **changes)
        logger.info("permission_updated", permission_id=permission.id, fields=sorted(changes))
        return permission

    async def delete(self, permission_id: int) -> Permission:
        """Soft delete permission."""
        permission = await self.get(permission_id)
        await self.permissions.soft_delete(permission)
        logger.info("permission_deleted", permission_id=permission.id)
        return permission
