"""
Role and role-permission repositories.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission
from rbac_admin.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    model = Role

    async def get_by_name(self, name: str) -> Role | None:
        return await self.get_one(name=name)

    async def reload(self, role: Role) -> Role:
        """Re-read a role with its permission links and their permissions."""
        stmt = (
            self._base_query()
            .where(Role.id == role.id)
            .options(selectinload(Role.permission_links).joinedload(RoleHasPermission.permission))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.unique().scalar_one()


class RoleHasPermissionRepository(BaseRepository[RoleHasPermission]):
    model = RoleHasPermission

    async def get_link(self, role_id: int, permission_id: int) -> RoleHasPermission | None:
        return await self.get_one(role_id=role_id, permission_id=permission_id)

    async def links_for_role(self, role_id: int) -> dict[int, RoleHasPermission]:
        """Every link of a role (active or not), keyed by permission id."""
        stmt = select(RoleHasPermission).where(RoleHasPermission.role_id == role_id)
        result = await self.db.execute(stmt)
        return {link.permission_id: link for link in result.unique().scalars().all()}
