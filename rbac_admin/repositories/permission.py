"""
Permission repository.
"""

from rbac_admin.models.permission import Permission
from rbac_admin.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    model = Permission

    async def get_by_name(self, name: str) -> Permission | None:
        return await self.get_one(name=name)
