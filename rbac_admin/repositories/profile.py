"""
Profile repository.
"""

from rbac_admin.models.profile_user import ProfileUser
from rbac_admin.repositories.base import BaseRepository


class ProfileUserRepository(BaseRepository[ProfileUser]):
    model = ProfileUser

    async def get_for_user(self, user_id: int) -> ProfileUser | None:
        return await self.get_one(user_id=user_id)
