"""
User repository.
"""

from rbac_admin.models.user import User
from rbac_admin.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get user by (normalized) email."""
        return await self.get_one(email=email.strip().lower())
