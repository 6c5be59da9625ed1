"""
Password reset repository.
"""

from sqlalchemy import select

from rbac_admin.models.password_reset import PasswordReset
from rbac_admin.repositories.base import BaseRepository


class PasswordResetRepository(BaseRepository[PasswordReset]):
    model = PasswordReset

    async def latest_pending(self, email: str) -> PasswordReset | None:
        """Most recent unused reset for an email."""
        stmt = (
            select(PasswordReset)
            .where(PasswordReset.email == email, PasswordReset.used_at.is_(None))
            .order_by(PasswordReset.id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def by_token_hash(self, token_hash: str) -> PasswordReset | None:
        stmt = select(PasswordReset).where(
            PasswordReset.reset_token_hash == token_hash,
            PasswordReset.used_at.is_(None),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
