"""
User service.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import ConflictError, NotFoundError, ValidationError
from rbac_admin.models.profile_user import ProfileUser
from rbac_admin.models.user import User
from rbac_admin.repositories.filters import build_user_query
from rbac_admin.repositories.profile import ProfileUserRepository
from rbac_admin.repositories.role import RoleRepository
from rbac_admin.repositories.user import UserRepository
from rbac_admin.schemas.user import UserCreate, UserUpdate
from rbac_admin.services.auth import hash_password, verify_password
from rbac_admin.utils.pagination import PageFetchResult
from rbac_admin.utils.query import ListParams

logger = structlog.get_logger()


class UserService:
    """User management service."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.roles = RoleRepository(db)
        self.profiles = ProfileUserRepository(db)

    async def get(self, user_id: int) -> User:
        """Get user by ID or raise NotFoundError."""
        user = await self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def list_users(self, params: ListParams) -> PageFetchResult[User]:
        query = build_user_query(params, tz_name=settings.date_range_timezone)
        return await self.users.fetch_page(query, params)

    async def _ensure_role(self, role_id: int) -> None:
        role = await self.roles.get_by_id(role_id)
        if not role:
            raise NotFoundError(f"Role {role_id} not found")
        if not role.status:
            raise ValidationError(f"Role {role_id} is inactive")

    async def _ensure_email_free(self, email: str, user_id: int | None = None) -> None:
        existing = await self.users.get_by_email(email)
        if existing and existing.id != user_id:
            raise ConflictError("Email already registered")

    async def create(self, data: UserCreate) -> User:
        """Create user."""
        await self._ensure_email_free(data.email)
        await self._ensure_role(data.role_id)

        user = await self.users.create(
            email=data.email,
            password_hash=hash_password(data.password),
            role_id=data.role_id,
            status=data.status,
        )
        logger.info("user_created", user_id=user.id, role_id=user.role_id)
        return await self.reload(user)

    async def update(self, user_id: int, data: UserUpdate) -> User:
        """Update user."""
        user = await self.get(user_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("At least one field must be provided")

        if update_data.get("email") is not None:
            await self._ensure_email_free(update_data["email"], user_id=user.id)
        if update_data.get("role_id") is not None:
            await self._ensure_role(update_data["role_id"])

        password = update_data.pop("password", None)
        if password:
            update_data["password_hash"] = hash_password(password)

        # Explicit nulls mean "leave unchanged"
        update_data = {k: v for k, v in update_data.items() if v is not None}

        await self.users.update(user, **update_data)
        logger.info("user_updated", user_id=user.id, fields=sorted(update_data))
        return await self.reload(user)

    async def delete(self, user_id: int) -> User:
        """Soft delete user."""
        user = await self.get(user_id)
        await self.users.soft_delete(user)
        logger.info("user_deleted", user_id=user.id)
        return user

    async def set_status(self, user_id: int, status: bool) -> User:
        user = await self.get(user_id)
        await self.users.update(user, status=status)
        return user

    async def bulk_set_status(self, ids: list[int], status: bool) -> int:
        """Set status on every listed user; returns the number changed."""
        count = await self.users.update_many([User.id.in_(ids)], {"status": status})
        logger.info("users_status_updated", count=count, status=status)
        return count

    async def change_password(self, user_id: int, password: str) -> User:
        """Set a new password and end the user's refresh session."""
        user = await self.get(user_id)
        await self.users.update(
            user,
            password_hash=hash_password(password),
            refresh_token=None,
        )
        logger.info("user_password_changed", user_id=user.id)
        return user

    def check_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.password_hash)

    async def change_role(self, user_id: int, role_id: int) -> User:
        user = await self.get(user_id)
        await self._ensure_role(role_id)
        await self.users.update(user, role_id=role_id)
        logger.info("user_role_changed", user_id=user.id, role_id=role_id)
        return await self.reload(user)

    # --- Profile ---

    async def get_profile(self, user_id: int) -> ProfileUser:
        await self.get(user_id)
        profile = await self.profiles.get_for_user(user_id)
        if not profile:
            raise NotFoundError(f"User {user_id} has no linked profile")
        return profile

    async def link_profile(self, user_id: int, profile_id: int) -> ProfileUser:
        """Link a free profile to the user, replacing any current link."""
        user = await self.get(user_id)
        profile = await self.profiles.get_by_id(profile_id)
        if not profile:
            raise NotFoundError(f"Profile {profile_id} not found")
        if profile.user_id is not None and profile.user_id != user.id:
            raise ConflictError(f"Profile {profile_id} is linked to another user")

        current = await self.profiles.get_for_user(user.id)
        if current and current.id != profile.id:
            await self.profiles.update(current, user_id=None)

        await self.profiles.update(profile, user_id=user.id)
        logger.info("user_profile_linked", user_id=user.id, profile_id=profile.id)
        return profile

    async def unlink_profile(self, user_id: int) -> ProfileUser:
        """Detach the user's profile; the profile itself is kept."""
        profile = await self.get_profile(user_id)
        await self.profiles.update(profile, user_id=None)
        logger.info("user_profile_unlinked", user_id=user_id, profile_id=profile.id)
        return profile

    async def reload(self, user: User) -> User:
        """Refresh a user with its role and profile."""
        await self.db.refresh(user, attribute_names=["role", "profile"])
        return user
