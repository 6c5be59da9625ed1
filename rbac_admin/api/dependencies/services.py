"""
Service dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.interfaces.email import EmailBackend
from rbac_admin.implementations.email import get_email_backend
from rbac_admin.services.auth import AuthService
from rbac_admin.services.permission import PermissionService
from rbac_admin.services.role import RoleService
from rbac_admin.services.user import UserService
from .database import get_db


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email: EmailBackend = Depends(get_email_backend),
) -> AuthService:
    """Get auth service instance."""
    return AuthService(db, email_backend=email)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Get user service instance."""
    return UserService(db)


async def get_role_service(db: AsyncSession = Depends(get_db)) -> RoleService:
    """Get role service instance."""
    return RoleService(db)


async def get_permission_service(db: AsyncSession = Depends(get_db)) -> PermissionService:
    """Get permission service instance."""
    return PermissionService(db)
