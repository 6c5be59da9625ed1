"""
Authentication and permission dependencies.

Usage:
    from rbac_admin.api.dependencies.auth import CurrentUser, require_permission

    @router.get("/me")
    async def handler(user: CurrentUser):
        ...

    @router.get("/", dependencies=[Depends(require_permission("read_admin_user"))])
    async def list_users(...):
        ...
"""

from typing import Annotated, Callable

import structlog
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import AuthenticationError, AuthorizationError
from rbac_admin.core.permissions import has_permission
from rbac_admin.models.user import User
from rbac_admin.services.auth import AuthService
from .services import get_auth_service

logger = structlog.get_logger()

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_prefix}/auth/login",
    auto_error=False,
)


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """
    Get current authenticated user from the bearer token.

    Raises:
        AuthenticationError: missing/invalid token or inactive user
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    return await auth.authenticate_token(token)


CurrentUser = Annotated[User, Depends(get_current_user)]


def granted_permissions(user: User) -> set[str]:
    """Names of the active permissions reachable through the user's active role."""
    role = user.role
    if role is None or not role.status:
        return set()
    return {
        link.permission.name
        for link in role.permission_links
        if link.status and link.permission.status
    }


def require_permission(permission: str) -> Callable:
    """
    Dependency factory guarding a route with one permission name.

    Holders of full_permissions pass every check.
    """

    async def check_permission(user: CurrentUser) -> User:
        if not has_permission(granted_permissions(user), permission):
            logger.info("permission_denied", user_id=user.id, permission=permission)
            raise AuthorizationError(f"Permission denied: {permission}")
        return user

    return check_permission
