"""
Repository pattern for data access.
"""

from rbac_admin.repositories.base import BaseRepository
from rbac_admin.repositories.filters import (
    EntityQuery,
    build_permission_query,
    build_role_query,
    build_user_query,
)
from rbac_admin.repositories.password_reset import PasswordResetRepository
from rbac_admin.repositories.permission import PermissionRepository
from rbac_admin.repositories.profile import ProfileUserRepository
from rbac_admin.repositories.role import RoleHasPermissionRepository, RoleRepository
from rbac_admin.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "EntityQuery",
    "build_user_query",
    "build_role_query",
    "build_permission_query",
    "UserRepository",
    "RoleRepository",
    "RoleHasPermissionRepository",
    "PermissionRepository",
    "ProfileUserRepository",
    "PasswordResetRepository",
]
