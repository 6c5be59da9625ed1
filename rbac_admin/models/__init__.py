"""
Database models.
"""

from .base import (
    Base,
    IdMixin,
    TimestampMixin,
    StatusMixin,
    StandardMixin,
)
from .role import Role
from .permission import Permission
from .role_has_permission import RoleHasPermission
from .user import User
from .profile_user import ProfileUser
from .password_reset import PasswordReset
from .audit_log import AuditLog

__all__ = [
    # Base
    "Base",
    # Mixins
    "IdMixin",
    "TimestampMixin",
    "StatusMixin",
    "StandardMixin",
    # Models
    "Role",
    "Permission",
    "RoleHasPermission",
    "User",
    "ProfileUser",
    "PasswordReset",
    "AuditLog",
]
