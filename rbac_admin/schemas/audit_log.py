"""Audit log schemas."""

from enum import Enum
from typing import Any, Optional

from .base import CamelModel


class AuditModule(str, Enum):
    """Entity kinds recorded in the audit trail."""

    USER = "User"
    ROLE = "Role"
    PERMISSION = "Permission"
    ROLE_HAS_PERMISSION = "RoleHasPermission"
    PROFILE_USER = "ProfileUser"


class AuditAction:
    """Standard audit action constants."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS = "status"
    BULK_STATUS = "bulkStatus"
    CHANGE_PASSWORD = "changePassword"
    UPDATE_ROLE = "updateRole"
    LINK_PROFILE = "linkProfile"
    UNLINK_PROFILE = "unlinkProfile"
    ASSIGN_PERMISSION = "assignPermission"
    REMOVE_PERMISSION = "removePermission"


class AuditEntry(CamelModel):
    """One audit record as handed to the audit sink."""

    module: AuditModule
    action: str
    user_id: Optional[int] = None
    entity_id: Optional[int] = None
    data_before: Optional[Any] = None
    data_after: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None

