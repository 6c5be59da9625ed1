"""
Role schemas.
"""

from typing import Optional

from pydantic import AliasChoices, Field, PositiveInt

from .base import CamelModel, UtcDatetime
from .permission import PermissionRow


class RoleRow(CamelModel):
    """
    Role with its active permissions.

    List endpoints sort by: id, name, status, createdAt, updatedAt.
    They filter by: search | q | name (substring), status, createdAt {from, to}.
    """

    id: int
    name: str
    status: bool
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None
    permissions: list[PermissionRow] = Field(
        default_factory=list,
        validation_alias=AliasChoices("active_permissions", "permissions"),
    )


class RoleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    status: bool = True


class RoleUpdate(CamelModel):
    """
    Role changes.

    When `permissions` is present the role's active permission set becomes
    exactly that list of ids.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[bool] = None
    permissions: Optional[list[PositiveInt]] = None


class RolePermissionRequest(CamelModel):
    role_id: PositiveInt
    permission_id: PositiveInt


class RoleHasPermissionRow(CamelModel):
    id: int
    role_id: int
    permission_id: int
    status: bool
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None
