"""
Permission schemas.
"""

from typing import Optional

from pydantic import Field

from .base import CamelModel, UtcDatetime


class PermissionRow(CamelModel):
    """
    Permission as returned by the API.

    List endpoints sort by: id, name, status, createdAt, updatedAt.
    They filter by: search | q | name (substring), status, createdAt {from, to}.
    """

    id: int
    name: str
    status: bool
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None


class PermissionCreate(CamelModel):
    name: str = Field(min_length=1, max_length=150)
    status: bool = True


class PermissionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    status: Optional[bool] = None
