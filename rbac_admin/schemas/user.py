"""
User schemas.
"""

from typing import Optional

from pydantic import EmailStr, Field, PositiveInt, field_validator

from .base import CamelModel, UtcDatetime


class RoleSummary(CamelModel):
    """Role embedded in a user row."""

    id: int
    name: str
    status: bool
    created_at: UtcDatetime


class ProfileRow(CamelModel):
    id: int
    user_id: Optional[int] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    status: bool


class UserRow(CamelModel):
    """
    User as returned by the API. Password hashes and refresh tokens are
    never exposed.

    List endpoints sort by: id, email, status, createdAt, updatedAt.
    They filter by: search | q | email (substring), status, role (role name
    substring), roleId, createdAt {from, to}.
    """

    id: int
    email: str
    role_id: int
    role: Optional[RoleSummary] = None
    status: bool
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None


class UserDetail(UserRow):
    """User with the linked profile."""

    profile: Optional[ProfileRow] = None


def _normalize_email(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else value


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role_id: PositiveInt
    status: bool = True

    _email = field_validator("email", mode="before")(_normalize_email)


class UserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role_id: Optional[PositiveInt] = None
    status: Optional[bool] = None

    _email = field_validator("email", mode="before")(_normalize_email)


class PasswordChange(CamelModel):
    password: str = Field(min_length=6, max_length=128)


class PasswordCheck(CamelModel):
    password: str = Field(min_length=1)


class PasswordCheckResult(CamelModel):
    valid: bool


class RoleChange(CamelModel):
    role_id: PositiveInt


class ProfileLink(CamelModel):
    profile_id: PositiveInt
