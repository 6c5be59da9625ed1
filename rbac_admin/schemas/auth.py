"""
Authentication schemas.
"""

from typing import Any, Optional

from pydantic import EmailStr, Field, field_validator

from .base import CamelModel, UtcDatetime
from .user import UserRow


def _normalize_email(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


class RegisterRequest(CamelModel):
    """Self registration; `role` is the name of an active role."""
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: str = Field(min_length=1, max_length=100)

    _email = field_validator("email", mode="before")(_normalize_email)


class RegisteredUser(CamelModel):
    id: int
    email: str
    role_id: int


class RegisterResponse(CamelModel):
    message: str
    user: RegisteredUser


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    _email = field_validator("email", mode="before")(_normalize_email)


class TokenPayload(CamelModel):
    """Decoded JWT claims."""
    sub: str  # User ID
    email: Optional[str] = None
    role_id: Optional[int] = None
    type: str  # "access" or "refresh"
    jti: Optional[str] = None
    iat: Optional[int] = None
    exp: int


class TokenInfo(CamelModel):
    payload: TokenPayload
    expires_at: UtcDatetime


class TokenResponse(CamelModel):
    """Token pair issued on login and on refresh."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    token_info: TokenInfo


class LoginResponse(TokenResponse):
    user: UserRow


class RefreshTokenRequest(CamelModel):
    """Refresh token in the body; the refreshToken cookie is used when absent."""
    refresh_token: Optional[str] = None


class CurrentTokenResponse(CamelModel):
    token_info: TokenInfo
    user: UserRow


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    _email = field_validator("email", mode="before")(_normalize_email)


class VerifyCodeRequest(CamelModel):
    email: EmailStr
    code: str = Field(pattern=r"^\d{4,10}$")

    _email = field_validator("email", mode="before")(_normalize_email)


class VerifyCodeResponse(CamelModel):
    message: str
    reset_token: str


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    reset_token: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)

    _email = field_validator("email", mode="before")(_normalize_email)
