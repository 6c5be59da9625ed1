"""
Token issuing and verification.

Access and refresh tokens are HS256 JWTs signed with separate secrets and
tagged with a `type` claim, so one can never be accepted as the other.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from rbac_admin.core.config import AuthSettings, settings
from rbac_admin.core.exceptions import AuthenticationError
from rbac_admin.utils.timezone import UTC, utc_now


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass
class IssuedToken:
    """A signed token with its claims."""
    token: str
    payload: dict[str, Any]
    expires_at: datetime


@dataclass
class TokenPair:
    """Access and refresh token pair."""
    access: IssuedToken
    refresh: IssuedToken


class TokenService:
    """Signs and verifies JWTs."""

    def __init__(self, config: AuthSettings | None = None):
        self.config = config or settings.auth

    def _secret(self, token_type: TokenType) -> str:
        if token_type is TokenType.REFRESH:
            return self.config.refresh_secret_key
        return self.config.secret_key

    def _ttl(self, token_type: TokenType) -> timedelta:
        if token_type is TokenType.REFRESH:
            return timedelta(days=self.config.refresh_token_expire_days)
        return timedelta(minutes=self.config.access_token_expire_minutes)

    def sign(self, claims: dict[str, Any], token_type: TokenType) -> IssuedToken:
        """Sign claims as a token of the given type."""
        now = utc_now()
        expires_at = now + self._ttl(token_type)
        payload = {
            **claims,
            "type": token_type.value,
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret(token_type), algorithm=self.config.algorithm)
        return IssuedToken(token=token, payload=payload, expires_at=expires_at)

    def verify(self, token: str, token_type: TokenType) -> dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            AuthenticationError: bad signature, expired, or wrong type
        """
        try:
            payload = jwt.decode(
                token,
                self._secret(token_type),
                algorithms=[self.config.algorithm],
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError("Token has expired") from exc
        except JWTError as exc:
            raise AuthenticationError("Invalid token") from exc

        if payload.get("type") != token_type.value or not payload.get("sub"):
            raise AuthenticationError("Invalid token")
        return payload

    def issue_pair(self, claims: dict[str, Any]) -> TokenPair:
        return TokenPair(
            access=self.sign(claims, TokenType.ACCESS),
            refresh=self.sign(claims, TokenType.REFRESH),
        )

    @staticmethod
    def expires_at(payload: dict[str, Any]) -> datetime:
        return datetime.fromtimestamp(payload["exp"], tz=UTC)
