"""
Authentication service.

Covers registration, login, refresh-token rotation, logout and the
three-step password reset (emailed code, reset token, new password).
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

import structlog
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from rbac_admin.core.interfaces.email import EmailAddress, EmailBackend, EmailMessage
from rbac_admin.models.password_reset import PasswordReset
from rbac_admin.models.user import User
from rbac_admin.repositories.password_reset import PasswordResetRepository
from rbac_admin.repositories.role import RoleRepository
from rbac_admin.repositories.user import UserRepository
from rbac_admin.schemas.auth import RegisterRequest
from rbac_admin.services.token import TokenPair, TokenService, TokenType
from rbac_admin.utils.timezone import to_utc, utc_now

logger = structlog.get_logger()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.auth.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain, hashed)


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_code(length: int) -> str:
    """Numeric one-time code, zero padded."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


@dataclass
class RequestContext:
    """Client details stored with password reset requests."""
    ip: Optional[str] = None
    user_agent: Optional[str] = None


class AuthService:
    """Authentication service."""

    def __init__(
        self,
        db: AsyncSession,
        email_backend: Optional[EmailBackend] = None,
        tokens: Optional[TokenService] = None,
    ):
        self.db = db
        self.email = email_backend
        self.tokens = tokens or TokenService()
        self.users = UserRepository(db)
        self.roles = RoleRepository(db)
        self.resets = PasswordResetRepository(db)

    # ============================================================
    # TOKENS
    # ============================================================

    @staticmethod
    def claims_for(user: User) -> dict[str, Any]:
        return {"sub": str(user.id), "email": user.email, "roleId": user.role_id}

    async def _issue(self, user: User) -> TokenPair:
        """Issue a token pair and make its refresh token the only valid one."""
        pair = self.tokens.issue_pair(self.claims_for(user))
        await self.users.update(user, refresh_token=pair.refresh.token)
        return pair

    async def authenticate_token(self, token: str) -> User:
        """
        Resolve the user an access token belongs to.

        Raises:
            AuthenticationError: invalid token, unknown or inactive user
        """
        payload = self.tokens.verify(token, TokenType.ACCESS)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("Invalid token") from exc

        user = await self.users.get_by_id(user_id)
        if not user or not user.status:
            raise AuthenticationError("User not found or inactive")
        return user

    # ============================================================
    # ACCOUNT
    # ============================================================

    async def register(self, data: RegisterRequest) -> User:
        """Register a new user with an active role, looked up by name."""
        if await self.users.get_by_email(data.email):
            raise ConflictError("Email already registered")

        role = await self.roles.get_by_name(data.role)
        if not role or not role.status:
            raise ConflictError(f"Role '{data.role}' is not available")

        user = await self.users.create(
            email=data.email,
            password_hash=hash_password(data.password),
            role_id=role.id,
        )
        logger.info("user_registered", user_id=user.id, role_id=role.id)
        return user

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate user and return tokens."""
        user = await self.users.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_failed", email=email)
            raise AuthenticationError("Invalid email or password")

        if not user.status:
            raise AuthenticationError("Account is disabled")

        pair = await self._issue(user)
        logger.info("user_logged_in", user_id=user.id)
        return user, pair

    async def refresh(self, refresh_token: Optional[str]) -> tuple[User, TokenPair]:
        """
        Exchange a refresh token for a new pair.

        The presented token must be the one currently stored for the user;
        it is replaced, so every refresh token works exactly once.
        """
        if not refresh_token:
            raise AuthenticationError("Refresh token missing")

        payload = self.tokens.verify(refresh_token, TokenType.REFRESH)
        user = await self.users.get_by_id(int(payload["sub"]))
        if not user or not user.status:
            raise AuthenticationError("User not found or inactive")

        if not user.refresh_token or not hmac.compare_digest(user.refresh_token, refresh_token):
            logger.warning("refresh_token_rejected", user_id=user.id)
            raise AuthorizationError("Refresh token is no longer valid")

        pair = await self._issue(user)
        logger.info("refresh_token_rotated", user_id=user.id)
        return user, pair

    async def logout(self, user: User) -> None:
        """Forget the stored refresh token."""
        await self.users.update(user, refresh_token=None)
        logger.info("user_logged_out", user_id=user.id)

    # ============================================================
    # PASSWORD RESET
    # ============================================================

    async def forgot_password(self, email: str, context: RequestContext | None = None) -> None:
        """
        Email a one-time code.

        Unknown emails are accepted silently so the endpoint cannot be used
        to probe for accounts.
        """
        context = context or RequestContext()
        user = await self.users.get_by_email(email)
        if not user or not user.status:
            logger.info("password_reset_unknown_email", email=email)
            return

        now = utc_now()
        # Only the newest code stays usable
        await self.resets.update_many(
            [PasswordReset.email == user.email, PasswordReset.used_at.is_(None)],
            {"expires_at": now},
        )

        code = generate_code(settings.auth.reset_code_length)
        await self.resets.create(
            email=user.email,
            code_hash=sha256_hex(code),
            expires_at=now + timedelta(minutes=settings.auth.reset_code_ttl_minutes),
            attempts=0,
            ip=context.ip,
            user_agent=context.user_agent,
        )

        if self.email is not None:
            await self.email.send(
                EmailMessage(
                    to=[EmailAddress(email=user.email)],
                    subject="Password reset code",
                    text=(
                        f"Your password reset code is {code}. "
                        f"It expires in {settings.auth.reset_code_ttl_minutes} minutes."
                    ),
                    tags=["password-reset"],
                )
            )
        logger.info("password_reset_requested", user_id=user.id)

    async def verify_code(self, email: str, code: str) -> str:
        """
        Check an emailed code and return a one-time reset token.

        Wrong codes count against the attempt limit; the counter is
        committed before the error is raised.
        """
        record = await self.resets.latest_pending(email)
        if not record:
            raise ValidationError("Invalid or expired code")

        if record.attempts >= settings.auth.reset_max_attempts:
            raise ValidationError("Too many attempts, request a new code")

        now = utc_now()
        if to_utc(record.expires_at) < now:
            raise ValidationError("Invalid or expired code")

        if not hmac.compare_digest(record.code_hash, sha256_hex(code)):
            record.attempts += 1
            await self.db.commit()
            raise ValidationError("Invalid or expired code")

        reset_token = secrets.token_hex(32)
        await self.resets.update(
            record,
            attempts=record.attempts + 1,
            reset_token_hash=sha256_hex(reset_token),
            reset_token_expires_at=now + timedelta(minutes=settings.auth.reset_token_ttl_minutes),
        )
        logger.info("password_reset_code_verified", email=email)
        return reset_token

    async def reset_password(self, email: str, reset_token: str, new_password: str) -> None:
        """Set a new password with a reset token; every pending code for the email is spent."""
        record = await self.resets.by_token_hash(sha256_hex(reset_token))
        if not record or record.email != email:
            raise ValidationError("Invalid or expired reset token")

        now = utc_now()
        if not record.reset_token_expires_at or to_utc(record.reset_token_expires_at) < now:
            raise ValidationError("Invalid or expired reset token")

        user = await self.users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        await self.users.update(
            user,
            password_hash=hash_password(new_password),
            refresh_token=None,
        )
        await self.resets.update_many(
            [PasswordReset.email == email, PasswordReset.used_at.is_(None)],
            {"used_at": now},
        )
        logger.info("password_reset_completed", user_id=user.id)
