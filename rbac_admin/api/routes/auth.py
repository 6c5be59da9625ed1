"""
Authentication routes.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from rbac_admin.api.dependencies.auth import CurrentUser, oauth2_scheme
from rbac_admin.api.dependencies.services import get_auth_service
from rbac_admin.core.config import settings
from rbac_admin.schemas.auth import (
    CurrentTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisteredUser,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenInfo,
    TokenPayload,
    TokenResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from rbac_admin.schemas.base import MessageResponse
from rbac_admin.schemas.user import UserRow
from rbac_admin.services.auth import AuthService, RequestContext
from rbac_admin.services.token import IssuedToken, TokenPair, TokenService, TokenType

router = APIRouter()


def token_info(issued: IssuedToken) -> TokenInfo:
    return TokenInfo(
        payload=TokenPayload.model_validate(issued.payload),
        expires_at=issued.expires_at,
    )


def set_refresh_cookie(response: Response, pair: TokenPair) -> None:
    response.set_cookie(
        key=settings.auth.refresh_cookie_name,
        value=pair.refresh.token,
        max_age=settings.auth.refresh_token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.auth.refresh_cookie_secure,
        samesite="strict",
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user with an existing, active role."""
    user = await auth_service.register(data)
    return RegisterResponse(
        message="User registered successfully",
        user=RegisteredUser.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login with email and password."""
    user, pair = await auth_service.login(data.email, data.password)
    set_refresh_cookie(response, pair)
    return LoginResponse(
        access_token=pair.access.token,
        refresh_token=pair.refresh.token,
        token_info=token_info(pair.access),
        user=UserRow.model_validate(user),
    )


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    data: RefreshTokenRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Rotate the refresh token.

    The token is read from the body or, when absent, from the refresh cookie.
    The presented token stops working once this call succeeds.
    """
    presented = (data.refresh_token if data else None) or request.cookies.get(
        settings.auth.refresh_cookie_name
    )
    _, pair = await auth_service.refresh(presented)
    set_refresh_cookie(response, pair)
    return TokenResponse(
        access_token=pair.access.token,
        refresh_token=pair.refresh.token,
        token_info=token_info(pair.access),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current_user: CurrentUser,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Invalidate the stored refresh token and clear the cookie."""
    await auth_service.logout(current_user)
    response.delete_cookie(
        key=settings.auth.refresh_cookie_name,
        httponly=True,
        secure=settings.auth.refresh_cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/token", response_model=CurrentTokenResponse)
async def get_token_info(
    current_user: CurrentUser,
    token: str | None = Depends(oauth2_scheme),
):
    """Claims and expiry of the presented access token, with its user."""
    tokens = TokenService()
    payload = tokens.verify(token, TokenType.ACCESS)
    return CurrentTokenResponse(
        token_info=TokenInfo(
            payload=TokenPayload.model_validate(payload),
            expires_at=tokens.expires_at(payload),
        ),
        user=UserRow.model_validate(current_user),
    )


# ============================================================
# PASSWORD RESET
# ============================================================

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Email a reset code if the account exists."""
    await auth_service.forgot_password(
        data.email,
        RequestContext(
            ip=getattr(request.state, "client_ip", None),
            user_agent=request.headers.get("user-agent"),
        ),
    )
    return MessageResponse(message="If the email is registered, a reset code has been sent")


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    data: VerifyCodeRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange the emailed code for a one-time reset token."""
    reset_token = await auth_service.verify_code(data.email, data.code)
    return VerifyCodeResponse(message="Code verified", reset_token=reset_token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Set a new password using a reset token."""
    await auth_service.reset_password(data.email, data.reset_token, data.new_password)
    return MessageResponse(message="Password has been reset")
