"""
Authentication endpoints.

- First-run setup (creates the initial admin)
- Email/Password registration & login
- JWT session management (refresh, logout, me)
"""

from __future__ import annotations

from datetime import datetime, timezone

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    authenticate_token,
    create_jwt,
    decode_jwt,
    extract_token,
    generate_csrf_token,
    require_user,
    revoke_jwt,
    verify_password,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Forbidden, Unauthorized
from app.core.middleware import CSRF_COOKIE, SESSION_COOKIE
from app.models.user import User
from app.services import users as user_service
from slugbase_shared.schemas.users import UserResponse

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


def _issue_session(response: Response, user: User) -> str:
    token, _jti = create_jwt(user.id, is_admin=user.is_admin)
    _set_session_cookies(response, token, generate_csrf_token())
    return token


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    message: str


class SetupStatus(BaseModel):
    initialized: bool
    registration_enabled: bool


# ---------------------------------------------------------------------------
# First-run setup
# ---------------------------------------------------------------------------

@router.get("/setup/status", response_model=SetupStatus)
async def setup_status(session: AsyncSession = Depends(get_session)):
    """Whether an account exists yet. The UI shows the setup wizard when not."""
    return SetupStatus(
        initialized=await user_service.count_users(session) > 0,
        registration_enabled=settings.registration_enabled,
    )


@router.post("/setup", response_model=AuthResponse, status_code=201)
async def setup(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Create the first user as administrator. Only allowed while no users exist."""
    if await user_service.count_users(session) > 0:
        raise Forbidden("Setup has already been completed")

    user = await user_service.create_user(
        body.email, body.name, body.password, session, is_admin=True
    )
    await session.commit()
    token = _issue_session(response, user)
    log.info("auth.setup_completed", user_id=str(user.id))
    return AuthResponse(
        user=user_service.to_response(user), token=token, message="Setup complete"
    )


# ---------------------------------------------------------------------------
# Email/Password Registration & Login
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user with email/password."""
    if not settings.registration_enabled:
        raise Forbidden("Registration is disabled")

    # The very first account always becomes the administrator
    is_first = await user_service.count_users(session) == 0
    user = await user_service.create_user(
        body.email, body.name, body.password, session, is_admin=is_first
    )
    await session.commit()
    token = _issue_session(response, user)

    log.info("user.registered", user_id=str(user.id), email=user.email)
    return AuthResponse(
        user=user_service.to_response(user), token=token, message="Registration successful"
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    user = await user_service.get_by_email(body.email, session)

    if not user or not user.password_hash:
        raise Unauthorized("Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=user.email, reason="bad_password")
        raise Unauthorized("Invalid email or password")

    token = _issue_session(response, user)

    log.info("auth.login_success", user_id=str(user.id))
    return AuthResponse(
        user=user_service.to_response(user), token=token, message="Login successful"
    )


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.get("/me", response_model=UserResponse)
async def me(auth: AuthenticatedUser = Depends(require_user)):
    """Return the signed-in user."""
    return user_service.to_response(auth.user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_session(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Refresh the current JWT session by issuing a new token."""
    token = extract_token(request, request.headers.get("Authorization"))
    if not token:
        raise Unauthorized("No active session")

    auth = await authenticate_token(token, session)

    # Issue new JWT, revoke old one
    new_token = _issue_session(response, auth.user)
    jti = auth.claims.get("jti")
    if jti:
        await revoke_jwt(jti, _expiry(auth.claims), session)
        await session.commit()

    return AuthResponse(
        user=user_service.to_response(auth.user), token=new_token, message="Session refreshed"
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Invalidate the current session."""
    token = extract_token(request, request.headers.get("Authorization"))
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = None  # Token already invalid, just clear cookies
        if payload and payload.get("jti"):
            await revoke_jwt(payload["jti"], _expiry(payload), session)
            await session.commit()
            log.info("auth.logout", user_id=payload.get("sub"))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}


def _expiry(claims: dict) -> datetime:
    exp = claims.get("exp")
    if exp is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(exp, tz=timezone.utc)
