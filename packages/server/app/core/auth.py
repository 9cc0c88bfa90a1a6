"""
Authentication and authorization for Slugbase.

Supports:
- Email/Password login with bcrypt password hashes
- JWT sessions (Bearer header or httpOnly cookie) with a database revocation list
- Per-user forwarding keys (user_key)
- Authorization dependencies: any signed-in user, admin only
- The per-request Viewer (user id + team snapshot) used by the visibility resolver
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Forbidden, Unauthorized
from app.core.middleware import SESSION_COOKIE
from app.models.revoked_token import RevokedToken
from app.models.team import TeamMember
from app.models.user import User
from app.services.visibility import Viewer

log = structlog.get_logger()
settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# User keys (public forwarding namespace)
# ---------------------------------------------------------------------------

# No 0/O, 1/l/I look-alikes except the digit 1
USER_KEY_ALPHABET = "abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ123456789"
USER_KEY_ATTEMPTS_PER_LENGTH = 3
USER_KEY_MAX_LENGTH = 16


def user_key_length(user_count: int) -> int:
    """Shortest key length that keeps collisions unlikely for this many users."""
    for threshold, length in ((10, 4), (100, 5), (1_000, 6), (10_000, 7), (100_000, 8)):
        if user_count < threshold:
            return length
    return 9


def generate_user_key(length: int) -> str:
    return "".join(secrets.choice(USER_KEY_ALPHABET) for _ in range(length))


async def allocate_user_key(session: AsyncSession) -> str:
    """Pick an unused user_key, lengthening it after repeated collisions."""
    user_count = (await session.execute(select(func.count()).select_from(User))).scalar_one()
    length = user_key_length(user_count)
    while length <= USER_KEY_MAX_LENGTH:
        for _ in range(USER_KEY_ATTEMPTS_PER_LENGTH):
            candidate = generate_user_key(length)
            result = await session.execute(select(User.id).where(User.user_key == candidate))
            if result.first() is None:
                return candidate
        log.info("user_key.collision", length=length)
        length += 1
    raise RuntimeError("Unable to allocate a unique user key")


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    is_admin: bool = False,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "is_admin": is_admin,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (database)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, expires_at: datetime, session: AsyncSession) -> None:
    """Add a JWT ID to the revocation list. Idempotent."""
    if await session.get(RevokedToken, jti) is None:
        session.add(RevokedToken(jti=jti, expires_at=expires_at))
        await session.flush()


async def is_jwt_revoked(jti: str, session: AsyncSession) -> bool:
    """Check if a JWT ID has been revoked."""
    return await session.get(RevokedToken, jti) is not None


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated user and the session token claims."""

    def __init__(self, user: User, claims: dict):
        self.user = user
        self.claims = claims
        self.user_id = user.id
        self.is_admin = user.is_admin


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def authenticate_token(token: str, session: AsyncSession) -> AuthenticatedUser:
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti, session):
        raise Unauthorized("Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise Unauthorized("Invalid session")

    user = await session.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")

    return AuthenticatedUser(user=user, claims=payload)


async def get_authenticated_user(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency. Tries the Bearer header, then the cookie."""
    token = extract_token(request, authorization)
    if not token:
        raise Unauthorized("Authentication required")

    auth_user = await authenticate_token(token, session)
    request.state.auth = auth_user
    structlog.contextvars.bind_contextvars(user_id=str(auth_user.user_id))
    return auth_user


# ---------------------------------------------------------------------------
# Authorization dependencies
# ---------------------------------------------------------------------------

async def require_user(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any signed-in user can access this endpoint."""
    return auth


async def require_admin(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires the is_admin flag."""
    if not auth.is_admin:
        raise Forbidden("Administrator access required")
    return auth


async def load_team_ids(user_id: uuid.UUID, session: AsyncSession) -> frozenset[uuid.UUID]:
    result = await session.execute(
        select(TeamMember.team_id).where(TeamMember.user_id == user_id)
    )
    return frozenset(result.scalars().all())


async def get_viewer(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
) -> Viewer:
    """Snapshot of who is asking: user id plus current team memberships.

    Loaded fresh on every request and passed explicitly to the services.
    """
    team_ids = await load_team_ids(auth.user_id, session)
    return Viewer(user_id=auth.user_id, team_ids=team_ids)
