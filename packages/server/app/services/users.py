"""
User management service — profile edits and admin user CRUD.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import allocate_user_key, hash_password
from app.core.database import flush_or_conflict
from app.core.errors import Forbidden, NotFound, SlugConflict, ValidationFailed
from app.models.user import User
from slugbase_shared.schemas.common import sanitize_string, validate_password
from slugbase_shared.schemas.users import (
    AdminUserCreate,
    AdminUserUpdate,
    ProfileUpdate,
    UserResponse,
)

log = structlog.get_logger()


def to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        user_key=user.user_key,
        is_admin=user.is_admin,
        language=user.language,
        theme=user.theme,
        created_at=user.created_at,
    )


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password(password: str) -> None:
    ok, msg = validate_password(password)
    if not ok:
        raise ValidationFailed(msg)


def _clean_name(name: Optional[str]) -> str:
    name = sanitize_string(name)
    if not name:
        raise ValidationFailed("Name is required")
    return name


async def get_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def count_users(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(User))).scalar_one()


async def create_user(
    email: str,
    name: str,
    password: str,
    session: AsyncSession,
    *,
    is_admin: bool = False,
) -> User:
    """Create a password account with a freshly allocated user_key."""
    email = normalize_email(email)
    check_password(password)
    if await get_by_email(email, session):
        raise SlugConflict("Email already registered")

    user = User(
        email=email,
        name=_clean_name(name),
        user_key=await allocate_user_key(session),
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    session.add(user)
    await flush_or_conflict(session, "Email already registered")
    log.info("user.created", user_id=str(user.id), is_admin=is_admin)
    return user


async def _get_user(user_id: uuid.UUID, session: AsyncSession) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------

async def update_profile(user: User, req: ProfileUpdate, session: AsyncSession) -> UserResponse:
    if req.name is not None:
        user.name = _clean_name(req.name)
    if req.language is not None:
        user.language = req.language
    if req.theme is not None:
        user.theme = req.theme.value
    session.add(user)
    await session.flush()
    log.info("user.profile_updated", user_id=str(user.id))
    return to_response(user)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

async def list_users(session: AsyncSession) -> list[UserResponse]:
    result = await session.execute(select(User).order_by(func.lower(User.name)))
    return [to_response(u) for u in result.scalars().all()]


async def get_user(user_id: uuid.UUID, session: AsyncSession) -> UserResponse:
    return to_response(await _get_user(user_id, session))


async def admin_create_user(req: AdminUserCreate, session: AsyncSession) -> UserResponse:
    user = await create_user(req.email, req.name, req.password, session, is_admin=req.is_admin)
    return to_response(user)


async def admin_update_user(
    user_id: uuid.UUID, req: AdminUserUpdate, session: AsyncSession
) -> UserResponse:
    user = await _get_user(user_id, session)

    if req.email is not None:
        email = normalize_email(req.email)
        if email != user.email:
            existing = await get_by_email(email, session)
            if existing and existing.id != user.id:
                raise SlugConflict("Email already registered")
            user.email = email
    if req.name is not None:
        user.name = _clean_name(req.name)
    if req.password is not None:
        check_password(req.password)
        user.password_hash = hash_password(req.password)
    if req.is_admin is not None:
        user.is_admin = req.is_admin
    if req.language is not None:
        user.language = req.language
    if req.theme is not None:
        user.theme = req.theme.value

    session.add(user)
    await flush_or_conflict(session, "Email already registered")
    log.info("user.updated", user_id=str(user_id))
    return to_response(user)


async def admin_delete_user(
    user_id: uuid.UUID, caller_user_id: uuid.UUID, session: AsyncSession
) -> None:
    """Delete a user and, via cascades, everything they own."""
    if user_id == caller_user_id:
        raise Forbidden("You cannot delete your own account")
    user = await _get_user(user_id, session)
    await session.delete(user)
    await session.flush()
    log.info("user.deleted", user_id=str(user_id))


async def ensure_user_exists(user_id: uuid.UUID, session: AsyncSession) -> None:
    await _get_user(user_id, session)
