"""
User profile endpoints.

GET /api/v1/users/me — Current user's profile
PUT /api/v1/users/me — Update name, language, theme
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_user
from app.core.database import get_session
from app.services import users as user_service
from slugbase_shared.schemas.users import ProfileUpdate, UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(auth: AuthenticatedUser = Depends(require_user)):
    return user_service.to_response(auth.user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.update_profile(auth.user, body, session)
    await session.commit()
    return user
