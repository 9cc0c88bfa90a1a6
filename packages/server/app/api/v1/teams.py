"""
Team API endpoints for regular users.

GET /api/v1/teams — Teams the caller belongs to (share targets)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_user
from app.core.database import get_session
from app.services import teams as team_service
from slugbase_shared.schemas.teams import TeamListResponse

router = APIRouter()


@router.get("", response_model=TeamListResponse)
async def list_my_teams(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return TeamListResponse(data=await team_service.list_user_teams(auth.user_id, session))
