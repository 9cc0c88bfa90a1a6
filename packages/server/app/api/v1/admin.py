"""
Admin API endpoints (is_admin only).

GET    /api/v1/admin/users                          — List users
POST   /api/v1/admin/users                          — Create user
GET    /api/v1/admin/users/{userId}                 — Get user
PUT    /api/v1/admin/users/{userId}                 — Update user
DELETE /api/v1/admin/users/{userId}                 — Delete user (not yourself)
GET    /api/v1/admin/users/{userId}/teams           — A user's teams
GET    /api/v1/admin/teams                          — List teams
POST   /api/v1/admin/teams                          — Create team
GET    /api/v1/admin/teams/{teamId}                 — Team detail with members
PUT    /api/v1/admin/teams/{teamId}                 — Update team
DELETE /api/v1/admin/teams/{teamId}                 — Delete team
POST   /api/v1/admin/teams/{teamId}/members         — Add members
DELETE /api/v1/admin/teams/{teamId}/members/{userId} — Remove member
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_session
from app.services import teams as team_service
from app.services import users as user_service
from slugbase_shared.schemas.teams import (
    TeamCreate,
    TeamDetailResponse,
    TeamListResponse,
    TeamMembersAdd,
    TeamResponse,
    TeamUpdate,
)
from slugbase_shared.schemas.users import (
    AdminUserCreate,
    AdminUserUpdate,
    UserListResponse,
    UserResponse,
)

router = APIRouter()

# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=UserListResponse)
async def list_users(
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return UserListResponse(data=await user_service.list_users(session))


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    body: AdminUserCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.admin_create_user(body, session)
    await session.commit()
    return user


@router.get("/users/{userId}", response_model=UserResponse)
async def get_user(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.get_user(userId, session)


@router.put("/users/{userId}", response_model=UserResponse)
async def update_user(
    userId: uuid.UUID,
    body: AdminUserUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.admin_update_user(userId, body, session)
    await session.commit()
    return user


@router.delete("/users/{userId}", status_code=204)
async def delete_user(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Delete a user and everything they own. Admins cannot delete themselves."""
    await user_service.admin_delete_user(userId, auth.user_id, session)
    await session.commit()
    return Response(status_code=204)


@router.get("/users/{userId}/teams", response_model=TeamListResponse)
async def get_user_teams(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await user_service.ensure_user_exists(userId, session)
    return TeamListResponse(data=await team_service.list_user_teams(userId, session))


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

@router.get("/teams", response_model=TeamListResponse)
async def list_teams(
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return TeamListResponse(data=await team_service.list_teams(session))


@router.post("/teams", response_model=TeamResponse, status_code=201)
async def create_team(
    body: TeamCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.create_team(body, session)
    await session.commit()
    return team


@router.get("/teams/{teamId}", response_model=TeamDetailResponse)
async def get_team(
    teamId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await team_service.get_team(teamId, session)


@router.put("/teams/{teamId}", response_model=TeamResponse)
async def update_team(
    teamId: uuid.UUID,
    body: TeamUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.update_team(teamId, body, session)
    await session.commit()
    return team


@router.delete("/teams/{teamId}", status_code=204)
async def delete_team(
    teamId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await team_service.delete_team(teamId, session)
    await session.commit()
    return Response(status_code=204)


@router.post("/teams/{teamId}/members", response_model=TeamDetailResponse)
async def add_team_members(
    teamId: uuid.UUID,
    body: TeamMembersAdd,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.add_members(teamId, body, session)
    await session.commit()
    return team


@router.delete("/teams/{teamId}/members/{userId}", status_code=204)
async def remove_team_member(
    teamId: uuid.UUID,
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await team_service.remove_member(teamId, userId, session)
    await session.commit()
    return Response(status_code=204)
