"""
Team service — admin CRUD, membership management, and the caller's own teams.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import flush_or_conflict
from app.core.errors import NotFound, SlugConflict, ValidationFailed
from app.models.team import Team, TeamMember
from app.models.user import User
from slugbase_shared.schemas.common import UserRef, sanitize_string, validate_length
from slugbase_shared.schemas.teams import (
    TeamCreate,
    TeamDetailResponse,
    TeamMembersAdd,
    TeamResponse,
    TeamUpdate,
)

log = structlog.get_logger()


def _clean_name(name: Optional[str]) -> str:
    name = sanitize_string(name)
    if not name:
        raise ValidationFailed("Team name is required")
    ok, msg = validate_length(name, "team_name")
    if not ok:
        raise ValidationFailed(msg)
    return name


def _clean_description(description: Optional[str]) -> Optional[str]:
    description = sanitize_string(description)
    if not description:
        return None
    ok, msg = validate_length(description, "team_description")
    if not ok:
        raise ValidationFailed(msg)
    return description


async def _member_counts(team_ids: list[uuid.UUID], session: AsyncSession) -> dict:
    if not team_ids:
        return {}
    result = await session.execute(
        select(TeamMember.team_id, func.count())
        .where(TeamMember.team_id.in_(team_ids))
        .group_by(TeamMember.team_id)
    )
    return dict(result.all())


def _to_response(team: Team, member_count: int) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        name=team.name,
        description=team.description,
        member_count=member_count,
        created_at=team.created_at,
    )


async def _get_team(team_id: uuid.UUID, session: AsyncSession) -> Team:
    team = await session.get(Team, team_id)
    if team is None:
        raise NotFound("Team not found")
    return team


async def _ensure_name_available(
    name: str, session: AsyncSession, exclude_id: uuid.UUID | None = None
) -> None:
    query = select(Team.id).where(Team.name == name)
    if exclude_id is not None:
        query = query.where(Team.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise SlugConflict(f"A team named '{name}' already exists")


# ---------------------------------------------------------------------------
# Caller-facing
# ---------------------------------------------------------------------------

async def list_user_teams(user_id: uuid.UUID, session: AsyncSession) -> list[TeamResponse]:
    """Teams the given user belongs to."""
    result = await session.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user_id)
        .order_by(func.lower(Team.name))
    )
    teams = list(result.scalars().all())
    counts = await _member_counts([t.id for t in teams], session)
    return [_to_response(t, counts.get(t.id, 0)) for t in teams]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

async def list_teams(session: AsyncSession) -> list[TeamResponse]:
    result = await session.execute(select(Team).order_by(func.lower(Team.name)))
    teams = list(result.scalars().all())
    counts = await _member_counts([t.id for t in teams], session)
    return [_to_response(t, counts.get(t.id, 0)) for t in teams]


async def get_team(team_id: uuid.UUID, session: AsyncSession) -> TeamDetailResponse:
    team = await _get_team(team_id, session)
    result = await session.execute(
        select(User)
        .join(TeamMember, TeamMember.user_id == User.id)
        .where(TeamMember.team_id == team_id)
        .order_by(func.lower(User.name))
    )
    members = [UserRef(id=u.id, name=u.name, email=u.email) for u in result.scalars().all()]
    return TeamDetailResponse(
        **_to_response(team, len(members)).model_dump(),
        members=members,
    )


async def create_team(req: TeamCreate, session: AsyncSession) -> TeamResponse:
    name = _clean_name(req.name)
    await _ensure_name_available(name, session)
    team = Team(name=name, description=_clean_description(req.description))
    session.add(team)
    await flush_or_conflict(session, f"A team named '{name}' already exists")
    log.info("team.created", team_id=str(team.id), name=name)
    return _to_response(team, 0)


async def update_team(team_id: uuid.UUID, req: TeamUpdate, session: AsyncSession) -> TeamResponse:
    team = await _get_team(team_id, session)
    supplied = req.model_fields_set
    if "name" in supplied:
        name = _clean_name(req.name)
        if name != team.name:
            await _ensure_name_available(name, session, exclude_id=team.id)
        team.name = name
    if "description" in supplied:
        team.description = _clean_description(req.description)
    team.updated_at = datetime.now(timezone.utc)
    session.add(team)
    await flush_or_conflict(session, f"A team named '{team.name}' already exists")
    counts = await _member_counts([team.id], session)
    log.info("team.updated", team_id=str(team.id))
    return _to_response(team, counts.get(team.id, 0))


async def delete_team(team_id: uuid.UUID, session: AsyncSession) -> None:
    """Delete a team. Membership and every share granted to it go with it."""
    team = await _get_team(team_id, session)
    await session.delete(team)
    await session.flush()
    log.info("team.deleted", team_id=str(team_id))


async def add_members(
    team_id: uuid.UUID, req: TeamMembersAdd, session: AsyncSession
) -> TeamDetailResponse:
    """Add users to a team. Already-present members are left alone."""
    await _get_team(team_id, session)
    wanted = set(req.user_ids)

    result = await session.execute(select(User.id).where(User.id.in_(list(wanted))))
    if wanted - set(result.scalars().all()):
        raise ValidationFailed("One or more users do not exist")

    result = await session.execute(
        select(TeamMember.user_id).where(TeamMember.team_id == team_id)
    )
    existing = set(result.scalars().all())
    for user_id in wanted - existing:
        session.add(TeamMember(team_id=team_id, user_id=user_id))
    await session.flush()

    log.info("team.members_added", team_id=str(team_id), count=len(wanted - existing))
    return await get_team(team_id, session)


async def remove_member(team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession) -> None:
    membership = await session.get(TeamMember, (team_id, user_id))
    if membership is None:
        raise NotFound("User is not a member of this team")
    await session.delete(membership)
    await session.flush()
    log.info("team.member_removed", team_id=str(team_id), user_id=str(user_id))
