"""
Share-target validation and reference lookups used by bookmarks and folders.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden, ValidationFailed
from app.models.folder import Folder
from app.models.tag import Tag
from app.models.team import Team
from app.models.user import User
from app.services.visibility import Viewer
from slugbase_shared.schemas.common import FolderRef, TagRef, TeamRef, UserRef


def resolve_team_targets(
    viewer: Viewer,
    team_ids: Iterable[uuid.UUID],
    share_all_teams: bool = False,
) -> set[uuid.UUID]:
    """Teams to share with. The caller must belong to every one of them."""
    if share_all_teams:
        return set(viewer.team_ids)
    targets = set(team_ids)
    foreign = targets - viewer.team_ids
    if foreign:
        raise Forbidden("You can only share with teams you are a member of")
    return targets


async def resolve_user_targets(
    viewer: Viewer,
    user_ids: Iterable[uuid.UUID],
    session: AsyncSession,
) -> set[uuid.UUID]:
    """Users to share with, minus the caller. Every id must exist."""
    targets = set(user_ids) - {viewer.user_id}
    if not targets:
        return targets
    result = await session.execute(select(User.id).where(User.id.in_(list(targets))))
    missing = targets - set(result.scalars().all())
    if missing:
        raise ValidationFailed("One or more users to share with do not exist")
    return targets


async def require_owned_folders(
    viewer: Viewer,
    folder_ids: Iterable[uuid.UUID],
    session: AsyncSession,
) -> set[uuid.UUID]:
    wanted = set(folder_ids)
    if not wanted:
        return wanted
    result = await session.execute(
        select(Folder.id).where(Folder.id.in_(list(wanted)), Folder.user_id == viewer.user_id)
    )
    if wanted - set(result.scalars().all()):
        raise Forbidden("You can only add bookmarks to folders you own")
    return wanted


async def require_existing_tags(
    tag_ids: Iterable[uuid.UUID],
    session: AsyncSession,
) -> set[uuid.UUID]:
    wanted = set(tag_ids)
    if not wanted:
        return wanted
    result = await session.execute(select(Tag.id).where(Tag.id.in_(list(wanted))))
    if wanted - set(result.scalars().all()):
        raise ValidationFailed("One or more tags do not exist")
    return wanted


# ---------------------------------------------------------------------------
# Reference lookups
# ---------------------------------------------------------------------------

async def team_refs(ids: Iterable[uuid.UUID], session: AsyncSession) -> dict[uuid.UUID, TeamRef]:
    ids = list(set(ids))
    if not ids:
        return {}
    result = await session.execute(select(Team).where(Team.id.in_(ids)))
    return {t.id: TeamRef(id=t.id, name=t.name) for t in result.scalars().all()}


async def user_refs(ids: Iterable[uuid.UUID], session: AsyncSession) -> dict[uuid.UUID, UserRef]:
    ids = list(set(ids))
    if not ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(ids)))
    return {u.id: UserRef(id=u.id, name=u.name, email=u.email) for u in result.scalars().all()}


async def folder_refs(ids: Iterable[uuid.UUID], session: AsyncSession) -> dict[uuid.UUID, FolderRef]:
    ids = list(set(ids))
    if not ids:
        return {}
    result = await session.execute(select(Folder).where(Folder.id.in_(ids)))
    return {f.id: FolderRef(id=f.id, name=f.name, icon=f.icon) for f in result.scalars().all()}


async def tag_refs(ids: Iterable[uuid.UUID], session: AsyncSession) -> dict[uuid.UUID, TagRef]:
    ids = list(set(ids))
    if not ids:
        return {}
    result = await session.execute(select(Tag).where(Tag.id.in_(ids)))
    return {t.id: TagRef(id=t.id, name=t.name) for t in result.scalars().all()}


def sorted_refs(refs: dict, ids: Iterable[uuid.UUID]) -> list:
    return sorted((refs[i] for i in ids if i in refs), key=lambda r: r.name.lower())
