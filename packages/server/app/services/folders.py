"""
Folder service: owner-only mutation, user/team sharing, visibility-scoped reads.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, func, insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import flush_or_conflict
from app.core.errors import NotFound, SlugConflict, ValidationFailed
from app.models.folder import BookmarkFolder, Folder
from app.models.shares import FolderTeamShare, FolderUserShare
from app.models.user import User
from app.services import sharing
from app.services.visibility import (
    Viewer,
    folder_visibility_clause,
    item_type,
    load_share_graph,
)
from slugbase_shared.schemas.common import sanitize_string, validate_length
from slugbase_shared.schemas.folders import FolderCreate, FolderResponse, FolderUpdate

log = structlog.get_logger()


def clean_name(name: Optional[str]) -> str:
    name = sanitize_string(name)
    if not name:
        raise ValidationFailed("Folder name is required")
    ok, msg = validate_length(name, "folder_name")
    if not ok:
        raise ValidationFailed(msg)
    return name


def clean_icon(icon: Optional[str]) -> Optional[str]:
    icon = sanitize_string(icon)
    if not icon:
        return None
    ok, msg = validate_length(icon, "icon")
    if not ok:
        raise ValidationFailed(msg)
    return icon


async def _ensure_name_available(
    user_id: uuid.UUID,
    name: str,
    session: AsyncSession,
    *,
    exclude_id: uuid.UUID | None = None,
) -> None:
    query = select(Folder.id).where(Folder.user_id == user_id, Folder.name == name)
    if exclude_id is not None:
        query = query.where(Folder.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise SlugConflict(f"A folder named '{name}' already exists")


async def _apply_shares(
    folder_id: uuid.UUID,
    viewer: Viewer,
    session: AsyncSession,
    *,
    team_ids=None,
    share_all_teams: bool = False,
    user_ids=None,
) -> None:
    teams = None
    if team_ids is not None or share_all_teams:
        teams = sharing.resolve_team_targets(viewer, team_ids or (), share_all_teams)
    users = await sharing.resolve_user_targets(viewer, user_ids, session) if user_ids is not None else None

    if teams is not None:
        await session.execute(delete(FolderTeamShare).where(FolderTeamShare.folder_id == folder_id))
        if teams:
            await session.execute(
                insert(FolderTeamShare), [{"folder_id": folder_id, "team_id": t} for t in teams]
            )
    if users is not None:
        await session.execute(delete(FolderUserShare).where(FolderUserShare.folder_id == folder_id))
        if users:
            await session.execute(
                insert(FolderUserShare), [{"folder_id": folder_id, "user_id": u} for u in users]
            )


# ---------------------------------------------------------------------------
# Response building
# ---------------------------------------------------------------------------

async def build_folder_responses(
    folders: list[Folder], viewer: Viewer, session: AsyncSession
) -> list[FolderResponse]:
    if not folders:
        return []
    ids = [f.id for f in folders]
    graph = await load_share_graph(session, folder_ids=ids)

    counts_result = await session.execute(
        select(BookmarkFolder.folder_id, func.count())
        .where(BookmarkFolder.folder_id.in_(ids))
        .group_by(BookmarkFolder.folder_id)
    )
    counts = dict(counts_result.all())

    shares = {fid: graph.folder_shares(fid) for fid in ids}
    users = await sharing.user_refs({u for us, _ in shares.values() for u in us}, session)
    teams = await sharing.team_refs({t for _, ts in shares.values() for t in ts}, session)
    owners_result = await session.execute(
        select(User.id, User.name).where(User.id.in_(list({f.user_id for f in folders})))
    )
    owner_names = dict(owners_result.all())

    return [
        FolderResponse(
            id=f.id,
            user_id=f.user_id,
            name=f.name,
            icon=f.icon,
            folder_type=item_type(f.user_id, viewer),
            owner_name=owner_names.get(f.user_id),
            bookmark_count=counts.get(f.id, 0),
            shared_teams=sharing.sorted_refs(teams, shares[f.id][1]),
            shared_users=sharing.sorted_refs(users, shares[f.id][0]),
            created_at=f.created_at,
            updated_at=f.updated_at,
        )
        for f in folders
    ]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def list_folders(viewer: Viewer, session: AsyncSession) -> list[FolderResponse]:
    result = await session.execute(
        select(Folder).where(folder_visibility_clause(viewer)).order_by(func.lower(Folder.name))
    )
    return await build_folder_responses(list(result.scalars().all()), viewer, session)


async def get_folder(folder_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> FolderResponse:
    folder = await session.get(Folder, folder_id)
    if folder is None:
        raise NotFound("Folder not found")
    if folder.user_id != viewer.user_id:
        graph = await load_share_graph(session, folder_ids=[folder_id])
        if not graph.folder_visible(viewer, folder_id):
            raise NotFound("Folder not found")
    return (await build_folder_responses([folder], viewer, session))[0]


async def get_owned_folder(folder_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> Folder:
    result = await session.execute(
        select(Folder).where(Folder.id == folder_id, Folder.user_id == viewer.user_id)
    )
    folder = result.scalar_one_or_none()
    if folder is None:
        raise NotFound("Folder not found")
    return folder


async def create_folder(req: FolderCreate, viewer: Viewer, session: AsyncSession) -> FolderResponse:
    name = clean_name(req.name)
    icon = clean_icon(req.icon)
    await _ensure_name_available(viewer.user_id, name, session)

    folder = Folder(user_id=viewer.user_id, name=name, icon=icon)
    session.add(folder)
    await flush_or_conflict(session, f"A folder named '{name}' already exists")

    await _apply_shares(
        folder.id,
        viewer,
        session,
        team_ids=req.team_ids,
        share_all_teams=req.share_all_teams,
        user_ids=req.user_ids,
    )
    await session.flush()

    log.info("folder.created", folder_id=str(folder.id), user_id=str(viewer.user_id))
    return (await build_folder_responses([folder], viewer, session))[0]


async def update_folder(
    folder_id: uuid.UUID, req: FolderUpdate, viewer: Viewer, session: AsyncSession
) -> FolderResponse:
    folder = await get_owned_folder(folder_id, viewer, session)
    supplied = req.model_fields_set

    if "name" in supplied:
        name = clean_name(req.name)
        if name != folder.name:
            await _ensure_name_available(viewer.user_id, name, session, exclude_id=folder.id)
        folder.name = name
    if "icon" in supplied:
        folder.icon = clean_icon(req.icon)
    folder.updated_at = datetime.now(timezone.utc)
    session.add(folder)
    await flush_or_conflict(session, f"A folder named '{folder.name}' already exists")

    await _apply_shares(
        folder.id,
        viewer,
        session,
        team_ids=req.team_ids,
        share_all_teams=bool(req.share_all_teams),
        user_ids=req.user_ids,
    )
    await session.flush()

    log.info("folder.updated", folder_id=str(folder.id), user_id=str(viewer.user_id))
    return (await build_folder_responses([folder], viewer, session))[0]


async def delete_folder(folder_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> None:
    """Delete a folder. Its bookmarks survive; only the placement edges go."""
    folder = await get_owned_folder(folder_id, viewer, session)
    await session.delete(folder)
    await session.flush()
    log.info("folder.deleted", folder_id=str(folder_id), user_id=str(viewer.user_id))
