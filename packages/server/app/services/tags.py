"""
Tag service. Tags are private to their owner and carry no sharing.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import flush_or_conflict
from app.core.errors import NotFound, SlugConflict, ValidationFailed
from app.models.tag import BookmarkTag, Tag
from app.services.visibility import Viewer
from slugbase_shared.schemas.common import sanitize_string, validate_length
from slugbase_shared.schemas.tags import TagCreate, TagResponse, TagUpdate

log = structlog.get_logger()


def clean_name(name: Optional[str]) -> str:
    name = sanitize_string(name)
    if not name:
        raise ValidationFailed("Tag name is required")
    ok, msg = validate_length(name, "tag_name")
    if not ok:
        raise ValidationFailed(msg)
    return name


async def build_tag_responses(tags: list[Tag], session: AsyncSession) -> list[TagResponse]:
    if not tags:
        return []
    ids = [t.id for t in tags]
    result = await session.execute(
        select(BookmarkTag.tag_id, func.count())
        .where(BookmarkTag.tag_id.in_(ids))
        .group_by(BookmarkTag.tag_id)
    )
    counts = dict(result.all())
    return [
        TagResponse(id=t.id, name=t.name, bookmark_count=counts.get(t.id, 0), created_at=t.created_at)
        for t in tags
    ]


async def _get_owned(tag_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> Tag:
    result = await session.execute(
        select(Tag).where(Tag.id == tag_id, Tag.user_id == viewer.user_id)
    )
    tag = result.scalar_one_or_none()
    if tag is None:
        raise NotFound("Tag not found")
    return tag


async def _ensure_name_available(
    user_id: uuid.UUID, name: str, session: AsyncSession, exclude_id: uuid.UUID | None = None
) -> None:
    query = select(Tag.id).where(Tag.user_id == user_id, Tag.name == name)
    if exclude_id is not None:
        query = query.where(Tag.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise SlugConflict(f"A tag named '{name}' already exists")


async def list_tags(viewer: Viewer, session: AsyncSession) -> list[TagResponse]:
    result = await session.execute(
        select(Tag).where(Tag.user_id == viewer.user_id).order_by(func.lower(Tag.name))
    )
    return await build_tag_responses(list(result.scalars().all()), session)


async def get_tag(tag_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> TagResponse:
    tag = await _get_owned(tag_id, viewer, session)
    return (await build_tag_responses([tag], session))[0]


async def create_tag(req: TagCreate, viewer: Viewer, session: AsyncSession) -> TagResponse:
    name = clean_name(req.name)
    await _ensure_name_available(viewer.user_id, name, session)
    tag = Tag(user_id=viewer.user_id, name=name)
    session.add(tag)
    await flush_or_conflict(session, f"A tag named '{name}' already exists")
    log.info("tag.created", tag_id=str(tag.id), user_id=str(viewer.user_id))
    return (await build_tag_responses([tag], session))[0]


async def update_tag(
    tag_id: uuid.UUID, req: TagUpdate, viewer: Viewer, session: AsyncSession
) -> TagResponse:
    tag = await _get_owned(tag_id, viewer, session)
    name = clean_name(req.name)
    if name != tag.name:
        await _ensure_name_available(viewer.user_id, name, session, exclude_id=tag.id)
    tag.name = name
    session.add(tag)
    await flush_or_conflict(session, f"A tag named '{name}' already exists")
    log.info("tag.updated", tag_id=str(tag.id))
    return (await build_tag_responses([tag], session))[0]


async def delete_tag(tag_id: uuid.UUID, viewer: Viewer, session: AsyncSession) -> None:
    tag = await _get_owned(tag_id, viewer, session)
    await session.delete(tag)
    await session.flush()
    log.info("tag.deleted", tag_id=str(tag_id))
