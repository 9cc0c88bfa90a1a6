"""
Dashboard aggregation. Read-only.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.bookmark import Bookmark
from app.models.folder import Folder
from app.models.tag import BookmarkTag, Tag
from app.services.bookmarks import build_bookmark_responses
from app.services.visibility import (
    Viewer,
    bookmark_visibility_clause,
    folder_visibility_clause,
)
from slugbase_shared.schemas.dashboard import DashboardStats, TopTag

RECENT_LIMIT = 5
TOP_TAGS_LIMIT = 5


async def _count(query, session: AsyncSession) -> int:
    return (await session.execute(query)).scalar_one()


async def get_stats(viewer: Viewer, session: AsyncSession) -> DashboardStats:
    total_bookmarks = await _count(
        select(func.count()).select_from(Bookmark).where(Bookmark.user_id == viewer.user_id),
        session,
    )
    total_folders = await _count(
        select(func.count()).select_from(Folder).where(Folder.user_id == viewer.user_id),
        session,
    )
    total_tags = await _count(
        select(func.count()).select_from(Tag).where(Tag.user_id == viewer.user_id),
        session,
    )
    shared_bookmarks = await _count(
        select(func.count())
        .select_from(Bookmark)
        .where(bookmark_visibility_clause(viewer), Bookmark.user_id != viewer.user_id),
        session,
    )
    shared_folders = await _count(
        select(func.count())
        .select_from(Folder)
        .where(folder_visibility_clause(viewer), Folder.user_id != viewer.user_id),
        session,
    )

    result = await session.execute(
        select(Bookmark)
        .where(Bookmark.user_id == viewer.user_id)
        .order_by(Bookmark.created_at.desc())
        .limit(RECENT_LIMIT)
    )
    recent = await build_bookmark_responses(list(result.scalars().all()), viewer, session)

    usage = func.count(BookmarkTag.bookmark_id).label("bookmark_count")
    result = await session.execute(
        select(Tag.id, Tag.name, usage)
        .join(BookmarkTag, BookmarkTag.tag_id == Tag.id)
        .where(Tag.user_id == viewer.user_id)
        .group_by(Tag.id, Tag.name)
        .order_by(usage.desc(), func.lower(Tag.name))
        .limit(TOP_TAGS_LIMIT)
    )
    top_tags = [TopTag(id=tid, name=name, bookmark_count=count) for tid, name, count in result.all()]

    return DashboardStats(
        total_bookmarks=total_bookmarks,
        total_folders=total_folders,
        total_tags=total_tags,
        shared_bookmarks=shared_bookmarks,
        shared_folders=shared_folders,
        recent_bookmarks=recent,
        top_tags=top_tags,
    )
