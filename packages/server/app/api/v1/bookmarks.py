"""
Bookmark API endpoints.

GET    /api/v1/bookmarks                    — List visible bookmarks
POST   /api/v1/bookmarks                    — Create
GET    /api/v1/bookmarks/search?q=          — Search bookmarks, folders, tags
GET    /api/v1/bookmarks/export             — JSON export
POST   /api/v1/bookmarks/import             — JSON / Netscape HTML import
GET    /api/v1/bookmarks/{id}               — Get one visible bookmark
PUT    /api/v1/bookmarks/{id}               — Update (owner only)
DELETE /api/v1/bookmarks/{id}               — Delete (owner only)
POST   /api/v1/bookmarks/{id}/track-access  — Bump usage counter
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_viewer
from app.core.database import get_session
from app.services import bookmarks as bookmark_service
from app.services.visibility import Viewer
from slugbase_shared.schemas.bookmarks import (
    BookmarkCreate,
    BookmarkListResponse,
    BookmarkResponse,
    BookmarkUpdate,
    ImportResult,
    SearchResponse,
)
from slugbase_shared.schemas.common import SortBy

router = APIRouter()


@router.get("", response_model=BookmarkListResponse)
async def list_bookmarks(
    folder_id: Optional[uuid.UUID] = Query(None),
    tag_id: Optional[uuid.UUID] = Query(None),
    sort_by: SortBy = Query(SortBy.RECENTLY_ADDED),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """List own and shared bookmarks."""
    items = await bookmark_service.list_bookmarks(
        viewer, session, folder_id=folder_id, tag_id=tag_id, sort_by=sort_by
    )
    return BookmarkListResponse(data=items)


@router.post("", response_model=BookmarkResponse, status_code=201)
async def create_bookmark(
    body: BookmarkCreate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    bookmark = await bookmark_service.create_bookmark(body, viewer, session)
    await session.commit()
    return bookmark


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", max_length=500),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Case-insensitive substring search across visible items."""
    return await bookmark_service.search(q, viewer, session)


@router.get("/export")
async def export_bookmarks(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Download visible bookmarks as a flat JSON array."""
    items = await bookmark_service.export_bookmarks(viewer, session)
    return JSONResponse(
        content=[item.model_dump(mode="json") for item in items],
        headers={"Content-Disposition": 'attachment; filename="slugbase-bookmarks.json"'},
    )


@router.post("/import", response_model=ImportResult)
async def import_bookmarks(
    file: UploadFile = File(...),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Import a JSON export or a browser's Netscape HTML bookmarks file."""
    raw = await file.read()
    summary = await bookmark_service.import_bookmarks(file.filename, raw, viewer, session)
    await session.commit()
    return summary


@router.get("/{bookmarkId}", response_model=BookmarkResponse)
async def get_bookmark(
    bookmarkId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    return await bookmark_service.get_bookmark(bookmarkId, viewer, session)


@router.put("/{bookmarkId}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmarkId: uuid.UUID,
    body: BookmarkUpdate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Update a bookmark. Lists that are present replace the stored set."""
    bookmark = await bookmark_service.update_bookmark(bookmarkId, body, viewer, session)
    await session.commit()
    return bookmark


@router.delete("/{bookmarkId}", status_code=204)
async def delete_bookmark(
    bookmarkId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    await bookmark_service.delete_bookmark(bookmarkId, viewer, session)
    await session.commit()
    return Response(status_code=204)


@router.post("/{bookmarkId}/track-access", status_code=204)
async def track_access(
    bookmarkId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Fire-and-forget usage tracking. Always 204."""
    await bookmark_service.track_access(bookmarkId, viewer, session)
    return Response(status_code=204)
