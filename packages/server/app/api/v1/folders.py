"""
Folder API endpoints.

GET    /api/v1/folders          — List visible folders
POST   /api/v1/folders          — Create
GET    /api/v1/folders/{id}     — Get one visible folder
PUT    /api/v1/folders/{id}     — Update (owner only)
DELETE /api/v1/folders/{id}     — Delete (owner only; bookmarks are kept)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_viewer
from app.core.database import get_session
from app.services import folders as folder_service
from app.services.visibility import Viewer
from slugbase_shared.schemas.folders import (
    FolderCreate,
    FolderListResponse,
    FolderResponse,
    FolderUpdate,
)

router = APIRouter()


@router.get("", response_model=FolderListResponse)
async def list_folders(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    return FolderListResponse(data=await folder_service.list_folders(viewer, session))


@router.post("", response_model=FolderResponse, status_code=201)
async def create_folder(
    body: FolderCreate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    folder = await folder_service.create_folder(body, viewer, session)
    await session.commit()
    return folder


@router.get("/{folderId}", response_model=FolderResponse)
async def get_folder(
    folderId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    return await folder_service.get_folder(folderId, viewer, session)


@router.put("/{folderId}", response_model=FolderResponse)
async def update_folder(
    folderId: uuid.UUID,
    body: FolderUpdate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    folder = await folder_service.update_folder(folderId, body, viewer, session)
    await session.commit()
    return folder


@router.delete("/{folderId}", status_code=204)
async def delete_folder(
    folderId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    await folder_service.delete_folder(folderId, viewer, session)
    await session.commit()
    return Response(status_code=204)
