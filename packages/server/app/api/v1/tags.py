"""
Tag API endpoints (caller's own tags only).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_viewer
from app.core.database import get_session
from app.services import tags as tag_service
from app.services.visibility import Viewer
from slugbase_shared.schemas.tags import TagCreate, TagListResponse, TagResponse, TagUpdate

router = APIRouter()


@router.get("", response_model=TagListResponse)
async def list_tags(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    return TagListResponse(data=await tag_service.list_tags(viewer, session))


@router.post("", response_model=TagResponse, status_code=201)
async def create_tag(
    body: TagCreate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    tag = await tag_service.create_tag(body, viewer, session)
    await session.commit()
    return tag


@router.get("/{tagId}", response_model=TagResponse)
async def get_tag(
    tagId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    return await tag_service.get_tag(tagId, viewer, session)


@router.put("/{tagId}", response_model=TagResponse)
async def update_tag(
    tagId: uuid.UUID,
    body: TagUpdate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    tag = await tag_service.update_tag(tagId, body, viewer, session)
    await session.commit()
    return tag


@router.delete("/{tagId}", status_code=204)
async def delete_tag(
    tagId: uuid.UUID,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    await tag_service.delete_tag(tagId, viewer, session)
    await session.commit()
    return Response(status_code=204)
