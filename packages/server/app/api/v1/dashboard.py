"""
Dashboard endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_viewer
from app.core.database import get_session
from app.services import dashboard as dashboard_service
from app.services.visibility import Viewer
from slugbase_shared.schemas.dashboard import DashboardStats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session),
):
    """Counts, recent bookmarks and top tags for the caller."""
    return await dashboard_service.get_stats(viewer, session)
