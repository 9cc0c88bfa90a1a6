"""
API v1 Router

All endpoints require an authenticated session; /admin additionally requires is_admin.
"""

from fastapi import APIRouter
from . import admin, bookmarks, dashboard, folders, tags, teams, users

router = APIRouter()

router.include_router(bookmarks.router, prefix="/bookmarks", tags=["Bookmarks"])
router.include_router(folders.router, prefix="/folders", tags=["Folders"])
router.include_router(tags.router, prefix="/tags", tags=["Tags"])
router.include_router(teams.router, prefix="/teams", tags=["Teams"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/bookmarks",
            "/bookmarks/search",
            "/bookmarks/export",
            "/bookmarks/import",
            "/folders",
            "/tags",
            "/teams",
            "/users/me",
            "/dashboard/stats",
            "/admin/users",
            "/admin/teams",
        ],
    }
