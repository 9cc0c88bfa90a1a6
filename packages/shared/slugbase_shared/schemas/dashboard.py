"""Dashboard statistics schema."""

from __future__ import annotations

import uuid
from typing import List

from pydantic import BaseModel

from .bookmarks import BookmarkResponse


class TopTag(BaseModel):
    id: uuid.UUID
    name: str
    bookmark_count: int


class DashboardStats(BaseModel):
    total_bookmarks: int
    total_folders: int
    total_tags: int
    shared_bookmarks: int
    shared_folders: int
    recent_bookmarks: List[BookmarkResponse]
    top_tags: List[TopTag]
