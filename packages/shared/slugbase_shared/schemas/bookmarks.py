"""Bookmark schemas: CRUD, search, export and import."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import FolderRef, ItemType, TagRef, TeamRef, UserRef
from .folders import FolderResponse
from .tags import TagResponse


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class BookmarkCreate(BaseModel):
    """Create a bookmark, optionally filing and sharing it in one step."""
    title: str
    url: str
    slug: Optional[str] = None
    forwarding_enabled: bool = False
    pinned: bool = False
    folder_ids: List[uuid.UUID] = Field(default_factory=list)
    tag_ids: List[uuid.UUID] = Field(default_factory=list)
    team_ids: List[uuid.UUID] = Field(default_factory=list)
    user_ids: List[uuid.UUID] = Field(default_factory=list)
    share_all_teams: bool = False


class BookmarkUpdate(BaseModel):
    """Partial update. A list that is present replaces the stored set in full."""
    title: Optional[str] = None
    url: Optional[str] = None
    slug: Optional[str] = None
    forwarding_enabled: Optional[bool] = None
    pinned: Optional[bool] = None
    folder_ids: Optional[List[uuid.UUID]] = None
    tag_ids: Optional[List[uuid.UUID]] = None
    team_ids: Optional[List[uuid.UUID]] = None
    user_ids: Optional[List[uuid.UUID]] = None
    share_all_teams: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class BookmarkResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    url: str
    slug: str = ""
    forwarding_enabled: bool = False
    forwarding_url: Optional[str] = None
    pinned: bool = False
    access_count: int = 0
    last_accessed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    bookmark_type: ItemType
    owner_name: Optional[str] = None
    folders: List[FolderRef] = Field(default_factory=list)
    tags: List[TagRef] = Field(default_factory=list)
    shared_teams: List[TeamRef] = Field(default_factory=list)
    shared_users: List[UserRef] = Field(default_factory=list)

    @field_validator("slug", mode="before")
    @classmethod
    def _blank_slug(cls, v):
        return v or ""

    @field_validator("forwarding_enabled", "pinned", mode="before")
    @classmethod
    def _coerce_bool(cls, v):
        return bool(v)


class BookmarkListResponse(BaseModel):
    data: List[BookmarkResponse]


class SearchResponse(BaseModel):
    """Cross-entity substring search, each category capped independently."""
    bookmarks: List[BookmarkResponse]
    folders: List[FolderResponse]
    tags: List[TagResponse]


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------

class ExportedBookmark(BaseModel):
    title: str
    url: str
    slug: str = ""
    forwarding_enabled: bool = False
    pinned: bool = False
    created_at: Optional[datetime] = None

    @field_validator("slug", mode="before")
    @classmethod
    def _blank_slug(cls, v):
        return v or ""


class ImportedBookmark(BaseModel):
    """One entry of an import file. Unknown keys are ignored."""

    title: Optional[str] = None
    url: Optional[str] = None
    slug: Optional[str] = None
    forwarding_enabled: bool = False
    pinned: bool = False

    @field_validator("forwarding_enabled", "pinned", mode="before")
    @classmethod
    def _null_is_false(cls, v):
        return False if v is None else v


class ImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
