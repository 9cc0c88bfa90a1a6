"""Folder schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import ItemType, TeamRef, UserRef


class FolderCreate(BaseModel):
    name: str
    icon: Optional[str] = None
    team_ids: List[uuid.UUID] = Field(default_factory=list)
    user_ids: List[uuid.UUID] = Field(default_factory=list)
    share_all_teams: bool = False


class FolderUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    team_ids: Optional[List[uuid.UUID]] = None
    user_ids: Optional[List[uuid.UUID]] = None
    share_all_teams: Optional[bool] = None


class FolderResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    icon: Optional[str] = None
    folder_type: ItemType
    owner_name: Optional[str] = None
    bookmark_count: int = 0
    shared_teams: List[TeamRef] = Field(default_factory=list)
    shared_users: List[UserRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class FolderListResponse(BaseModel):
    data: List[FolderResponse]
