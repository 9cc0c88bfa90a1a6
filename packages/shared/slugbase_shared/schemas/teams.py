"""Team schemas (admin management + caller's own teams)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import UserRef


class TeamCreate(BaseModel):
    name: str
    description: Optional[str] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class TeamMembersAdd(BaseModel):
    user_ids: List[uuid.UUID] = Field(min_length=1)


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    member_count: int = 0
    created_at: datetime


class TeamDetailResponse(TeamResponse):
    members: List[UserRef] = Field(default_factory=list)


class TeamListResponse(BaseModel):
    data: List[TeamResponse]
