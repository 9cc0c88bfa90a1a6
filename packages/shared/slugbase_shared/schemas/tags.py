"""Tag schemas. Tags are private labels; no sharing fields."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel


class TagCreate(BaseModel):
    name: str


class TagUpdate(BaseModel):
    name: str


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    bookmark_count: int = 0
    created_at: datetime


class TagListResponse(BaseModel):
    data: List[TagResponse]
