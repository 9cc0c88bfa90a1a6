"""User profile and admin user-management schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import Theme


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    """Self-service profile edit."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)
    theme: Optional[Theme] = None


class AdminUserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str
    is_admin: bool = False


class AdminUserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = None
    is_admin: Optional[bool] = None
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)
    theme: Optional[Theme] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    user_key: str
    is_admin: bool = False
    language: str = "en"
    theme: Theme = Theme.AUTO
    created_at: datetime


class UserListResponse(BaseModel):
    data: List[UserResponse]
