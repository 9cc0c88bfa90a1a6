"""Bookmark model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Bookmark(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "bookmarks"
    # NULL slugs never collide, so slug-less bookmarks are unconstrained
    __table_args__ = (sa.UniqueConstraint("user_id", "slug", name="uq_bookmarks_user_slug"),)

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(nullable=False)
    url: str = Field(nullable=False)
    slug: Optional[str] = Field(default=None)
    forwarding_enabled: bool = Field(default=False, nullable=False)
    pinned: bool = Field(default=False, nullable=False)
    access_count: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})
    last_accessed_at: Optional[datetime] = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),
    )
