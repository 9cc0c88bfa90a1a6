"""Tag model and the bookmark-tag edge. Tags are private to their owner."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Tag(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tags"
    __table_args__ = (sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)


class BookmarkTag(SQLModel, table=True):
    __tablename__ = "bookmark_tags"

    bookmark_id: uuid.UUID = Field(foreign_key="bookmarks.id", primary_key=True, ondelete="CASCADE")
    tag_id: uuid.UUID = Field(foreign_key="tags.id", primary_key=True, ondelete="CASCADE", index=True)
