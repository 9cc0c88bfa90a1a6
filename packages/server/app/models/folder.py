"""Folder model and the bookmark-folder edge."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Folder(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "folders"
    __table_args__ = (sa.UniqueConstraint("user_id", "name", name="uq_folders_user_name"),)

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)
    icon: Optional[str] = None


class BookmarkFolder(SQLModel, table=True):
    __tablename__ = "bookmark_folders"

    bookmark_id: uuid.UUID = Field(foreign_key="bookmarks.id", primary_key=True, ondelete="CASCADE")
    folder_id: uuid.UUID = Field(foreign_key="folders.id", primary_key=True, ondelete="CASCADE", index=True)
