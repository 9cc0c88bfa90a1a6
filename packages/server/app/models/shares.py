"""Direct share edges (join tables).

A share grants read access without transferring ownership. Folder shares
extend to every bookmark currently placed in the folder.
"""

import uuid

from sqlmodel import Field, SQLModel


class BookmarkUserShare(SQLModel, table=True):
    __tablename__ = "bookmark_user_shares"

    bookmark_id: uuid.UUID = Field(foreign_key="bookmarks.id", primary_key=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE", index=True)


class BookmarkTeamShare(SQLModel, table=True):
    __tablename__ = "bookmark_team_shares"

    bookmark_id: uuid.UUID = Field(foreign_key="bookmarks.id", primary_key=True, ondelete="CASCADE")
    team_id: uuid.UUID = Field(foreign_key="teams.id", primary_key=True, ondelete="CASCADE", index=True)


class FolderUserShare(SQLModel, table=True):
    __tablename__ = "folder_user_shares"

    folder_id: uuid.UUID = Field(foreign_key="folders.id", primary_key=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE", index=True)


class FolderTeamShare(SQLModel, table=True):
    __tablename__ = "folder_team_shares"

    folder_id: uuid.UUID = Field(foreign_key="folders.id", primary_key=True, ondelete="CASCADE")
    team_id: uuid.UUID = Field(foreign_key="teams.id", primary_key=True, ondelete="CASCADE", index=True)
