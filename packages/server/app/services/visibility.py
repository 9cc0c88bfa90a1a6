"""
Visibility resolver: who may read which bookmark or folder.

A bookmark is visible to a viewer when any of these hold:

1. the viewer owns it
2. it is shared directly with the viewer
3. it is shared with a team the viewer belongs to
4. it sits in a folder that is shared with the viewer, or with one of the
   viewer's teams

Folders follow rules 1-3 only; they never inherit from other folders.

The predicate exists in two forms that must agree:

- SQL clauses (``bookmark_visibility_clause`` / ``folder_visibility_clause``)
  used for listings, search, export and counts.
- A pure in-memory evaluation over a ``ShareGraph`` snapshot, used for
  single-item checks and for computing the effective share sets shown to
  clients.

Both take an explicit ``Viewer``; nothing here looks up team membership on
its own.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.bookmark import Bookmark
from app.models.folder import BookmarkFolder, Folder
from app.models.shares import (
    BookmarkTeamShare,
    BookmarkUserShare,
    FolderTeamShare,
    FolderUserShare,
)
from slugbase_shared.schemas.common import ItemType


@dataclass(frozen=True)
class Viewer:
    """The requesting user and a snapshot of their team memberships."""

    user_id: uuid.UUID
    team_ids: frozenset[uuid.UUID] = frozenset()


def item_type(owner_id: uuid.UUID, viewer: Viewer) -> ItemType:
    return ItemType.OWN if owner_id == viewer.user_id else ItemType.SHARED


# ---------------------------------------------------------------------------
# SQL form
# ---------------------------------------------------------------------------

def folder_share_clause(viewer: Viewer, folder_id_col=Folder.id):
    """Folder is shared with the viewer directly or through a team (no ownership)."""
    clauses = [
        select(FolderUserShare.folder_id)
        .where(
            FolderUserShare.folder_id == folder_id_col,
            FolderUserShare.user_id == viewer.user_id,
        )
        .exists()
    ]
    if viewer.team_ids:
        clauses.append(
            select(FolderTeamShare.folder_id)
            .where(
                FolderTeamShare.folder_id == folder_id_col,
                FolderTeamShare.team_id.in_(list(viewer.team_ids)),
            )
            .exists()
        )
    return or_(*clauses)


def folder_visibility_clause(viewer: Viewer):
    """WHERE clause selecting folders visible to ``viewer``."""
    return or_(Folder.user_id == viewer.user_id, folder_share_clause(viewer))


def bookmark_visibility_clause(viewer: Viewer):
    """WHERE clause selecting bookmarks visible to ``viewer``.

    Each grant path is a correlated EXISTS, so a bookmark reachable through
    several of them still yields one row.
    """
    clauses = [
        Bookmark.user_id == viewer.user_id,
        select(BookmarkUserShare.bookmark_id)
        .where(
            BookmarkUserShare.bookmark_id == Bookmark.id,
            BookmarkUserShare.user_id == viewer.user_id,
        )
        .exists(),
    ]
    if viewer.team_ids:
        clauses.append(
            select(BookmarkTeamShare.bookmark_id)
            .where(
                BookmarkTeamShare.bookmark_id == Bookmark.id,
                BookmarkTeamShare.team_id.in_(list(viewer.team_ids)),
            )
            .exists()
        )
    clauses.append(
        select(BookmarkFolder.bookmark_id)
        .where(
            BookmarkFolder.bookmark_id == Bookmark.id,
            folder_share_clause(viewer, BookmarkFolder.folder_id),
        )
        .exists()
    )
    return or_(*clauses)


# ---------------------------------------------------------------------------
# In-memory form
# ---------------------------------------------------------------------------

def _edges() -> defaultdict:
    return defaultdict(set)


@dataclass
class ShareGraph:
    """Ownership, folder placement and share edges for a set of items."""

    bookmark_owner: dict[uuid.UUID, uuid.UUID] = field(default_factory=dict)
    folder_owner: dict[uuid.UUID, uuid.UUID] = field(default_factory=dict)
    bookmark_folders: defaultdict = field(default_factory=_edges)
    bookmark_users: defaultdict = field(default_factory=_edges)
    bookmark_teams: defaultdict = field(default_factory=_edges)
    folder_users: defaultdict = field(default_factory=_edges)
    folder_teams: defaultdict = field(default_factory=_edges)

    def folder_shared_with(self, viewer: Viewer, folder_id: uuid.UUID) -> bool:
        if viewer.user_id in self.folder_users.get(folder_id, ()):
            return True
        return not viewer.team_ids.isdisjoint(self.folder_teams.get(folder_id, ()))

    def folder_visible(self, viewer: Viewer, folder_id: uuid.UUID) -> bool:
        owner = self.folder_owner.get(folder_id)
        if owner is None:
            return False
        return owner == viewer.user_id or self.folder_shared_with(viewer, folder_id)

    def bookmark_visible(self, viewer: Viewer, bookmark_id: uuid.UUID) -> bool:
        owner = self.bookmark_owner.get(bookmark_id)
        if owner is None:
            return False
        if owner == viewer.user_id:
            return True
        if viewer.user_id in self.bookmark_users.get(bookmark_id, ()):
            return True
        if not viewer.team_ids.isdisjoint(self.bookmark_teams.get(bookmark_id, ())):
            return True
        return any(
            self.folder_shared_with(viewer, folder_id)
            for folder_id in self.bookmark_folders.get(bookmark_id, ())
        )

    def effective_bookmark_shares(
        self, bookmark_id: uuid.UUID
    ) -> tuple[set[uuid.UUID], set[uuid.UUID]]:
        """(user_ids, team_ids) from direct shares plus every containing folder."""
        users = set(self.bookmark_users.get(bookmark_id, ()))
        teams = set(self.bookmark_teams.get(bookmark_id, ()))
        for folder_id in self.bookmark_folders.get(bookmark_id, ()):
            users |= self.folder_users.get(folder_id, set())
            teams |= self.folder_teams.get(folder_id, set())
        return users, teams

    def folder_shares(self, folder_id: uuid.UUID) -> tuple[set[uuid.UUID], set[uuid.UUID]]:
        return (
            set(self.folder_users.get(folder_id, ())),
            set(self.folder_teams.get(folder_id, ())),
        )


async def load_share_graph(
    session: AsyncSession,
    *,
    bookmark_ids: Iterable[uuid.UUID] = (),
    folder_ids: Iterable[uuid.UUID] = (),
) -> ShareGraph:
    """Snapshot the edges needed to evaluate the given bookmarks and folders.

    Folders containing any of the bookmarks are pulled in automatically.
    """
    graph = ShareGraph()
    bookmark_ids = list(set(bookmark_ids))
    folder_ids = set(folder_ids)

    if bookmark_ids:
        rows = await session.execute(
            select(Bookmark.id, Bookmark.user_id).where(Bookmark.id.in_(bookmark_ids))
        )
        graph.bookmark_owner.update({bid: owner for bid, owner in rows.all()})

        rows = await session.execute(
            select(BookmarkFolder.bookmark_id, BookmarkFolder.folder_id).where(
                BookmarkFolder.bookmark_id.in_(bookmark_ids)
            )
        )
        for bid, fid in rows.all():
            graph.bookmark_folders[bid].add(fid)
            folder_ids.add(fid)

        rows = await session.execute(
            select(BookmarkUserShare.bookmark_id, BookmarkUserShare.user_id).where(
                BookmarkUserShare.bookmark_id.in_(bookmark_ids)
            )
        )
        for bid, uid in rows.all():
            graph.bookmark_users[bid].add(uid)

        rows = await session.execute(
            select(BookmarkTeamShare.bookmark_id, BookmarkTeamShare.team_id).where(
                BookmarkTeamShare.bookmark_id.in_(bookmark_ids)
            )
        )
        for bid, tid in rows.all():
            graph.bookmark_teams[bid].add(tid)

    if folder_ids:
        folder_list = list(folder_ids)
        rows = await session.execute(
            select(Folder.id, Folder.user_id).where(Folder.id.in_(folder_list))
        )
        graph.folder_owner.update({fid: owner for fid, owner in rows.all()})

        rows = await session.execute(
            select(FolderUserShare.folder_id, FolderUserShare.user_id).where(
                FolderUserShare.folder_id.in_(folder_list)
            )
        )
        for fid, uid in rows.all():
            graph.folder_users[fid].add(uid)

        rows = await session.execute(
            select(FolderTeamShare.folder_id, FolderTeamShare.team_id).where(
                FolderTeamShare.folder_id.in_(folder_list)
            )
        )
        for fid, tid in rows.all():
            graph.folder_teams[fid].add(tid)

    return graph
