"""
Tests for the visibility resolver.

Covers:
- The in-memory predicate over a ShareGraph, clause by clause
- Effective share unions (direct + containing folders)
- SQL clauses agreeing with the in-memory predicate on generated graphs
- The folder-shared-with-team scenario end to end
"""

from __future__ import annotations

import random
import uuid

import pytest
from sqlmodel import select

from app.core.auth import load_team_ids
from app.models.bookmark import Bookmark
from app.models.folder import Folder
from app.services.visibility import (
    ShareGraph,
    Viewer,
    bookmark_visibility_clause,
    folder_visibility_clause,
    item_type,
    load_share_graph,
)
from slugbase_shared.schemas.common import ItemType


def _ids(n: int) -> list[uuid.UUID]:
    return [uuid.uuid4() for _ in range(n)]


def graph_visible_bookmarks(graph: ShareGraph, viewer: Viewer) -> set[uuid.UUID]:
    return {b for b in graph.bookmark_owner if graph.bookmark_visible(viewer, b)}


def graph_visible_folders(graph: ShareGraph, viewer: Viewer) -> set[uuid.UUID]:
    return {f for f in graph.folder_owner if graph.folder_visible(viewer, f)}


async def sql_visible_bookmarks(session, viewer: Viewer) -> set[uuid.UUID]:
    result = await session.execute(select(Bookmark.id).where(bookmark_visibility_clause(viewer)))
    return set(result.scalars().all())


async def sql_visible_folders(session, viewer: Viewer) -> set[uuid.UUID]:
    result = await session.execute(select(Folder.id).where(folder_visibility_clause(viewer)))
    return set(result.scalars().all())


# ---------------------------------------------------------------------------
# Unit tests: in-memory predicate
# ---------------------------------------------------------------------------

class TestShareGraph:
    def setup_method(self):
        self.owner, self.other, self.stranger = _ids(3)
        self.team, self.other_team = _ids(2)
        self.bookmark, self.folder = _ids(2)
        self.graph = ShareGraph()
        self.graph.bookmark_owner[self.bookmark] = self.owner
        self.graph.folder_owner[self.folder] = self.owner

    def test_owner_sees_own_bookmark(self):
        assert self.graph.bookmark_visible(Viewer(self.owner), self.bookmark)

    def test_stranger_sees_nothing(self):
        viewer = Viewer(self.stranger, frozenset({self.other_team}))
        assert not self.graph.bookmark_visible(viewer, self.bookmark)
        assert not self.graph.folder_visible(viewer, self.folder)

    def test_direct_user_share(self):
        self.graph.bookmark_users[self.bookmark].add(self.other)
        assert self.graph.bookmark_visible(Viewer(self.other), self.bookmark)
        assert not self.graph.bookmark_visible(Viewer(self.stranger), self.bookmark)

    def test_direct_team_share(self):
        self.graph.bookmark_teams[self.bookmark].add(self.team)
        assert self.graph.bookmark_visible(Viewer(self.other, frozenset({self.team})), self.bookmark)
        assert not self.graph.bookmark_visible(Viewer(self.other, frozenset({self.other_team})), self.bookmark)

    def test_folder_user_share_reaches_contained_bookmark(self):
        self.graph.bookmark_folders[self.bookmark].add(self.folder)
        self.graph.folder_users[self.folder].add(self.other)
        assert self.graph.bookmark_visible(Viewer(self.other), self.bookmark)

    def test_folder_team_share_reaches_contained_bookmark(self):
        self.graph.bookmark_folders[self.bookmark].add(self.folder)
        self.graph.folder_teams[self.folder].add(self.team)
        assert self.graph.bookmark_visible(Viewer(self.other, frozenset({self.team})), self.bookmark)

    def test_folder_share_does_not_reach_bookmark_outside_folder(self):
        self.graph.folder_teams[self.folder].add(self.team)
        viewer = Viewer(self.other, frozenset({self.team}))
        assert self.graph.folder_visible(viewer, self.folder)
        assert not self.graph.bookmark_visible(viewer, self.bookmark)

    def test_bookmark_share_does_not_expose_its_folder(self):
        """Folders never inherit visibility from their contents."""
        self.graph.bookmark_folders[self.bookmark].add(self.folder)
        self.graph.bookmark_users[self.bookmark].add(self.other)
        assert not self.graph.folder_visible(Viewer(self.other), self.folder)

    def test_unknown_ids_are_invisible(self):
        assert not self.graph.bookmark_visible(Viewer(self.owner), uuid.uuid4())
        assert not self.graph.folder_visible(Viewer(self.owner), uuid.uuid4())

    def test_effective_shares_union(self):
        second_folder = uuid.uuid4()
        self.graph.folder_owner[second_folder] = self.owner
        self.graph.bookmark_folders[self.bookmark] |= {self.folder, second_folder}
        self.graph.bookmark_users[self.bookmark].add(self.other)
        self.graph.folder_users[self.folder].add(self.stranger)
        self.graph.folder_teams[second_folder].add(self.team)
        self.graph.bookmark_teams[self.bookmark].add(self.team)

        users, teams = self.graph.effective_bookmark_shares(self.bookmark)
        assert users == {self.other, self.stranger}
        assert teams == {self.team}

    def test_visible_sets(self):
        hidden = uuid.uuid4()
        self.graph.bookmark_owner[hidden] = self.stranger
        assert graph_visible_bookmarks(self.graph, Viewer(self.owner)) == {self.bookmark}
        assert graph_visible_folders(self.graph, Viewer(self.owner)) == {self.folder}

    def test_item_type(self):
        assert item_type(self.owner, Viewer(self.owner)) == ItemType.OWN
        assert item_type(self.owner, Viewer(self.other)) == ItemType.SHARED


# ---------------------------------------------------------------------------
# Integration: SQL and in-memory forms agree
# ---------------------------------------------------------------------------

class TestSqlMatchesGraph:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("rng_seed", [7, 42, 1337])
    async def test_random_graphs(self, seed, session, rng_seed):
        rng = random.Random(rng_seed)
        users = [await seed.user(f"user{i}") for i in range(5)]
        teams = []
        for i in range(3):
            members = [u for u in users if rng.random() < 0.4]
            teams.append(await seed.team(f"team{i}", *members))

        folders = []
        for i in range(6):
            owner = rng.choice(users)
            folder = await seed.folder(owner, f"folder{i}")
            folders.append(folder)
            for u in users:
                if u.id != owner.id and rng.random() < 0.15:
                    await seed.share_folder(folder, user=u)
            for t in teams:
                if rng.random() < 0.2:
                    await seed.share_folder(folder, team=t)

        bookmarks = []
        for i in range(20):
            owner = rng.choice(users)
            bookmark = await seed.bookmark(owner, f"bm{i}", f"https://example.com/{i}")
            bookmarks.append(bookmark)
            for f in folders:
                if f.user_id == owner.id and rng.random() < 0.4:
                    await seed.place(bookmark, f)
            for u in users:
                if u.id != owner.id and rng.random() < 0.1:
                    await seed.share_bookmark(bookmark, user=u)
            for t in teams:
                if rng.random() < 0.1:
                    await seed.share_bookmark(bookmark, team=t)

        graph = await load_share_graph(
            session,
            bookmark_ids=[b.id for b in bookmarks],
            folder_ids=[f.id for f in folders],
        )

        for u in users:
            viewer = Viewer(u.id, await load_team_ids(u.id, session))
            assert await sql_visible_bookmarks(session, viewer) == graph_visible_bookmarks(graph, viewer)
            assert await sql_visible_folders(session, viewer) == graph_visible_folders(graph, viewer)


# ---------------------------------------------------------------------------
# Integration: folder shared with a team
# ---------------------------------------------------------------------------

class TestFolderSharedWithTeam:
    @pytest.mark.asyncio
    async def test_member_sees_bookmark_as_shared_and_cannot_mutate(self, client, seed, headers, alice, bob):
        team = await seed.team("Research", bob)
        folder = await seed.folder(alice, "Papers")
        await seed.share_folder(folder, team=team)
        bookmark = await seed.bookmark(alice, "Attention", "https://arxiv.org/abs/1706.03762")
        await seed.place(bookmark, folder)

        resp = await client.get("/api/v1/bookmarks", headers=headers(bob))
        assert resp.status_code == 200
        items = resp.json()["data"]
        assert [i["id"] for i in items] == [str(bookmark.id)]
        assert items[0]["bookmark_type"] == "shared"
        assert [t["name"] for t in items[0]["shared_teams"]] == ["Research"]

        resp = await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))
        assert resp.status_code == 200

        resp = await client.put(
            f"/api/v1/bookmarks/{bookmark.id}", json={"title": "mine now"}, headers=headers(bob)
        )
        assert resp.status_code in (403, 404)

        resp = await client.delete(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))
        assert resp.status_code in (403, 404)

        resp = await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(alice))
        assert resp.json()["title"] == "Attention"

    @pytest.mark.asyncio
    async def test_access_follows_folder_membership(self, client, seed, headers, alice, bob):
        """Removing a bookmark from the shared folder revokes access immediately."""
        team = await seed.team("Research", bob)
        folder = await seed.folder(alice, "Papers")
        await seed.share_folder(folder, team=team)
        bookmark = await seed.bookmark(alice)
        await seed.place(bookmark, folder)

        resp = await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))
        assert resp.status_code == 200

        resp = await client.put(
            f"/api/v1/bookmarks/{bookmark.id}", json={"folder_ids": []}, headers=headers(alice)
        )
        assert resp.status_code == 200

        resp = await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_leaving_team_revokes_access(self, client, seed, headers, admin, alice, bob):
        team = await seed.team("Research", bob)
        folder = await seed.folder(alice, "Papers")
        await seed.share_folder(folder, team=team)
        bookmark = await seed.bookmark(alice)
        await seed.place(bookmark, folder)

        resp = await client.delete(
            f"/api/v1/admin/teams/{team.id}/members/{bob.id}", headers=headers(admin)
        )
        assert resp.status_code == 204

        resp = await client.get("/api/v1/bookmarks", headers=headers(bob))
        assert resp.json()["data"] == []
