"""
Integration tests for team membership and the admin API.
"""

from __future__ import annotations

import uuid

import pytest

from conftest import PASSWORD


class TestMyTeams:
    @pytest.mark.asyncio
    async def test_lists_only_callers_teams(self, client, seed, headers, alice, bob):
        await seed.team("Zeta", alice, bob)
        await seed.team("alpha", alice)
        await seed.team("Hidden", bob)

        data = (await client.get("/api/v1/teams", headers=headers(alice))).json()["data"]
        assert [(t["name"], t["member_count"]) for t in data] == [("alpha", 1), ("Zeta", 2)]


class TestAdminTeams:
    @pytest.mark.asyncio
    async def test_team_lifecycle(self, client, headers, admin, alice, bob):
        auth = headers(admin)
        resp = await client.post(
            "/api/v1/admin/teams", json={"name": "Research", "description": "Papers"}, headers=auth
        )
        assert resp.status_code == 201
        team_id = resp.json()["id"]

        resp = await client.post(
            f"/api/v1/admin/teams/{team_id}/members",
            json={"user_ids": [str(alice.id), str(bob.id)]},
            headers=auth,
        )
        assert resp.status_code == 200
        assert {m["id"] for m in resp.json()["members"]} == {str(alice.id), str(bob.id)}

        # Adding an existing member again is a no-op
        resp = await client.post(
            f"/api/v1/admin/teams/{team_id}/members", json={"user_ids": [str(alice.id)]}, headers=auth
        )
        assert resp.json()["member_count"] == 2

        resp = await client.put(f"/api/v1/admin/teams/{team_id}", json={"name": "R&D"}, headers=auth)
        assert resp.json()["name"] == "R&D"
        assert resp.json()["description"] == "Papers"

        resp = await client.delete(f"/api/v1/admin/teams/{team_id}/members/{bob.id}", headers=auth)
        assert resp.status_code == 204
        resp = await client.delete(f"/api/v1/admin/teams/{team_id}/members/{bob.id}", headers=auth)
        assert resp.status_code == 404

        resp = await client.get(f"/api/v1/admin/users/{alice.id}/teams", headers=auth)
        assert [t["name"] for t in resp.json()["data"]] == ["R&D"]

        assert (await client.delete(f"/api/v1/admin/teams/{team_id}", headers=auth)).status_code == 204
        assert (await client.get(f"/api/v1/admin/teams/{team_id}", headers=auth)).status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_team_name(self, client, seed, headers, admin):
        await seed.team("Ops")
        resp = await client.post("/api/v1/admin/teams", json={"name": "Ops"}, headers=headers(admin))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "conflict"

    @pytest.mark.asyncio
    async def test_add_unknown_member(self, client, seed, headers, admin):
        team = await seed.team("Ops")
        resp = await client.post(
            f"/api/v1/admin/teams/{team.id}/members",
            json={"user_ids": [str(uuid.uuid4())]},
            headers=headers(admin),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_add_members_requires_ids(self, client, seed, headers, admin):
        team = await seed.team("Ops")
        resp = await client.post(
            f"/api/v1/admin/teams/{team.id}/members", json={"user_ids": []}, headers=headers(admin)
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_deleting_team_drops_its_shares(self, client, seed, headers, admin, alice, bob):
        team = await seed.team("T", alice, bob)
        bookmark = await seed.bookmark(alice)
        await seed.share_bookmark(bookmark, team=team)
        assert (await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))).status_code == 200

        await client.delete(f"/api/v1/admin/teams/{team.id}", headers=headers(admin))
        assert (await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(bob))).status_code == 404


class TestAdminUsers:
    @pytest.mark.asyncio
    async def test_user_lifecycle(self, client, headers, admin):
        auth = headers(admin)
        resp = await client.post(
            "/api/v1/admin/users",
            json={"email": "Eve@Example.com", "name": "Eve", "password": PASSWORD},
            headers=auth,
        )
        assert resp.status_code == 201
        user = resp.json()
        assert user["email"] == "eve@example.com"
        assert user["is_admin"] is False

        resp = await client.put(
            f"/api/v1/admin/users/{user['id']}", json={"is_admin": True, "theme": "dark"}, headers=auth
        )
        assert resp.json()["is_admin"] is True
        assert resp.json()["theme"] == "dark"

        resp = await client.post("/auth/login", json={"email": "eve@example.com", "password": PASSWORD})
        assert resp.status_code == 200

        assert (await client.delete(f"/api/v1/admin/users/{user['id']}", headers=auth)).status_code == 204
        assert (await client.get(f"/api/v1/admin/users/{user['id']}", headers=auth)).status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, client, headers, admin):
        resp = await client.delete(f"/api/v1/admin/users/{admin.id}", headers=headers(admin))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_email_change_conflict(self, client, headers, admin, alice, bob):
        resp = await client.put(
            f"/api/v1/admin/users/{bob.id}", json={"email": alice.email}, headers=headers(admin)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "conflict"

    @pytest.mark.asyncio
    async def test_deleting_user_removes_their_bookmarks(self, client, seed, headers, admin, alice, bob):
        bookmark = await seed.bookmark(alice)
        await seed.share_bookmark(bookmark, user=bob)

        await client.delete(f"/api/v1/admin/users/{alice.id}", headers=headers(admin))
        assert (await client.get("/api/v1/bookmarks", headers=headers(bob))).json()["data"] == []

    @pytest.mark.asyncio
    async def test_list_users(self, client, headers, admin, alice, bob):
        data = (await client.get("/api/v1/admin/users", headers=headers(admin))).json()["data"]
        assert [u["name"] for u in data] == ["Admin", "Alice", "Bob"]
