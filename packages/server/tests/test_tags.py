"""
Integration tests for /api/v1/tags.
"""

from __future__ import annotations

import pytest

from app.services import tags as tag_service


class TestTags:
    @pytest.mark.asyncio
    async def test_crud(self, client, headers, alice):
        resp = await client.post("/api/v1/tags", json={"name": "python"}, headers=headers(alice))
        assert resp.status_code == 201
        tag = resp.json()
        assert tag["bookmark_count"] == 0

        resp = await client.put(f"/api/v1/tags/{tag['id']}", json={"name": "py"}, headers=headers(alice))
        assert resp.json()["name"] == "py"

        resp = await client.delete(f"/api/v1/tags/{tag['id']}", headers=headers(alice))
        assert resp.status_code == 204
        assert (await client.get("/api/v1/tags", headers=headers(alice))).json()["data"] == []

    @pytest.mark.asyncio
    async def test_tags_are_private(self, client, seed, headers, alice, bob):
        tag = await seed.tag(alice, "secret")
        assert (await client.get("/api/v1/tags", headers=headers(bob))).json()["data"] == []
        assert (await client.get(f"/api/v1/tags/{tag.id}", headers=headers(bob))).status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_name(self, client, seed, headers, alice, bob):
        await seed.tag(alice, "dup")
        resp = await client.post("/api/v1/tags", json={"name": "dup"}, headers=headers(alice))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "conflict"
        assert (await client.post("/api/v1/tags", json={"name": "dup"}, headers=headers(bob))).status_code == 201

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_name_is_a_conflict(self, client, seed, headers, alice, monkeypatch):
        await seed.tag(alice, "dup")

        async def available(*args, **kwargs):
            return None

        monkeypatch.setattr(tag_service, "_ensure_name_available", available)
        resp = await client.post("/api/v1/tags", json={"name": "dup"}, headers=headers(alice))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "conflict"

    @pytest.mark.asyncio
    async def test_name_length(self, client, headers, alice):
        resp = await client.post("/api/v1/tags", json={"name": "x" * 101}, headers=headers(alice))
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_list_sorted_with_counts(self, client, seed, headers, alice):
        beta = await seed.tag(alice, "beta")
        await seed.tag(alice, "Alpha")
        await seed.label(await seed.bookmark(alice), beta)

        data = (await client.get("/api/v1/tags", headers=headers(alice))).json()["data"]
        assert [(t["name"], t["bookmark_count"]) for t in data] == [("Alpha", 0), ("beta", 1)]

    @pytest.mark.asyncio
    async def test_delete_detaches_from_bookmarks(self, client, seed, headers, alice):
        tag = await seed.tag(alice)
        bookmark = await seed.bookmark(alice)
        await seed.label(bookmark, tag)

        await client.delete(f"/api/v1/tags/{tag.id}", headers=headers(alice))
        data = (await client.get(f"/api/v1/bookmarks/{bookmark.id}", headers=headers(alice))).json()
        assert data["tags"] == []
