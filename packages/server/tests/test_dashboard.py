"""
Tests for /api/v1/dashboard/stats.
"""

from __future__ import annotations

import pytest


class TestDashboard:
    @pytest.mark.asyncio
    async def test_empty(self, client, headers, alice):
        data = (await client.get("/api/v1/dashboard/stats", headers=headers(alice))).json()
        assert data == {
            "total_bookmarks": 0,
            "total_folders": 0,
            "total_tags": 0,
            "shared_bookmarks": 0,
            "shared_folders": 0,
            "recent_bookmarks": [],
            "top_tags": [],
        }

    @pytest.mark.asyncio
    async def test_counts(self, client, seed, headers, alice, bob):
        team = await seed.team("T", alice, bob)
        for i in range(7):
            await seed.bookmark(alice, f"own {i}")
        await seed.folder(alice, "Mine")
        python = await seed.tag(alice, "python")
        rust = await seed.tag(alice, "rust")
        await seed.tag(alice, "unused")

        # Reachable three ways, counted once
        shared = await seed.bookmark(bob, "from bob")
        bob_folder = await seed.folder(bob, "Bob's")
        await seed.place(shared, bob_folder)
        await seed.share_bookmark(shared, user=alice, team=team)
        await seed.share_folder(bob_folder, team=team)
        await seed.bookmark(bob, "private")

        data = (await client.get("/api/v1/dashboard/stats", headers=headers(alice))).json()
        assert data["total_bookmarks"] == 7
        assert data["total_folders"] == 1
        assert data["total_tags"] == 3
        assert data["shared_bookmarks"] == 1
        assert data["shared_folders"] == 1
        assert [b["title"] for b in data["recent_bookmarks"]] == [f"own {i}" for i in (6, 5, 4, 3, 2)]

    @pytest.mark.asyncio
    async def test_top_tags(self, client, seed, headers, alice):
        tags = {name: await seed.tag(alice, name) for name in ("a", "b", "c", "d", "e", "f", "unused")}
        usage = {"a": 1, "b": 3, "c": 2, "d": 2, "e": 1, "f": 1}
        for name, count in usage.items():
            for i in range(count):
                await seed.label(await seed.bookmark(alice, f"{name}{i}"), tags[name])

        data = (await client.get("/api/v1/dashboard/stats", headers=headers(alice))).json()
        assert [(t["name"], t["bookmark_count"]) for t in data["top_tags"]] == [
            ("b", 3),
            ("c", 2),
            ("d", 2),
            ("a", 1),
            ("e", 1),
        ]
