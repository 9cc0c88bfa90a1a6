"""
Tests for bookmark export and import.
"""

from __future__ import annotations

import json

import pytest

from app.services.bookmarks import parse_import_payload, parse_netscape_html
from app.core.errors import ValidationFailed

NETSCAPE_HTML = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3>Dev</H3>
    <DL><p>
        <DT><A HREF="https://docs.python.org/3/" ADD_DATE="1700000000">Python docs</A>
        <DT><A HREF="https://fastapi.tiangolo.com">FastAPI</A>
    </DL><p>
    <DT><A HREF="javascript:void(0)">Bookmarklet</A>
</DL><p>
"""


def _upload(payload, filename="bookmarks.json", content_type="application/json"):
    if not isinstance(payload, (bytes, str)):
        payload = json.dumps(payload)
    if isinstance(payload, str):
        payload = payload.encode()
    return {"file": (filename, payload, content_type)}


# ---------------------------------------------------------------------------
# Unit tests: payload parsing
# ---------------------------------------------------------------------------

class TestParsing:
    def test_netscape_anchors(self):
        entries = parse_netscape_html(NETSCAPE_HTML)
        assert entries == [
            {"title": "Python docs", "url": "https://docs.python.org/3/"},
            {"title": "FastAPI", "url": "https://fastapi.tiangolo.com"},
            {"title": "Bookmarklet", "url": "javascript:void(0)"},
        ]

    def test_json_detected_by_content(self):
        assert parse_import_payload("export.txt", b'[{"title": "a"}]') == [{"title": "a"}]

    def test_json_must_be_array(self):
        with pytest.raises(ValidationFailed):
            parse_import_payload("x.json", b'{"title": "a"}')

    def test_broken_json(self):
        with pytest.raises(ValidationFailed):
            parse_import_payload("x.json", b"[{")

    def test_unknown_format(self):
        with pytest.raises(ValidationFailed):
            parse_import_payload("notes.txt", b"just some text")


# ---------------------------------------------------------------------------
# Integration: export
# ---------------------------------------------------------------------------

class TestExport:
    @pytest.mark.asyncio
    async def test_exports_visible_bookmarks_only(self, client, seed, headers, alice, bob):
        await seed.bookmark(alice, "Mine", "https://mine.example", slug="mine", forwarding_enabled=True)
        shared = await seed.bookmark(bob, "Shared", "https://shared.example")
        await seed.share_bookmark(shared, user=alice)
        await seed.bookmark(bob, "Hidden", "https://hidden.example")

        resp = await client.get("/api/v1/bookmarks/export", headers=headers(alice))
        assert resp.status_code == 200
        assert "attachment" in resp.headers["content-disposition"]
        data = resp.json()
        assert {item["title"] for item in data} == {"Mine", "Shared"}

        mine = next(item for item in data if item["title"] == "Mine")
        assert set(mine) == {"title", "url", "slug", "forwarding_enabled", "pinned", "created_at"}
        assert mine["slug"] == "mine"
        assert mine["forwarding_enabled"] is True


# ---------------------------------------------------------------------------
# Integration: import
# ---------------------------------------------------------------------------

class TestImport:
    @pytest.mark.asyncio
    async def test_json_import(self, client, headers, alice):
        payload = [
            {"title": "One", "url": "https://one.example", "slug": "one", "forwarding_enabled": True},
            {"title": "Two", "url": "https://two.example", "pinned": True},
        ]
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(payload), headers=headers(alice))
        assert resp.status_code == 200
        assert resp.json() == {"success": 2, "failed": 0, "errors": []}

        items = (await client.get("/api/v1/bookmarks?sort_by=alphabetical", headers=headers(alice))).json()["data"]
        assert [(b["title"], b["slug"], b["forwarding_enabled"], b["pinned"]) for b in items] == [
            ("One", "one", True, False),
            ("Two", "", False, True),
        ]

    @pytest.mark.asyncio
    async def test_duplicate_slug_in_batch_drops_only_the_slug(self, client, headers, alice):
        payload = [
            {"title": "First", "url": "https://a.example", "slug": "dup", "forwarding_enabled": True},
            {"title": "Second", "url": "https://b.example", "slug": "dup", "forwarding_enabled": True},
            {"title": "Third", "url": "https://c.example"},
        ]
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(payload), headers=headers(alice))
        assert resp.json() == {"success": 3, "failed": 0, "errors": []}

        items = (await client.get("/api/v1/bookmarks?sort_by=alphabetical", headers=headers(alice))).json()["data"]
        second = next(b for b in items if b["title"] == "Second")
        assert second["slug"] == ""
        assert second["forwarding_enabled"] is False

    @pytest.mark.asyncio
    async def test_existing_slug_is_dropped(self, client, seed, headers, alice):
        await seed.bookmark(alice, "Existing", slug="taken")
        payload = [{"title": "New", "url": "https://new.example", "slug": "taken"}]
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(payload), headers=headers(alice))
        assert resp.json()["success"] == 1

    @pytest.mark.asyncio
    async def test_invalid_entries_are_reported(self, client, headers, alice):
        payload = [
            {"title": "Good", "url": "https://good.example"},
            {"title": "", "url": "https://no-title.example"},
            {"title": "Bad url", "url": "javascript:alert(1)"},
            "not an object",
        ]
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(payload), headers=headers(alice))
        assert resp.status_code == 200
        result = resp.json()
        assert result["success"] == 1
        assert result["failed"] == 3
        assert [e.split(":")[0] for e in result["errors"]] == ["Entry 2", "Entry 3", "Entry 4"]

        items = (await client.get("/api/v1/bookmarks", headers=headers(alice))).json()["data"]
        assert [b["title"] for b in items] == ["Good"]

    @pytest.mark.asyncio
    async def test_string_flags_are_parsed_as_booleans(self, client, headers, alice):
        payload = [
            {"title": "Off", "url": "https://off.example", "slug": "off", "forwarding_enabled": "false", "pinned": "false"},
            {"title": "On", "url": "https://on.example", "slug": "on", "forwarding_enabled": "true", "pinned": "1"},
            {"title": "Junk", "url": "https://junk.example", "pinned": "sometimes"},
        ]
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(payload), headers=headers(alice))
        result = resp.json()
        assert (result["success"], result["failed"]) == (2, 1)
        assert result["errors"][0].startswith("Entry 3: pinned")

        items = {
            b["title"]: (b["forwarding_enabled"], b["pinned"])
            for b in (await client.get("/api/v1/bookmarks", headers=headers(alice))).json()["data"]
        }
        assert items == {"Off": (False, False), "On": (True, True)}
        assert (await client.get(f"/{alice.user_key}/off")).status_code == 404
        assert (await client.get(f"/{alice.user_key}/on")).status_code == 302

    @pytest.mark.asyncio
    async def test_netscape_import(self, client, headers, alice):
        resp = await client.post(
            "/api/v1/bookmarks/import",
            files=_upload(NETSCAPE_HTML, "bookmarks.html", "text/html"),
            headers=headers(alice),
        )
        assert resp.json()["success"] == 2
        assert resp.json()["failed"] == 1

    @pytest.mark.asyncio
    async def test_unparseable_file_is_validation_error(self, client, headers, alice):
        resp = await client.post(
            "/api/v1/bookmarks/import", files=_upload(b"[{", "x.json"), headers=headers(alice)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation"

    @pytest.mark.asyncio
    async def test_export_then_import_round_trip(self, client, seed, headers, alice, bob):
        await seed.bookmark(alice, "Forwarded", "https://f.example", slug="fwd", forwarding_enabled=True)
        await seed.bookmark(alice, "Pinned", "https://p.example", pinned=True)

        exported = (await client.get("/api/v1/bookmarks/export", headers=headers(alice))).json()
        resp = await client.post("/api/v1/bookmarks/import", files=_upload(exported), headers=headers(bob))
        assert resp.json()["success"] == 2

        def fields(items):
            return sorted((b["title"], b["url"], b["forwarding_enabled"], b["pinned"]) for b in items)

        imported = (await client.get("/api/v1/bookmarks", headers=headers(bob))).json()["data"]
        assert fields(imported) == fields(exported)
