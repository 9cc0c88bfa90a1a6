"""
Bookmark service: CRUD with ownership enforcement, association maintenance,
search, usage tracking, and JSON/Netscape import-export.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from bs4 import BeautifulSoup
from pydantic import ValidationError
from sqlalchemy import delete, func, insert, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import flush_or_conflict
from app.core.errors import NotFound, SlugConflict, ValidationFailed
from app.models.bookmark import Bookmark
from app.models.folder import BookmarkFolder, Folder
from app.models.shares import BookmarkTeamShare, BookmarkUserShare
from app.models.tag import BookmarkTag, Tag
from app.models.user import User
from app.services import sharing
from app.services.folders import build_folder_responses
from app.services.tags import build_tag_responses
from app.services.visibility import (
    Viewer,
    bookmark_visibility_clause,
    folder_visibility_clause,
    item_type,
    load_share_graph,
)
from slugbase_shared.schemas.bookmarks import (
    BookmarkCreate,
    BookmarkResponse,
    BookmarkUpdate,
    ExportedBookmark,
    ImportedBookmark,
    ImportResult,
    SearchResponse,
)
from slugbase_shared.schemas.common import (
    SortBy,
    sanitize_string,
    validate_length,
    validate_slug,
    validate_url,
)

log = structlog.get_logger()
settings = get_settings()

SEARCH_LIMIT_BOOKMARKS = 10
SEARCH_LIMIT_FOLDERS = 5
SEARCH_LIMIT_TAGS = 5


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------

def clean_title(title: Optional[str]) -> str:
    title = sanitize_string(title)
    if not title:
        raise ValidationFailed("Title is required")
    ok, msg = validate_length(title, "title")
    if not ok:
        raise ValidationFailed(msg)
    return title


def clean_url(url: Optional[str]) -> str:
    ok, msg = validate_url(url)
    if not ok:
        raise ValidationFailed(msg)
    return url.strip()


def clean_slug(slug: Optional[str]) -> Optional[str]:
    """Blank means no slug."""
    slug = sanitize_string(slug)
    if not slug:
        return None
    ok, msg = validate_slug(slug)
    if not ok:
        raise ValidationFailed(msg)
    return slug


async def slug_taken(
    user_id: uuid.UUID,
    slug: str,
    session: AsyncSession,
    *,
    exclude_id: uuid.UUID | None = None,
) -> bool:
    query = select(Bookmark.id).where(Bookmark.user_id == user_id, Bookmark.slug == slug)
    if exclude_id is not None:
        query = query.where(Bookmark.id != exclude_id)
    result = await session.execute(query)
    return result.first() is not None


async def ensure_slug_available(
    user_id: uuid.UUID,
    slug: str,
    session: AsyncSession,
    *,
    exclude_id: uuid.UUID | None = None,
) -> None:
    if await slug_taken(user_id, slug, session, exclude_id=exclude_id):
        raise SlugConflict(f"Slug '{slug}' is already in use")


# ---------------------------------------------------------------------------
# Association edges (replaced wholesale)
# ---------------------------------------------------------------------------

async def _replace_edges(session: AsyncSession, model, parent_id: uuid.UUID, child_field: str, child_ids) -> None:
    await session.execute(delete(model).where(model.bookmark_id == parent_id))
    rows = [{"bookmark_id": parent_id, child_field: child_id} for child_id in child_ids]
    if rows:
        await session.execute(insert(model), rows)


async def _apply_associations(
    bookmark_id: uuid.UUID,
    viewer: Viewer,
    session: AsyncSession,
    *,
    folder_ids=None,
    tag_ids=None,
    team_ids=None,
    share_all_teams: bool = False,
    user_ids=None,
) -> None:
    """Validate every list first, then rewrite the edges that were supplied."""
    folders = await sharing.require_owned_folders(viewer, folder_ids, session) if folder_ids is not None else None
    tags = await sharing.require_existing_tags(tag_ids, session) if tag_ids is not None else None
    teams = None
    if team_ids is not None or share_all_teams:
        teams = sharing.resolve_team_targets(viewer, team_ids or (), share_all_teams)
    users = await sharing.resolve_user_targets(viewer, user_ids, session) if user_ids is not None else None

    if folders is not None:
        await _replace_edges(session, BookmarkFolder, bookmark_id, "folder_id", folders)
    if tags is not None:
        await _replace_edges(session, BookmarkTag, bookmark_id, "tag_id", tags)
    if teams is not None:
        await _replace_edges(session, BookmarkTeamShare, bookmark_id, "team_id", teams)
    if users is not None:
        await _replace_edges(session, BookmarkUserShare, bookmark_id, "user_id", users)


# ---------------------------------------------------------------------------
# Response building
# ---------------------------------------------------------------------------

def forwarding_url(user_key: str, slug: str) -> str:
    return f"{settings.base_url.rstrip('/')}/{user_key}/{slug}"


async def build_bookmark_responses(
    bookmarks: list[Bookmark],
    viewer: Viewer,
    session: AsyncSession,
) -> list[BookmarkResponse]:
    """Annotate bookmarks with type, folders, tags and effective shares."""
    if not bookmarks:
        return []
    ids = [b.id for b in bookmarks]
    graph = await load_share_graph(session, bookmark_ids=ids)

    tag_rows = await session.execute(
        select(BookmarkTag.bookmark_id, BookmarkTag.tag_id).where(BookmarkTag.bookmark_id.in_(ids))
    )
    tags_by_bookmark: dict[uuid.UUID, set[uuid.UUID]] = {}
    for bid, tid in tag_rows.all():
        tags_by_bookmark.setdefault(bid, set()).add(tid)

    effective = {bid: graph.effective_bookmark_shares(bid) for bid in ids}
    all_users = {u for users, _ in effective.values() for u in users}
    all_teams = {t for _, teams in effective.values() for t in teams}
    all_folders = {f for bid in ids for f in graph.bookmark_folders.get(bid, ())}
    all_tags = {t for tids in tags_by_bookmark.values() for t in tids}

    owners_result = await session.execute(
        select(User).where(User.id.in_(list({b.user_id for b in bookmarks})))
    )
    owners = {u.id: u for u in owners_result.scalars().all()}
    users = await sharing.user_refs(all_users, session)
    teams = await sharing.team_refs(all_teams, session)
    folders = await sharing.folder_refs(all_folders, session)
    tags = await sharing.tag_refs(all_tags, session)

    responses = []
    for b in bookmarks:
        owner = owners.get(b.user_id)
        shared_users, shared_teams = effective[b.id]
        fwd = None
        if b.forwarding_enabled and b.slug and owner is not None:
            fwd = forwarding_url(owner.user_key, b.slug)
        responses.append(
            BookmarkResponse(
                id=b.id,
                user_id=b.user_id,
                title=b.title,
                url=b.url,
                slug=b.slug,
                forwarding_enabled=b.forwarding_enabled,
                forwarding_url=fwd,
                pinned=b.pinned,
                access_count=b.access_count or 0,
                last_accessed_at=b.last_accessed_at,
                created_at=b.created_at,
                updated_at=b.updated_at,
                bookmark_type=item_type(b.user_id, viewer),
                owner_name=owner.name if owner else None,
                folders=sharing.sorted_refs(folders, graph.bookmark_folders.get(b.id, ())),
                tags=sharing.sorted_refs(tags, tags_by_bookmark.get(b.id, ())),
                shared_teams=sharing.sorted_refs(teams, shared_teams),
                shared_users=sharing.sorted_refs(users, shared_users),
            )
        )
    return responses


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _order_by(sort_by: SortBy):
    if sort_by == SortBy.ALPHABETICAL:
        return (func.lower(Bookmark.title).asc(), Bookmark.created_at.desc())
    if sort_by == SortBy.MOST_USED:
        return (Bookmark.access_count.desc(), Bookmark.created_at.desc())
    if sort_by == SortBy.RECENTLY_ACCESSED:
        # NULLS LAST spelled portably: false sorts before true on every backend
        return (
            Bookmark.last_accessed_at.is_(None).asc(),
            Bookmark.last_accessed_at.desc(),
            Bookmark.created_at.desc(),
        )
    return (Bookmark.created_at.desc(), Bookmark.id)


async def list_bookmarks(
    viewer: Viewer,
    session: AsyncSession,
    *,
    folder_id: uuid.UUID | None = None,
    tag_id: uuid.UUID | None = None,
    sort_by: SortBy = SortBy.RECENTLY_ADDED,
) -> list[BookmarkResponse]:
    """List every bookmark visible to the viewer, optionally filtered."""
    query = select(Bookmark).where(bookmark_visibility_clause(viewer))
    if folder_id is not None:
        query = query.where(
            Bookmark.id.in_(select(BookmarkFolder.bookmark_id).where(BookmarkFolder.folder_id == folder_id))
        )
    if tag_id is not None:
        query = query.where(
            Bookmark.id.in_(select(BookmarkTag.bookmark_id).where(BookmarkTag.tag_id == tag_id))
        )
    result = await session.execute(query.order_by(*_order_by(sort_by)))
    return await build_bookmark_responses(list(result.scalars().all()), viewer, session)


async def get_visible_bookmark(
    bookmark_id: uuid.UUID, viewer: Viewer, session: AsyncSession
) -> Bookmark:
    """Fetch a bookmark the viewer may read; hidden and missing look the same."""
    bookmark = await session.get(Bookmark, bookmark_id)
    if bookmark is None:
        raise NotFound("Bookmark not found")
    if bookmark.user_id != viewer.user_id:
        graph = await load_share_graph(session, bookmark_ids=[bookmark_id])
        if not graph.bookmark_visible(viewer, bookmark_id):
            raise NotFound("Bookmark not found")
    return bookmark


async def get_bookmark(
    bookmark_id: uuid.UUID, viewer: Viewer, session: AsyncSession
) -> BookmarkResponse:
    bookmark = await get_visible_bookmark(bookmark_id, viewer, session)
    return (await build_bookmark_responses([bookmark], viewer, session))[0]


async def get_owned_bookmark(
    bookmark_id: uuid.UUID, viewer: Viewer, session: AsyncSession
) -> Bookmark:
    result = await session.execute(
        select(Bookmark).where(Bookmark.id == bookmark_id, Bookmark.user_id == viewer.user_id)
    )
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        raise NotFound("Bookmark not found")
    return bookmark


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_bookmark(
    req: BookmarkCreate, viewer: Viewer, session: AsyncSession
) -> BookmarkResponse:
    title = clean_title(req.title)
    url = clean_url(req.url)
    slug = clean_slug(req.slug)
    if req.forwarding_enabled and not slug:
        raise ValidationFailed("Slug is required when forwarding is enabled")
    if slug:
        await ensure_slug_available(viewer.user_id, slug, session)

    bookmark = Bookmark(
        user_id=viewer.user_id,
        title=title,
        url=url,
        slug=slug,
        forwarding_enabled=req.forwarding_enabled,
        pinned=req.pinned,
    )
    session.add(bookmark)
    await flush_or_conflict(session, f"Slug '{slug}' is already in use")

    await _apply_associations(
        bookmark.id,
        viewer,
        session,
        folder_ids=req.folder_ids,
        tag_ids=req.tag_ids,
        team_ids=req.team_ids,
        share_all_teams=req.share_all_teams,
        user_ids=req.user_ids,
    )
    await session.flush()

    log.info("bookmark.created", bookmark_id=str(bookmark.id), user_id=str(viewer.user_id))
    return (await build_bookmark_responses([bookmark], viewer, session))[0]


async def update_bookmark(
    bookmark_id: uuid.UUID,
    req: BookmarkUpdate,
    viewer: Viewer,
    session: AsyncSession,
) -> BookmarkResponse:
    """Owner-only partial update."""
    bookmark = await get_owned_bookmark(bookmark_id, viewer, session)
    supplied = req.model_fields_set

    if "title" in supplied:
        bookmark.title = clean_title(req.title)
    if "url" in supplied:
        bookmark.url = clean_url(req.url)

    slug = bookmark.slug
    if "slug" in supplied:
        slug = clean_slug(req.slug)
        if slug and slug != bookmark.slug:
            await ensure_slug_available(viewer.user_id, slug, session, exclude_id=bookmark.id)

    forwarding = bookmark.forwarding_enabled
    if req.forwarding_enabled is not None:
        forwarding = req.forwarding_enabled
    if forwarding and not slug:
        raise ValidationFailed("Slug is required when forwarding is enabled")

    bookmark.slug = slug
    bookmark.forwarding_enabled = forwarding
    if req.pinned is not None:
        bookmark.pinned = req.pinned
    bookmark.updated_at = datetime.now(timezone.utc)
    session.add(bookmark)
    await flush_or_conflict(session, f"Slug '{slug}' is already in use")

    await _apply_associations(
        bookmark.id,
        viewer,
        session,
        folder_ids=req.folder_ids,
        tag_ids=req.tag_ids,
        team_ids=req.team_ids,
        share_all_teams=bool(req.share_all_teams),
        user_ids=req.user_ids,
    )
    await session.flush()

    log.info("bookmark.updated", bookmark_id=str(bookmark.id), user_id=str(viewer.user_id))
    return (await build_bookmark_responses([bookmark], viewer, session))[0]


async def delete_bookmark(
    bookmark_id: uuid.UUID, viewer: Viewer, session: AsyncSession
) -> None:
    bookmark = await get_owned_bookmark(bookmark_id, viewer, session)
    await session.delete(bookmark)
    await session.flush()
    log.info("bookmark.deleted", bookmark_id=str(bookmark_id), user_id=str(viewer.user_id))


async def track_access(
    bookmark_id: uuid.UUID, viewer: Viewer, session: AsyncSession
) -> None:
    """Bump the usage counter. Never raises on storage errors."""
    try:
        async with session.begin_nested():
            await session.execute(
                update(Bookmark)
                .where(Bookmark.id == bookmark_id, bookmark_visibility_clause(viewer))
                .values(
                    access_count=Bookmark.access_count + 1,
                    last_accessed_at=datetime.now(timezone.utc),
                    updated_at=Bookmark.updated_at,
                )
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError as exc:
        log.warning(
            "bookmark.access_tracking_failed",
            bookmark_id=str(bookmark_id),
            error=str(exc),
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

async def search(q: str, viewer: Viewer, session: AsyncSession) -> SearchResponse:
    """Case-insensitive substring search over bookmarks, folders and tags."""
    term = sanitize_string(q).lower()
    if not term:
        return SearchResponse(bookmarks=[], folders=[], tags=[])

    def matches(column):
        return func.lower(column).contains(term, autoescape=True)

    result = await session.execute(
        select(Bookmark)
        .where(
            bookmark_visibility_clause(viewer),
            or_(matches(Bookmark.title), matches(Bookmark.url), matches(Bookmark.slug)),
        )
        .order_by(func.lower(Bookmark.title))
        .limit(SEARCH_LIMIT_BOOKMARKS)
    )
    bookmarks = await build_bookmark_responses(list(result.scalars().all()), viewer, session)

    result = await session.execute(
        select(Folder)
        .where(folder_visibility_clause(viewer), matches(Folder.name))
        .order_by(func.lower(Folder.name))
        .limit(SEARCH_LIMIT_FOLDERS)
    )
    folders = await build_folder_responses(list(result.scalars().all()), viewer, session)

    result = await session.execute(
        select(Tag)
        .where(Tag.user_id == viewer.user_id, matches(Tag.name))
        .order_by(func.lower(Tag.name))
        .limit(SEARCH_LIMIT_TAGS)
    )
    tags = await build_tag_responses(list(result.scalars().all()), session)

    return SearchResponse(bookmarks=bookmarks, folders=folders, tags=tags)


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------

async def export_bookmarks(viewer: Viewer, session: AsyncSession) -> list[ExportedBookmark]:
    result = await session.execute(
        select(Bookmark)
        .where(bookmark_visibility_clause(viewer))
        .order_by(Bookmark.created_at.desc())
    )
    return [
        ExportedBookmark(
            title=b.title,
            url=b.url,
            slug=b.slug,
            forwarding_enabled=b.forwarding_enabled,
            pinned=b.pinned,
            created_at=b.created_at,
        )
        for b in result.scalars().all()
    ]


def parse_netscape_html(text: str) -> list[dict]:
    """Pull bookmark entries out of a Netscape-format bookmarks file."""
    soup = BeautifulSoup(text, "html.parser")
    entries = []
    for anchor in soup.find_all("a"):
        entries.append({"title": anchor.get_text(strip=True), "url": anchor.get("href")})
    return entries


def parse_import_payload(filename: str | None, raw: bytes) -> list[dict]:
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationFailed("Import file must be UTF-8 encoded")

    stripped = text.lstrip()
    name = (filename or "").lower()
    if name.endswith(".json") or stripped.startswith(("[", "{")):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationFailed(f"Invalid JSON: {exc.msg}")
        if not isinstance(data, list):
            raise ValidationFailed("JSON import must be an array of bookmarks")
        return data
    if name.endswith((".html", ".htm")) or stripped.startswith("<"):
        return parse_netscape_html(text)
    raise ValidationFailed("Unsupported import format; expected JSON or Netscape HTML")


async def _import_entry(entry, viewer: Viewer, session: AsyncSession) -> None:
    if not isinstance(entry, dict):
        raise ValidationFailed("Entry must be an object")
    try:
        item = ImportedBookmark.model_validate(entry)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise ValidationFailed(f"{field}: {first['msg']}")
    title = clean_title(item.title)
    url = clean_url(item.url)

    # Unusable or conflicting slugs are dropped rather than failing the entry
    slug = sanitize_string(item.slug) or None
    if slug and (not validate_slug(slug)[0] or await slug_taken(viewer.user_id, slug, session)):
        slug = None
    forwarding = item.forwarding_enabled and slug is not None

    session.add(
        Bookmark(
            user_id=viewer.user_id,
            title=title,
            url=url,
            slug=slug,
            forwarding_enabled=forwarding,
            pinned=item.pinned,
        )
    )
    await session.flush()


async def import_bookmarks(
    filename: str | None,
    raw: bytes,
    viewer: Viewer,
    session: AsyncSession,
) -> ImportResult:
    """Insert each entry in its own savepoint and report per-entry failures."""
    entries = parse_import_payload(filename, raw)
    summary = ImportResult()
    for index, entry in enumerate(entries, start=1):
        try:
            async with session.begin_nested():
                await _import_entry(entry, viewer, session)
            summary.success += 1
        except (ValidationFailed, SQLAlchemyError) as exc:
            message = exc.detail if isinstance(exc, ValidationFailed) else "Could not save bookmark"
            summary.failed += 1
            summary.errors.append(f"Entry {index}: {message}")
            log.warning("bookmark.import_entry_failed", index=index, error=str(exc))

    log.info(
        "bookmark.imported",
        user_id=str(viewer.user_id),
        success=summary.success,
        failed=summary.failed,
    )
    return summary
