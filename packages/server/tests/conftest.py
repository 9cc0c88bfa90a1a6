"""
Shared fixtures for server tests.

Every test gets a fresh in-memory SQLite database. The app's session
dependency is overridden to use it, and ``seed`` writes fixtures through
separate committed sessions so requests see them exactly as stored rows.
"""

import os

os.environ.setdefault("SB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SB_CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SB_LOG_FORMAT", "console")

from datetime import datetime, timedelta, timezone  # noqa: E402
from functools import lru_cache  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.auth import create_jwt, generate_user_key, hash_password  # noqa: E402
from app.core.database import configure_sqlite, get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.bookmark import Bookmark  # noqa: E402
from app.models.folder import BookmarkFolder, Folder  # noqa: E402
from app.models.shares import (  # noqa: E402
    BookmarkTeamShare,
    BookmarkUserShare,
    FolderTeamShare,
    FolderUserShare,
)
from app.models.tag import BookmarkTag, Tag  # noqa: E402
from app.models.team import Team, TeamMember  # noqa: E402
from app.models.user import User  # noqa: E402

PASSWORD = "Sup3r$ecret"


@lru_cache
def password_hash() -> str:
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(PASSWORD)


class Seeder:
    """Small factory for committed fixture rows."""

    def __init__(self, factory):
        self.factory = factory
        self._counter = 0
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._counter += 1
        return self._clock + timedelta(minutes=self._counter)

    async def add(self, *objs):
        async with self.factory() as session:
            session.add_all(objs)
            await session.commit()
        return objs[0] if len(objs) == 1 else objs

    async def user(self, name: str = "alice", *, is_admin: bool = False, email: str | None = None) -> User:
        return await self.add(
            User(
                email=email or f"{name.lower()}@example.com",
                name=name,
                user_key=generate_user_key(8),
                password_hash=password_hash(),
                is_admin=is_admin,
            )
        )

    async def team(self, name: str, *members: User) -> Team:
        team = await self.add(Team(name=name))
        for member in members:
            await self.add(TeamMember(team_id=team.id, user_id=member.id))
        return team

    async def bookmark(self, owner: User, title: str = "Example", url: str = "https://example.com", **kwargs) -> Bookmark:
        kwargs.setdefault("created_at", self._tick())
        return await self.add(Bookmark(user_id=owner.id, title=title, url=url, **kwargs))

    async def folder(self, owner: User, name: str = "Reading", **kwargs) -> Folder:
        return await self.add(Folder(user_id=owner.id, name=name, **kwargs))

    async def tag(self, owner: User, name: str = "python") -> Tag:
        return await self.add(Tag(user_id=owner.id, name=name))

    async def place(self, bookmark: Bookmark, folder: Folder):
        return await self.add(BookmarkFolder(bookmark_id=bookmark.id, folder_id=folder.id))

    async def label(self, bookmark: Bookmark, tag: Tag):
        return await self.add(BookmarkTag(bookmark_id=bookmark.id, tag_id=tag.id))

    async def share_bookmark(self, bookmark: Bookmark, *, user: User | None = None, team: Team | None = None):
        if user is not None:
            await self.add(BookmarkUserShare(bookmark_id=bookmark.id, user_id=user.id))
        if team is not None:
            await self.add(BookmarkTeamShare(bookmark_id=bookmark.id, team_id=team.id))

    async def share_folder(self, folder: Folder, *, user: User | None = None, team: Team | None = None):
        if user is not None:
            await self.add(FolderUserShare(folder_id=folder.id, user_id=user.id))
        if team is not None:
            await self.add(FolderTeamShare(folder_id=folder.id, team_id=team.id))


def auth_headers(user: User) -> dict:
    token, _ = create_jwt(user.id, is_admin=user.is_admin)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(eng)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
async def client(session_factory):
    async def _override_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def alice(seed):
    return await seed.user("Alice")


@pytest.fixture
async def bob(seed):
    return await seed.user("Bob")


@pytest.fixture
async def carol(seed):
    return await seed.user("Carol")


@pytest.fixture
async def admin(seed):
    return await seed.user("Admin", is_admin=True)


@pytest.fixture
def headers():
    """``headers(user)`` -> Authorization header for that user."""
    return auth_headers
