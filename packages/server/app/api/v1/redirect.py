"""
Public forwarding: GET /{user_key}/{slug} -> 302 to the bookmark URL.

Unauthenticated. Mounted last so it never shadows API or auth routes.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import get_session
from app.core.errors import NotFound, ValidationFailed
from app.models.bookmark import Bookmark
from app.models.user import User
from slugbase_shared.schemas.common import validate_url

log = structlog.get_logger()
router = APIRouter()


@router.get("/{user_key}/{slug}", include_in_schema=False)
async def forward(
    user_key: str,
    slug: str,
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Bookmark.url)
        .join(User, User.id == Bookmark.user_id)
        .where(
            User.user_key == user_key,
            Bookmark.slug == slug,
            Bookmark.forwarding_enabled.is_(True),
        )
    )
    url = result.scalar_one_or_none()
    if url is None:
        raise NotFound("Not found")

    # Stored URLs are re-checked so a bad row can't become an open redirect
    ok, msg = validate_url(url)
    if not ok:
        log.warning("redirect.invalid_target", user_key=user_key, slug=slug)
        raise ValidationFailed(msg)

    log.info("redirect.forwarded", user_key=user_key, slug=slug)
    return RedirectResponse(url=url, status_code=302)
