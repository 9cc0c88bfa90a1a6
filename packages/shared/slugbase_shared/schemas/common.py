"""Shared enums, limits and input validators."""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel


class SortBy(str, Enum):
    RECENTLY_ADDED = "recently_added"
    ALPHABETICAL = "alphabetical"
    MOST_USED = "most_used"
    RECENTLY_ACCESSED = "recently_accessed"


class ItemType(str, Enum):
    OWN = "own"
    SHARED = "shared"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


MAX_LENGTHS = {
    "title": 500,
    "url": 2048,
    "slug": 255,
    "tag_name": 100,
    "folder_name": 255,
    "team_name": 255,
    "team_description": 500,
    "icon": 50,
    "name": 255,
    "email": 255,
}

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SLUG_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_BLOCKED_SCHEMES = ("javascript:", "data:", "vbscript:")


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def sanitize_string(value: Optional[str]) -> str:
    """Strip control characters and surrounding whitespace."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return _CONTROL_CHARS.sub("", value).strip()


def validate_length(value: str, field: str) -> tuple[bool, str]:
    limit = MAX_LENGTHS[field]
    if len(value) > limit:
        label = field.replace("_", " ")
        return False, f"{label.capitalize()} must be at most {limit} characters"
    return True, ""


def validate_url(url: Optional[str]) -> tuple[bool, str]:
    """Accept only absolute http(s) URLs with a host.

    Returns (valid, error_message).
    """
    if not isinstance(url, str) or not url.strip():
        return False, "URL is required"
    url = url.strip()
    if len(url) > MAX_LENGTHS["url"]:
        return False, f"URL must be at most {MAX_LENGTHS['url']} characters"
    if url.lower().startswith(_BLOCKED_SCHEMES):
        return False, "URL scheme is not allowed"
    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Invalid URL format"
    if parsed.scheme not in ("http", "https"):
        return False, "URL must use http or https"
    if not parsed.netloc or not parsed.hostname:
        return False, "Invalid URL format"
    return True, ""


def validate_slug(slug: str) -> tuple[bool, str]:
    """Slugs are letters, digits, hyphens and underscores."""
    if not slug:
        return False, "Slug is required"
    if len(slug) > MAX_LENGTHS["slug"]:
        return False, f"Slug must be at most {MAX_LENGTHS['slug']} characters"
    if not _SLUG_RE.match(slug):
        return False, "Slug may only contain letters, numbers, hyphens and underscores"
    return True, ""


def validate_password(password: str) -> tuple[bool, str]:
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    if len(password) > PASSWORD_MAX_LENGTH:
        return False, f"Password must be at most {PASSWORD_MAX_LENGTH} characters"
    if not re.search(r"[a-z]", password):
        return False, "Password must contain a lowercase letter"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain an uppercase letter"
    if not re.search(r"[0-9]", password):
        return False, "Password must contain a number"
    if not re.search(r"[^a-zA-Z0-9]", password):
        return False, "Password must contain a special character"
    return True, ""


# ---------------------------------------------------------------------------
# References embedded in responses
# ---------------------------------------------------------------------------

class TeamRef(BaseModel):
    id: uuid.UUID
    name: str


class UserRef(BaseModel):
    id: uuid.UUID
    name: str
    email: str


class FolderRef(BaseModel):
    id: uuid.UUID
    name: str
    icon: Optional[str] = None


class TagRef(BaseModel):
    id: uuid.UUID
    name: str
