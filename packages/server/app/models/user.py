"""User model."""

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    # Namespaces public forwarding URLs: /{user_key}/{slug}
    user_key: str = Field(unique=True, index=True, nullable=False)
    password_hash: Optional[str] = Field(default=None)  # bcrypt; null for OIDC-only accounts
    oidc_provider: Optional[str] = None
    oidc_subject: Optional[str] = None
    is_admin: bool = Field(default=False, nullable=False)
    language: str = Field(default="en", nullable=False)
    theme: str = Field(default="auto", nullable=False)  # light | dark | auto
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.text("CURRENT_TIMESTAMP"),
        },
        sa_type=sa.DateTime(timezone=True),
    )
