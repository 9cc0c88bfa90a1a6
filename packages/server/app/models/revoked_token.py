"""Revoked session tokens (JWT ids invalidated by logout or refresh)."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class RevokedToken(SQLModel, table=True):
    __tablename__ = "revoked_tokens"

    jti: str = Field(primary_key=True)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True), index=True)
