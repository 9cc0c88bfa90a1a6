"""Bookmark pinning and usage tracking; direct user shares.

Revision ID: 0002_usage_user_shares
Revises: 0001_initial_schema
Create Date: 2026-02-03 10:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002_usage_user_shares"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("bookmarks") as batch:
        batch.add_column(sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()))
        batch.add_column(sa.Column("access_count", sa.Integer(), nullable=False, server_default="0"))
        batch.add_column(sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True))

    op.create_table(
        "bookmark_user_shares",
        sa.Column("bookmark_id", sa.Uuid(), sa.ForeignKey("bookmarks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_bookmark_user_shares_user_id", "bookmark_user_shares", ["user_id"])

    op.create_table(
        "folder_user_shares",
        sa.Column("folder_id", sa.Uuid(), sa.ForeignKey("folders.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_folder_user_shares_user_id", "folder_user_shares", ["user_id"])


def downgrade() -> None:
    op.drop_table("folder_user_shares")
    op.drop_table("bookmark_user_shares")

    with op.batch_alter_table("bookmarks") as batch:
        batch.drop_column("last_accessed_at")
        batch.drop_column("access_count")
        batch.drop_column("pinned")
