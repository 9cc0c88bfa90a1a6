"""Initial schema: users, teams, bookmarks, folders, tags and team shares.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-12 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text("CURRENT_TIMESTAMP")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
    ]


def _fk(column: str, target: str, **kwargs) -> sa.Column:
    return sa.Column(
        column,
        sa.Uuid(),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=False,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("user_key", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("oidc_provider", sa.String(), nullable=True),
        sa.Column("oidc_subject", sa.String(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("language", sa.String(), nullable=False, server_default="en"),
        sa.Column("theme", sa.String(), nullable=False, server_default="auto"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_user_key", "users", ["user_key"], unique=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("description", sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "team_members",
        _fk("team_id", "teams.id", primary_key=True),
        _fk("user_id", "users.id", primary_key=True),
    )
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    op.create_table(
        "bookmarks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _fk("user_id", "users.id"),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=True),
        sa.Column("forwarding_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "slug", name="uq_bookmarks_user_slug"),
    )
    op.create_index("ix_bookmarks_user_id", "bookmarks", ["user_id"])

    op.create_table(
        "folders",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _fk("user_id", "users.id"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("icon", sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_folders_user_name"),
    )
    op.create_index("ix_folders_user_id", "folders", ["user_id"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _fk("user_id", "users.id"),
        sa.Column("name", sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )
    op.create_index("ix_tags_user_id", "tags", ["user_id"])

    op.create_table(
        "bookmark_folders",
        _fk("bookmark_id", "bookmarks.id", primary_key=True),
        _fk("folder_id", "folders.id", primary_key=True),
    )
    op.create_index("ix_bookmark_folders_folder_id", "bookmark_folders", ["folder_id"])

    op.create_table(
        "bookmark_tags",
        _fk("bookmark_id", "bookmarks.id", primary_key=True),
        _fk("tag_id", "tags.id", primary_key=True),
    )
    op.create_index("ix_bookmark_tags_tag_id", "bookmark_tags", ["tag_id"])

    op.create_table(
        "bookmark_team_shares",
        _fk("bookmark_id", "bookmarks.id", primary_key=True),
        _fk("team_id", "teams.id", primary_key=True),
    )
    op.create_index("ix_bookmark_team_shares_team_id", "bookmark_team_shares", ["team_id"])

    op.create_table(
        "folder_team_shares",
        _fk("folder_id", "folders.id", primary_key=True),
        _fk("team_id", "teams.id", primary_key=True),
    )
    op.create_index("ix_folder_team_shares_team_id", "folder_team_shares", ["team_id"])

    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(), primary_key=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_revoked_tokens_expires_at", "revoked_tokens", ["expires_at"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    op.drop_table("revoked_tokens")
    op.drop_table("folder_team_shares")
    op.drop_table("bookmark_team_shares")
    op.drop_table("bookmark_tags")
    op.drop_table("bookmark_folders")
    op.drop_table("tags")
    op.drop_table("folders")
    op.drop_table("bookmarks")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("users")
