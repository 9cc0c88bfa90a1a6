# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .team import Team, TeamMember  # noqa: F401
from .bookmark import Bookmark  # noqa: F401
from .folder import Folder, BookmarkFolder  # noqa: F401
from .tag import Tag, BookmarkTag  # noqa: F401
from .shares import BookmarkUserShare, BookmarkTeamShare, FolderUserShare, FolderTeamShare  # noqa: F401
from .revoked_token import RevokedToken  # noqa: F401
