"""
Script to create (or promote) an administrator account for local use.

    python -m app.scripts.create_local_admin --email admin@example.com --password 'S3cure!pass'
"""

import asyncio
import argparse
import sys

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import hash_password
from app.core.config import get_settings
from app.core.database import get_session_context, init_db
from app.core.errors import AppError
from app.core.logs import configure_logging
from app.models.user import User
from app.services import users as user_service

settings = get_settings()
log = structlog.get_logger()


async def ensure_admin(email: str, password: str, name: str, session: AsyncSession) -> tuple[User, bool]:
    """Create the admin, or promote and reset the password of an existing account.

    Returns (user, created).
    """
    user = await user_service.get_by_email(email, session)
    if user is None:
        user = await user_service.create_user(email, name, password, session, is_admin=True)
        return user, True

    user_service.check_password(password)
    user.is_admin = True
    user.password_hash = hash_password(password)
    session.add(user)
    await session.flush()
    log.info("user.promoted", user_id=str(user.id))
    return user, False


async def create_admin(email: str, password: str, name: str) -> None:
    if settings.create_tables_on_startup:
        await init_db()

    async with get_session_context() as session:
        user, created = await ensure_admin(email, password, name, session)
        if created:
            print(f"Created admin user: {user.email} (user_key={user.user_key})")
        else:
            print(f"User {user.email} already exists; promoted to admin and reset password.")

    print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", default=None, help="Display name (defaults to the email local part)")

    args = parser.parse_args()
    configure_logging(settings.log_level, "console")

    try:
        asyncio.run(create_admin(args.email, args.password, args.name or args.email.split("@")[0]))
    except AppError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        sys.exit(1)
