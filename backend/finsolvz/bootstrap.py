"""
Finsolvz Backend — Initial Super Admin Bootstrap
=================================================

What:  Creates the first SUPER_ADMIN account so the registration endpoint
       (SUPER_ADMIN only) can be used at all.
How:   Connects with the regular settings, ensures indexes, and inserts the
       account unless a user with that email already exists.

Usage:
    finsolvz-create-admin
    finsolvz-create-admin --email ops@example.com --password 's3cret!' --name "Ops Admin"
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from bson import ObjectId

from finsolvz import database
from finsolvz.config import settings
from finsolvz.exceptions import FinsolvzError
from finsolvz.models.user import Role, User
from finsolvz.repositories.user_repository import UserRepository
from finsolvz.security import hash_password

logger = logging.getLogger("finsolvz.bootstrap")

DEFAULT_NAME = "Super Admin"
DEFAULT_EMAIL = "admin@finsolvz.com"
DEFAULT_PASSWORD = "admin123"


async def create_super_admin(users: UserRepository, name: str, email: str, password: str) -> Optional[User]:
    """Insert the admin unless the email is taken; returns the new user or None."""
    if await users.find_by_email(email) is not None:
        logger.info("User %s already exists, nothing to do", email)
        return None
    user = User(
        id=ObjectId(),
        name=name,
        email=email,
        password=hash_password(password),
        role=Role.SUPER_ADMIN,
    )
    await users.create(user)
    logger.info("Created SUPER_ADMIN %s (%s)", email, user.id)
    return user


async def _run(args: argparse.Namespace) -> None:
    client = await database.connect()
    try:
        db = client[settings.mongo_db_name]
        await database.ensure_indexes(db)
        await create_super_admin(UserRepository(db), args.name, args.email, args.password)
    finally:
        await database.close(client)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the initial Finsolvz SUPER_ADMIN account")
    parser.add_argument("--name", default=DEFAULT_NAME)
    parser.add_argument("--email", default=DEFAULT_EMAIL)
    parser.add_argument("--password", default=DEFAULT_PASSWORD)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    if args.password == DEFAULT_PASSWORD:
        logger.warning("Using the default admin password; change it after the first login")

    try:
        asyncio.run(_run(args))
    except FinsolvzError as e:
        logger.error("Bootstrap failed [%s]: %s", e.code, e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
