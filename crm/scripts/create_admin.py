"""Seed the first admin account.

Usage:
    create-admin --email admin@example.com --password 'change-me'

Does nothing when a user with that email already exists.
"""

import argparse
import asyncio
import logging

from sqlmodel import select

from crm.core.database import async_session_factory, init_db
from crm.core.logging import configure_logging
from crm.core.security import hash_password
from crm.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def create_admin(email: str, password: str, name: str = "Initial Admin") -> bool:
    """Return True if a new admin was created."""
    await init_db()
    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == email.lower()))
        if result.scalar_one_or_none() is not None:
            logger.info("User %s already exists", email)
            return False

        session.add(
            User(
                email=email.lower(),
                password_hash=hash_password(password),
                name=name,
                role=UserRole.ADMIN,
            )
        )
        await session.commit()
    logger.info("Created admin %s", email)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the first CRM admin user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Initial Admin")
    args = parser.parse_args()

    if len(args.password) < 8:
        parser.error("password must be at least 8 characters")

    configure_logging()
    asyncio.run(create_admin(args.email, args.password, args.name))


if __name__ == "__main__":
    main()
