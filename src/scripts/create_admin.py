"""Create the first admin user.

Every user-directory route requires a bearer token, so the first admin
has to be created out of band:

    python -m src.scripts.create_admin --name Admin --email admin@example.com --password '...'

Missing arguments fall back to ADMIN_NAME, ADMIN_EMAIL and ADMIN_PASSWORD.
Running it again for an existing email changes nothing.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.base.auth.passwords import PasswordHasher
from src.base.config.database import close_db, init_db
from src.base.config.logging_config import LoggingConfig
from src.base.config.settings import get_settings
from src.base.models.role import Role
from src.domain.models.entities.user import User
from src.domain.models.user_schemas import UserCreate
from src.domain.services.user_service import UserService

logger = logging.getLogger(__name__)


async def setup_admin(
    session_factory: async_sessionmaker[AsyncSession],
    service: UserService,
    data: UserCreate,
) -> tuple[User, bool]:
    """Create the admin unless the email is taken. Returns (user, created)."""
    async with session_factory() as session:
        existing = await service.get_user_by_email(session, data.email)
        if existing is not None:
            logger.info("User %s already exists (id=%s), skipping", data.email, existing.id)
            return existing, False
        return await service.create_user(session, data), True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the first admin user.")
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Admin"))
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        data = UserCreate(
            name=args.name, email=args.email, password=args.password, role=Role.ADMIN
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            logger.error("Invalid %s: %s", field, error["msg"])
        return 1

    settings = get_settings()
    engine, session_factory = await init_db(settings.database_url)
    try:
        service = UserService(PasswordHasher(rounds=settings.bcrypt_rounds))
        user, created = await setup_admin(session_factory, service, data)
    finally:
        await close_db(engine)

    if created:
        logger.info("Admin user created: id=%s email=%s", user.id, user.email)
    return 0


if __name__ == "__main__":
    load_dotenv()
    LoggingConfig.setup_logging()
    sys.exit(asyncio.run(main()))
