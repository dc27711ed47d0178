import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from src.base.auth.auth_core import TokenService
from src.base.auth.passwords import PasswordHasher
from src.base.config.database import close_db, init_db
from src.base.config.settings import Settings
from src.domain.services.auth_service import AuthService
from src.domain.services.user_service import UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Centralized initialization and teardown for app services."""
    logger.info("Starting application lifespan...")
    settings: Settings = app.state.settings

    # Raises when JWT_SECRET is missing, aborting startup
    token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(minutes=settings.jwt_expires_minutes),
    )
    password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    engine, session_factory = await init_db(settings.database_url)
    app.state.db_session_factory = session_factory

    logger.info("Initializing services...")
    user_service = UserService(password_hasher)
    app.state.token_service = token_service
    app.state.user_service = user_service
    app.state.auth_service = AuthService(user_service, password_hasher, token_service)
    logger.info("Services initialized.")

    yield  # --- Application runs here ---

    await close_db(engine)
