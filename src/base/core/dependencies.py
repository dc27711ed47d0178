from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.base.auth.auth_core import TokenService
from src.domain.services.auth_service import AuthService
from src.domain.services.user_service import UserService


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the request, closed when the response is sent."""
    async with request.app.state.db_session_factory() as session:
        yield session


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_service(request: Request) -> UserService:
    """Return the singleton UserService instance from app state."""
    return request.app.state.user_service


def get_auth_service(request: Request) -> AuthService:
    """Return the singleton AuthService instance from app state."""
    return request.app.state.auth_service
