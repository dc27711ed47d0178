from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.base.core.dependencies import get_auth_service, get_db_session
from src.domain.models.auth_schemas import LoginRequest, LoginResponse
from src.domain.models.user_schemas import UserResponse
from src.domain.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for a bearer token."""
    user, token = await service.login(session, body)
    return LoginResponse(user=UserResponse.model_validate(user), token=token)
