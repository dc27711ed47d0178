import logging
import uuid

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.base.auth.authentication import get_current_identity
from src.base.auth.rbac import require_role, require_self_or_role
from src.base.core.dependencies import get_db_session, get_user_service
from src.base.models.identity import Identity
from src.base.models.role import Role
from src.domain.auth.authorization import ensure_can_change_role
from src.domain.models.user_schemas import (
    UserCreate,
    UserListQuery,
    UserListResponse,
    UserResponse,
    UserUpdate,
    build_page_meta,
)
from src.domain.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def parse_list_query(request: Request) -> UserListQuery:
    """Validate the raw query string into a UserListQuery."""
    try:
        return UserListQuery.model_validate(dict(request.query_params))
    except ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("query", *error["loc"])} for error in e.errors()]
        ) from None


@router.get("", response_model=UserListResponse)
async def list_users(
    identity: Identity = Depends(require_self_or_role(Role.ADMIN)),
    query: UserListQuery = Depends(parse_list_query),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """List users with filtering, ordering and pagination (admin only)."""
    users, total = await service.list_users(session, query)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        meta=build_page_meta(total, query.page, query.per_page),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """Get a single user. Any authenticated caller."""
    user = await service.get_user(session, user_id)
    return UserResponse.model_validate(user)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def create_user(
    body: UserCreate,
    identity: Identity = Depends(require_role(Role.ADMIN)),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """Create a user (admin only)."""
    user = await service.create_user(session, body)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    identity: Identity = Depends(require_self_or_role(Role.ADMIN)),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """Partially update a user (the user themself or an admin)."""
    ensure_can_change_role(identity, body)
    user = await service.update_user(session, user_id, body)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    identity: Identity = Depends(require_self_or_role(Role.ADMIN)),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """Delete a user (the user themself or an admin)."""
    await service.delete_user(session, user_id)
