import logging
import uuid

from fastapi import Depends, Request

from src.base.auth.authentication import get_current_identity
from src.base.core.exceptions import ForbiddenError
from src.base.models.identity import Identity
from src.base.models.role import Role

logger = logging.getLogger(__name__)


def ensure_role(identity: Identity | None, expected: Role) -> Identity:
    """Allow only callers holding `expected`."""
    if identity is None:
        raise ForbiddenError("Not authenticated")
    if identity.role != expected:
        logger.warning("Role check failed: has=%s expected=%s", identity.role.value, expected.value)
        raise ForbiddenError()
    return identity


def ensure_self_or_role(
    identity: Identity | None, expected: Role, target_id: uuid.UUID | None
) -> Identity:
    """Allow callers holding `expected`, or acting on their own record."""
    if identity is None:
        raise ForbiddenError("Not authenticated")
    if identity.role == expected:
        return identity
    if target_id is not None and identity.id == target_id:
        return identity
    logger.warning("Ownership check failed for target=%s", target_id)
    raise ForbiddenError()


def _parse_target_id(raw: str | None) -> uuid.UUID | None:
    if raw is None:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


def require_role(expected: Role):
    """
    Dependency factory: authenticated callers holding `expected` only.
    """

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        return ensure_role(identity, expected)

    return dependency


def require_self_or_role(expected: Role, id_param: str = "user_id"):
    """Dependency factory: callers holding `expected`, or owners of the target record.

    Args:
        expected: Role that bypasses the ownership check.
        id_param: Name of the path parameter holding the target record's ID.
            Routes without it only admit callers holding `expected`.
    """

    async def dependency(
        request: Request, identity: Identity = Depends(get_current_identity)
    ) -> Identity:
        target_id = _parse_target_id(request.path_params.get(id_param))
        return ensure_self_or_role(identity, expected, target_id)

    return dependency
