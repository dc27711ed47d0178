import logging

from fastapi import Depends, Request

from src.base.auth.auth_core import InvalidTokenError, TokenService
from src.base.core.dependencies import get_token_service
from src.base.core.exceptions import UnauthorizedError
from src.base.middleware.request_context import USER_ID, set_request_context
from src.base.models.identity import Identity

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an `Authorization: Bearer <token>` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError(
            "Token not provided", reason=UnauthorizedError.TOKEN_MISSING
        )

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise UnauthorizedError(
            "Token not provided", reason=UnauthorizedError.TOKEN_MISSING
        )
    return token


def authenticate(authorization: str | None, token_service: TokenService) -> Identity:
    """Resolve the caller's identity from the Authorization header value.

    Bad signatures, malformed tokens and expired tokens all produce the
    same error so callers cannot probe which one applied.
    """
    token = extract_bearer_token(authorization)
    try:
        return token_service.verify(token)
    except InvalidTokenError:
        raise UnauthorizedError(
            "Invalid or expired token",
            reason=UnauthorizedError.TOKEN_INVALID_OR_EXPIRED,
        ) from None


async def get_current_identity(
    request: Request,
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """Dependency that authenticates the request and returns its Identity."""
    try:
        identity = authenticate(request.headers.get("authorization"), token_service)
    except UnauthorizedError as e:
        logger.warning(
            f"Authentication failed ({e.reason}) for: {request.method} {request.url.path}"
        )
        raise

    set_request_context(USER_ID, str(identity.id))
    logger.debug("Authentication successful")
    return identity
