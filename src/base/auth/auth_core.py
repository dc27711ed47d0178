import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from src.base.models.identity import Identity

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN = timedelta(hours=1)


class InvalidTokenError(Exception):
    """Raised when a token is malformed, tampered with, expired or missing claims."""


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(
        self,
        secret: str | None,
        algorithm: str = DEFAULT_ALGORITHM,
        expires_in: timedelta = DEFAULT_EXPIRES_IN,
    ):
        if not secret:
            raise RuntimeError("JWT_SECRET must be set")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue(self, identity: Identity) -> str:
        """Sign a token carrying the identity claims, valid for `expires_in`."""
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "id": str(identity.id),
            "email": identity.email,
            "role": identity.role.value,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        """
        Validates a token and returns its claims (raises InvalidTokenError if invalid).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require_exp": True},
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired")
            raise InvalidTokenError("Token has expired") from e
        except JWTError as e:
            logger.warning(f"Token validation failed: {e}")
            raise InvalidTokenError(str(e)) from e

        try:
            return Identity.model_validate(
                {key: payload.get(key) for key in ("id", "email", "role")}
            )
        except ValidationError as e:
            logger.warning("Token carries invalid claims")
            raise InvalidTokenError("Invalid token claims") from e
