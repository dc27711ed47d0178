import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from src.base.auth.auth_core import TokenService
from src.base.auth.passwords import PasswordHasher
from src.base.core.exceptions import UnauthorizedError
from src.base.models.identity import Identity
from src.domain.models.auth_schemas import LoginRequest
from src.domain.models.entities.user import User
from src.domain.services.user_service import UserService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        password_hasher: PasswordHasher,
        token_service: TokenService,
    ):
        self.user_service = user_service
        self.password_hasher = password_hasher
        self.token_service = token_service
        # Verified against for unknown emails, so both failure paths pay for one bcrypt check
        self._dummy_hash = password_hasher.hash_sync(secrets.token_urlsafe(16))

    async def login(
        self, session: AsyncSession, credentials: LoginRequest
    ) -> tuple[User, str]:
        """Check email/password and issue a token.

        Unknown email and wrong password raise the same error.
        """
        user = await self.user_service.get_user_by_email(session, credentials.email)
        password_hash = user.password_hash if user is not None else self._dummy_hash
        valid = await self.password_hasher.verify(credentials.password, password_hash)
        if user is None or not valid:
            logger.warning("Failed login attempt")
            raise UnauthorizedError(
                INVALID_CREDENTIALS, reason=UnauthorizedError.INVALID_CREDENTIALS
            )

        token = self.token_service.issue(
            Identity(id=user.id, email=user.email, role=user.role)
        )
        logger.info("User id=%s logged in", user.id)
        return user, token
