"""Password hashing (bcrypt)"""

import logging

import bcrypt
from starlette.concurrency import run_in_threadpool

from src.base.core.exceptions import DomainValidationError

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted bcrypt hashing with a fixed cost factor.

    Hashing is deliberately slow, so both operations run in a worker
    thread instead of on the event loop.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash_sync(self, password: str) -> str:
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > MAX_PASSWORD_BYTES:
            raise DomainValidationError(
                f"Password must not exceed {MAX_PASSWORD_BYTES} bytes"
            )
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_sync(self, password: str, password_hash: str | bytes) -> bool:
        """Check a candidate against a stored hash. Malformed hashes are a mismatch."""
        if isinstance(password_hash, str):
            password_hash = password_hash.encode("utf-8")
        password_bytes = password.encode("utf-8")
        if not password_hash or len(password_bytes) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(password_bytes, password_hash)
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str | bytes) -> bool:
        return await run_in_threadpool(self.verify_sync, password, password_hash)
