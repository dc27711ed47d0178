import logging
import uuid

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.base.auth.passwords import PasswordHasher
from src.base.core.exceptions import ConflictError, NotFoundError
from src.domain.models.entities.user import User
from src.domain.models.user_schemas import UserCreate, UserListQuery, UserUpdate

logger = logging.getLogger(__name__)

ORDER_COLUMNS = {
    "createdAt": User.created_at,
    "name": User.name,
    "email": User.email,
    "updatedAt": User.updated_at,
}


class UserService:
    def __init__(self, password_hasher: PasswordHasher):
        self.password_hasher = password_hasher

    async def list_users(
        self,
        session: AsyncSession,
        query: UserListQuery,
    ) -> tuple[list[User], int]:
        """Return one page of users matching the filters, plus the total match count."""
        conditions = []
        if query.role:
            conditions.append(User.role == query.role)
        if query.search:
            conditions.append(
                or_(
                    User.name.icontains(query.search, autoescape=True),
                    User.email.icontains(query.search, autoescape=True),
                )
            )

        total = await session.scalar(
            select(func.count()).select_from(User).where(*conditions)
        )

        column = ORDER_COLUMNS[query.order_by]
        ordering = column.asc() if query.order_direction == "asc" else column.desc()
        result = await session.execute(
            select(User)
            .where(*conditions)
            .order_by(ordering, User.id)
            .offset(query.offset)
            .limit(query.per_page)
        )
        return list(result.scalars().all()), total or 0

    async def get_user(self, session: AsyncSession, user_id: uuid.UUID) -> User:
        """Return a single user by ID. Raises NotFoundError if absent."""
        result = await session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError()
        return user

    async def get_user_by_email(self, session: AsyncSession, email: str) -> User | None:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(self, session: AsyncSession, data: UserCreate) -> User:
        """Create a user. Raises ConflictError if the email is taken."""
        password_hash = await self.password_hasher.hash(data.password)
        user = User(
            name=data.name,
            email=data.email,
            password_hash=password_hash,
            role=data.role.value,
            avatar_url=data.avatar_url,
        )
        session.add(user)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.info("Rejected duplicate email on create")
            raise ConflictError() from e

        await self._refresh(session, user)
        logger.info("Created user id=%s role=%s", user.id, user.role)
        return user

    async def update_user(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
    ) -> User:
        """Apply a partial update.

        Raises NotFoundError if the user is absent, including when it is
        deleted between the read and the write. Raises ConflictError if
        the new email is taken.
        """
        user = await self.get_user(session, user_id)

        changes = data.changes()
        if "password" in changes:
            changes["password_hash"] = await self.password_hasher.hash(
                changes.pop("password")
            )

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.info("Rejected duplicate email on update of id=%s", user_id)
            raise ConflictError() from e
        except StaleDataError as e:
            await session.rollback()
            logger.info("User id=%s vanished during update", user_id)
            raise NotFoundError() from e

        await self._refresh(session, user)
        logger.info("Updated user id=%s fields=%s", user.id, sorted(changes))
        return user

    async def _refresh(self, session: AsyncSession, user: User) -> None:
        # The row can be deleted by another request right after our commit
        user_id = user.id
        try:
            await session.refresh(user)
        except InvalidRequestError as e:
            logger.info("User id=%s vanished after commit", user_id)
            raise NotFoundError() from e

    async def delete_user(self, session: AsyncSession, user_id: uuid.UUID) -> None:
        """Hard-delete a user. Raises NotFoundError if no row matched."""
        result = await session.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        if result.rowcount == 0:
            raise NotFoundError()
        logger.info("Deleted user id=%s", user_id)
