import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import src.domain.models.entities  # noqa: F401
from src.app import create_app
from src.base.auth.auth_core import TokenService
from src.base.auth.passwords import PasswordHasher
from src.base.config.database import Base
from src.base.config.settings import Settings
from src.base.models.identity import Identity
from src.base.models.role import Role
from src.domain.models.user_schemas import UserCreate
from src.domain.services.auth_service import AuthService
from src.domain.services.user_service import UserService

TEST_SECRET = "test-secret"
PASSWORD = "12345678"


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://", connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(db_session_factory):
    async with db_session_factory() as session:
        yield session


@pytest.fixture
def password_hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def user_service(password_hasher):
    return UserService(password_hasher)


@pytest.fixture
def auth_service(user_service, password_hasher, token_service):
    return AuthService(user_service, password_hasher, token_service)


@pytest.fixture
def app(db_session_factory, token_service, user_service, auth_service):
    # ASGITransport does not run the lifespan, so state is wired here
    test_app = create_app(
        Settings(_env_file=None, jwt_secret=TEST_SECRET, bcrypt_rounds=4)
    )
    test_app.state.db_session_factory = db_session_factory
    test_app.state.token_service = token_service
    test_app.state.user_service = user_service
    test_app.state.auth_service = auth_service
    return test_app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c


async def _create(user_service, db_session, name, email, role):
    return await user_service.create_user(
        db_session,
        UserCreate(name=name, email=email, password=PASSWORD, role=role),
    )


@pytest.fixture
async def admin_user(user_service, db_session):
    return await _create(user_service, db_session, "Admin", "admin@example.com", Role.ADMIN)


@pytest.fixture
async def regular_user(user_service, db_session):
    return await _create(user_service, db_session, "Regular", "regular@example.com", Role.USER)


@pytest.fixture
async def other_user(user_service, db_session):
    return await _create(user_service, db_session, "Other", "other@example.com", Role.USER)


def _token_for(token_service, user) -> str:
    return token_service.issue(Identity(id=user.id, email=user.email, role=user.role))


@pytest.fixture
def admin_headers(token_service, admin_user):
    return auth_header(_token_for(token_service, admin_user))


@pytest.fixture
def user_headers(token_service, regular_user):
    return auth_header(_token_for(token_service, regular_user))
