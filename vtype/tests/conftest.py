"""
Pytest configuration for the VType test suite.

Tests run against the in-memory store and an in-memory SQLite database, so
neither Redis nor Postgres is required.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")

from typing import Any, AsyncGenerator, Awaitable, Callable, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.auth import get_password_hash
from vtype.core.config import Settings
from vtype.core.redis_mock import MockRedis
from vtype.core.tokens import TokenStore
from vtype.db.session import create_all, drop_all, sessionmanager
from vtype.models import User, UserRole
from vtype.tests.config import (
    TEST_ACCESS_SECRET,
    TEST_DATABASE_URL,
    TEST_PASSWORD,
    TEST_REFRESH_SECRET,
)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="testing",
        JWT_ACCESS_SECRET=TEST_ACCESS_SECRET,
        JWT_REFRESH_SECRET=TEST_REFRESH_SECRET,
        CLEANUP_SCHEDULER_ENABLED=False,
    )


@pytest.fixture
def mock_redis() -> MockRedis:
    return MockRedis()


@pytest.fixture
def token_store(mock_redis: MockRedis, test_settings: Settings) -> TokenStore:
    return TokenStore(mock_redis, test_settings)


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow; hash the shared test password once."""
    return get_password_hash(TEST_PASSWORD)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh in-memory database per test.

    The global session manager is pointed at it so request handlers and the
    websocket protocol see the same data.
    """
    sessionmanager.init(TEST_DATABASE_URL, force=True)
    import vtype.models  # noqa: F401
    await create_all()
    async with sessionmanager.session() as session:
        yield session
    await drop_all()
    await sessionmanager.close()


@pytest_asyncio.fixture
async def make_user(
    db_session: AsyncSession,
    password_hash: str
) -> Callable[..., Awaitable[User]]:
    async def _make_user(
        username: str,
        email: str = None,
        is_active: bool = True,
        roles: list = None
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=password_hash,
            is_active=is_active,
            roles=roles or [UserRole.USER.value],
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest_asyncio.fixture
async def alice(make_user) -> User:
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user) -> User:
    return await make_user("bob")


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin", roles=[UserRole.USER.value, UserRole.ADMIN.value])


@pytest.fixture
def app(mock_redis: MockRedis, test_settings: Settings):
    """Application with shared services wired, without running the lifespan."""
    from vtype.main import create_app, init_app_state

    application = create_app()
    init_app_state(application, mock_redis, test_settings)
    application.state.redis_available = True
    return application


@pytest_asyncio.fixture
async def client(app, db_session) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(app) -> Callable[[User], Awaitable[Dict[str, str]]]:
    """Issue a stored token pair for a user and return its bearer header."""
    async def _auth_headers(user: User) -> Dict[str, str]:
        pair = await app.state.token_store.issue_and_store(user.id)
        return {"Authorization": f"Bearer {pair.access_token}"}
    return _auth_headers


# Custom pytest markers
def pytest_configure(config: Any):
    """
    Configure pytest with custom markers.
    """
    config.addinivalue_line("markers", "api: marks tests as API tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "auth: marks tests involving authentication")
    config.addinivalue_line("markers", "redis: marks tests that exercise the key-value store")
    config.addinivalue_line("markers", "database: marks tests that require a database")
    config.addinivalue_line("markers", "realtime: marks tests of the websocket protocol")
