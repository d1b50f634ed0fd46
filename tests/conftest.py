from contextlib import contextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.base import Base
from services.members_service import models as _member_models  # noqa: F401
from services.members_service.repository import get_members_repository
from tests.fakes import InMemoryMembersRepository

settings = get_settings()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_member_user(user_id: str = "admin-1", email: str = "admin@example.com") -> AuthUser:
    return AuthUser(sub=user_id, email=email, role="authenticated")


@contextmanager
def override_auth(app, user: AuthUser):
    """Run a block with ``get_current_user`` resolving to ``user``."""
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        app.dependency_overrides.pop(get_current_user, None)


# ---------------------------------------------------------------------------
# In-memory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def repository() -> InMemoryMembersRepository:
    return InMemoryMembersRepository()


@pytest_asyncio.fixture
async def members_client(repository) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the members app, backed by the in-memory repository."""
    from services.members_service.app.main import app

    app.dependency_overrides[get_members_repository] = lambda: repository
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Database fixtures (skipped when Postgres is not reachable)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    db_url = settings.DATABASE_URL.replace("host.docker.internal", "localhost")
    engine = create_async_engine(db_url, future=True)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OperationalError, OSError):
        await engine.dispose()
        pytest.skip("Database not available for tests")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session that rolls back after the test.

    join_transaction_mode="create_savepoint" lets code under test commit while
    the outer transaction is still rolled back at the end.
    """
    connection = await test_engine.connect()
    transaction = await connection.begin()

    session_factory = async_sessionmaker(
        bind=connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()
        await transaction.rollback()
        await connection.close()
