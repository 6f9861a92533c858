"""
Pytest fixtures for PlayerHub tests.
"""

import os
import tempfile
from datetime import timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Create a temp file for SQLite test database
_test_db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_test_db_path = _test_db_file.name
_test_db_file.close()

# Set test environment - using SQLite
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SESSION_COOKIE_NAME"] = "playerhub.sid"

from playerhub.database import Base, get_db
from playerhub.main import app
from playerhub.sessions import SessionStore, get_session_store
from playerhub.storage import Storage


# Create test database engine (SQLite)
test_engine = create_async_engine(
    os.environ["DATABASE_URL"],
    echo=False,
    poolclass=NullPool,
)

test_session_factory = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    # Create all tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_factory() as session:
        yield session

    # Clean up tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def storage(db_session: AsyncSession) -> Storage:
    return Storage(db_session)


@pytest_asyncio.fixture
async def session_store() -> SessionStore:
    return SessionStore(ttl=timedelta(days=7))


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    session_store: SessionStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def alice(storage: Storage):
    """A registered user with password 'secret1'."""
    return await storage.create_user(
        {"username": "alice", "password": "secret1", "display_name": "Alice"}
    )


@pytest_asyncio.fixture
async def auth_client(client: AsyncClient, alice) -> AsyncClient:
    """Create a test client signed in as alice."""
    response = await client.post(
        "/api/auth/login",
        json={"username": "alice", "password": "secret1"},
    )
    assert response.status_code == 200

    return client
