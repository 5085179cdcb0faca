"""
Flock Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before anything from `flock` is
       imported, so the settings singleton, the module engine and the image
       host singleton all pick up test values.

Fixture Hierarchy (all function-scoped):
    engine            → fresh in-memory SQLite database, tables created from ORM metadata
    ├── session_factory
    │   ├── db_session    → one AsyncSession for service-level tests
    │   │   └── make_user → inserts users directly
    │   └── client_factory → httpx AsyncClients talking to the app, with
    │       └── client        get_db_session overridden to the test database
    └── image_host    → LocalImageHost in tmp_path with libmagic patched out
"""

import base64
import itertools
import os
import tempfile
from contextlib import AsyncExitStack
from unittest.mock import patch

# Override settings for testing BEFORE any flock imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="flock_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["ENVIRONMENT"] = "development"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flock.database import Base, enable_sqlite_foreign_keys, get_db_session
from flock.models import User
from flock.security import hash_password
from flock.services.image_host import LocalImageHost

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite shared by every session of one test.

    StaticPool keeps a single connection, so the database survives across
    sessions (an in-memory database lives as long as its connection).
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Factory inserting a user straight into the database.

    Usage:
        alice = await make_user("alice")
        bob = await make_user("bob", password="hunter22")
    """
    counter = itertools.count()

    async def _make(username=None, password="secret123", **fields) -> User:
        username = username or f"user{next(counter)}"
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            full_name=fields.pop("full_name", username.title()),
            password_hash=await hash_password(password),
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client_factory(session_factory):
    """
    Builds AsyncClients for the app. Each client keeps its own cookie jar,
    so two clients are two logged-in users.

    Usage:
        alice = await client_factory()
        bob = await client_factory()
    """
    from flock.main import app

    async def _override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_db_session

    async with AsyncExitStack() as stack:
        async def _make() -> AsyncClient:
            transport = ASGITransport(app=app)
            return await stack.enter_async_context(
                AsyncClient(transport=transport, base_url="http://test")
            )

        yield _make

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(client_factory):
    return await client_factory()


async def signup(client: AsyncClient, username: str, password: str = "secret123", **fields):
    """POST /api/auth/signup and return the created profile; the client keeps the cookie."""
    payload = {
        "full_name": fields.get("full_name", username.title()),
        "username": username,
        "email": fields.get("email", f"{username}@example.com"),
        "password": password,
    }
    response = await client.post("/api/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ══════════════════════════════════════════════════════════════════════════
# Image Hosting
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def image_host(tmp_path):
    """
    A LocalImageHost writing under tmp_path, installed in every module that
    holds the singleton. libmagic is patched to report PNG.
    """
    host = LocalImageHost(storage_root=str(tmp_path / "storage"))
    with patch.object(LocalImageHost, "detect_mime_type", return_value="image/png"), \
         patch("flock.services.post_service.image_host", host), \
         patch("flock.services.user_service.image_host", host), \
         patch("flock.routes.files.image_host", host):
        yield host
