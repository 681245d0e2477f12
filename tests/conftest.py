import os
import sys

# The app engine is built at import time; point it at SQLite before importing
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the app directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app import models  # noqa: E402,F401
from app.core.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.main import app  # noqa: E402

# Use environment variable to point the suite at another database
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection keeps the in-memory schema alive
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {"pool_pre_ping": True, "pool_recycle": 300}


@pytest.fixture
async def db():
    """Create a fresh database session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL, echo=False, **_engine_kwargs(TEST_DATABASE_URL)
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)  # Clean slate
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture(autouse=True)
def override_get_db(db: AsyncSession):
    """Override the get_db dependency to use test database."""

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.clear()


# Test Authentication Utilities
def get_auth_headers(user_id: str) -> dict[str, str]:
    """
    Generate authentication headers for tests.

    Since Descope is not configured in tests, the Bearer token
    is taken as the user id by the fallback auth.
    """
    return {"Authorization": f"Bearer {user_id}"}


# Re-export the profile fixtures so every test module can use them
from tests.fixtures.profile_fixtures import (  # noqa: E402,F401
    go_mentor,
    pending_match,
    request_notification,
    rust_mentor,
)
