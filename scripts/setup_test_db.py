#!/usr/bin/env python3
"""
Create (or drop) a PostgreSQL database for running the test suite against.

The suite defaults to in-memory SQLite; export TEST_DATABASE_URL with the
URL printed here to run it on PostgreSQL instead.
"""

import asyncio
import os
import sys

import asyncpg
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from app import models  # noqa: F401
from app.core.config import settings
from app.core.database import Base

TEST_DB_NAME = os.getenv("TEST_DB_NAME", "test_skillswap")

# Server and credentials come from the application DATABASE_URL
_base_url = make_url(settings.DATABASE_URL)
TEST_DB_URL = _base_url.set(database=TEST_DB_NAME)


async def _connect_master():
    return await asyncpg.connect(
        host=_base_url.host or "localhost",
        port=_base_url.port or 5432,
        user=_base_url.username,
        password=_base_url.password,
        database=_base_url.database,
    )


async def setup_test_database() -> bool:
    """Recreate the test database and its tables."""
    print(f"Setting up test database: {TEST_DB_NAME}")

    try:
        master_conn = await _connect_master()
        await master_conn.execute(f'DROP DATABASE IF EXISTS "{TEST_DB_NAME}"')
        await master_conn.execute(f'CREATE DATABASE "{TEST_DB_NAME}"')
        await master_conn.close()
        print(f"Created new database: {TEST_DB_NAME}")

        engine = create_async_engine(TEST_DB_URL, echo=False)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

        print("Created tables: " + ", ".join(sorted(Base.metadata.tables)))
        print(f"TEST_DATABASE_URL={TEST_DB_URL.render_as_string(hide_password=False)}")
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error setting up test database: {e}")
        print(f"\nMake sure PostgreSQL is reachable at {_base_url.host}:{_base_url.port}")
        return False

    return True


async def cleanup_test_database() -> bool:
    """Drop the test database."""
    print(f"Cleaning up test database: {TEST_DB_NAME}")

    try:
        master_conn = await _connect_master()
        await master_conn.execute(f'DROP DATABASE IF EXISTS "{TEST_DB_NAME}"')
        await master_conn.close()
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error cleaning up test database: {e}")
        return False

    print(f"Dropped test database: {TEST_DB_NAME}")
    return True


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "cleanup":
        ok = asyncio.run(cleanup_test_database())
    else:
        ok = asyncio.run(setup_test_database())
    sys.exit(0 if ok else 1)
