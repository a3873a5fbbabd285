"""Shared test fixtures for storage package.

Provides database connection pool management for integration tests.

IMPORTANT: Tests use the `nkv_test` database to protect production data.
The TRUNCATE operations will REFUSE to run against `nkv`. When PostgreSQL
is unreachable the live-database tests are skipped.
"""

import os

import pytest
import pytest_asyncio
from nkv_common import PersistenceError
from nkv_storage import (
    DatabaseConfig,
    apply_schema,
    close_connection_pool,
    get_connection_pool,
)

TEST_DATABASE_NAME = os.environ.get("TEST_DATABASE_NAME", "nkv_test")
PRODUCTION_DATABASE_NAME = "nkv"


class ProductionDatabaseError(Exception):
    """Raised when test attempts to modify production database."""

    pass


def _verify_not_production(database_name: str) -> None:
    """Safety check: refuse to run destructive operations on production DB."""
    if database_name == PRODUCTION_DATABASE_NAME:
        raise ProductionDatabaseError(
            f"REFUSING to run test fixture against production database '{PRODUCTION_DATABASE_NAME}'!\n"
            f"Set TEST_DATABASE_NAME to a test database."
        )


@pytest_asyncio.fixture(scope="function")
async def db_pool():
    """Fresh pool on a clean test database for each test function."""
    _verify_not_production(TEST_DATABASE_NAME)

    await close_connection_pool()

    config = DatabaseConfig(
        host=os.environ.get("TEST_DATABASE_HOST", "localhost"),
        port=int(os.environ.get("TEST_DATABASE_PORT", "5432")),
        database=TEST_DATABASE_NAME,
        user="postgres",
        password="postgres",
        min_pool_size=1,
        max_pool_size=4,
    )
    try:
        pool = await get_connection_pool(config)
    except PersistenceError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    async with pool.acquire() as conn:
        current_db = await conn.fetchval("SELECT current_database()")
        _verify_not_production(current_db)

    await apply_schema()

    async with pool.acquire() as conn:
        await conn.execute(
            "TRUNCATE TABLE knowledge_chunks, knowledge_sources, pulse_staging, "
            "user_interest_dna, research_backlog, drafts CASCADE"
        )

    yield pool

    await close_connection_pool()
