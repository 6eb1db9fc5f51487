"""
Pytest configuration and shared fixtures for the saved search server tests

- Unit tests use in-memory fakes (tests/fake_db.py) behind a real ShardDirectory
- Integration tests get a fresh PostgreSQL test database per test and are
  skipped when the server is unreachable
"""

import os
import sys
from pathlib import Path

import asyncpg
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import DatabaseConfig
from container import RepositoryContainer
from database import DatabaseConnection, DatabaseMigration
from shards import ShardDirectory
from tests.fake_db import FakeDatabase, make_shard_directory
from tests.test_config import TEST_DB_CONFIG, SCHEMA_FILE, TEST_LIBRARY_ID, OTHER_LIBRARY_ID


def pytest_configure(config):
    """Pytest hook called before test collection."""
    os.environ['PYTEST_RUNNING'] = '1'


# ============================================================================
# Unit test fixtures
# ============================================================================

@pytest.fixture
def fake_db():
    """Shard 1, holding library 1"""
    return FakeDatabase()


@pytest.fixture
def fake_conn(fake_db):
    return fake_db.conn


@pytest.fixture
def fake_shards(fake_db):
    return make_shard_directory({TEST_LIBRARY_ID: 1}, {1: fake_db})


@pytest.fixture
def fake_repos(fake_shards):
    return RepositoryContainer(fake_shards)


# ============================================================================
# Integration fixtures
# ============================================================================

async def _system_connection():
    return await asyncpg.connect(
        host=TEST_DB_CONFIG['host'],
        port=TEST_DB_CONFIG['port'],
        user=TEST_DB_CONFIG['user'],
        password=TEST_DB_CONFIG['password'],
        database='postgres',
        ssl='prefer'
    )


async def _create_test_database():
    """Create a fresh test database, or skip if PostgreSQL is unreachable"""
    try:
        sys_conn = await _system_connection()
    except (OSError, asyncpg.PostgresError) as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    try:
        await sys_conn.execute(f'DROP DATABASE IF EXISTS {TEST_DB_CONFIG["database"]}')
        await sys_conn.execute(f'CREATE DATABASE {TEST_DB_CONFIG["database"]}')
    finally:
        await sys_conn.close()


async def _drop_test_database():
    sys_conn = await _system_connection()
    try:
        await sys_conn.execute(f"""
            SELECT pg_terminate_backend(pg_stat_activity.pid)
            FROM pg_stat_activity
            WHERE pg_stat_activity.datname = '{TEST_DB_CONFIG["database"]}'
              AND pid <> pg_backend_pid()
        """)
        await sys_conn.execute(f'DROP DATABASE IF EXISTS {TEST_DB_CONFIG["database"]}')
    finally:
        await sys_conn.close()


@pytest.fixture(scope="function")
async def db_connection():
    """
    DatabaseConnection to a fresh test database with the schema applied and
    libraries 1 and 2 registered on shard 1.
    """
    await _create_test_database()

    config = DatabaseConfig(
        host=TEST_DB_CONFIG['host'],
        port=TEST_DB_CONFIG['port'],
        database=TEST_DB_CONFIG['database'],
        user=TEST_DB_CONFIG['user'],
        password=TEST_DB_CONFIG['password'],
        ssl_mode='prefer',
        min_pool_size=1,
        max_pool_size=5,
    )
    config.validate_safety('test')

    db = DatabaseConnection(config)
    await db.connect()
    await DatabaseMigration(db).apply_schema(str(SCHEMA_FILE))
    await db.execute(
        "INSERT INTO libraries (library_id, shard_id) VALUES ($1, 1), ($2, 1)",
        TEST_LIBRARY_ID, OTHER_LIBRARY_ID,
    )

    yield db

    await db.disconnect()
    await _drop_test_database()


@pytest.fixture(scope="function")
async def repos(db_connection):
    """RepositoryContainer over a single-node shard directory"""
    return RepositoryContainer(ShardDirectory(db_connection, {1: db_connection}))
