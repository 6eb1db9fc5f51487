"""
Database connection management and utilities
Async PostgreSQL operations using asyncpg
"""

import asyncpg
import logging
from typing import Optional, List, Any
from contextlib import asynccontextmanager

from config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Manages a PostgreSQL connection pool and provides database operations.
    One instance per physical database (the master or a shard).
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Initialize connection pool"""
        if self.pool is not None:
            logger.warning("Connection pool already initialized")
            return

        try:
            # asyncpg expects: True (require SSL), False (disable SSL), or 'prefer'
            if self.config.ssl_mode == 'require':
                ssl_setting = True
            elif self.config.ssl_mode == 'disable':
                ssl_setting = False
            else:
                ssl_setting = 'prefer'

            self.pool = await asyncpg.create_pool(
                host=self.config.host,
                port=self.config.port,
                database=self.config.database,
                user=self.config.user,
                password=self.config.password,
                min_size=self.config.min_pool_size,
                max_size=self.config.max_pool_size,
                command_timeout=self.config.command_timeout,
                ssl=ssl_setting,
            )

            logger.info(f"✅ Connected to PostgreSQL at {self.config.host}:{self.config.port}/{self.config.database}")

        except Exception as e:
            logger.error(f"❌ Failed to connect to database {self.config.database}: {e}")
            raise

    async def disconnect(self):
        """Close connection pool"""
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info(f"Database connection pool closed ({self.config.database})")

    @asynccontextmanager
    async def acquire(self):
        """
        Acquire a connection from the pool.

        Usage:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT key FROM saved_searches")

        The connection goes back to the pool even if an exception occurs.
        """
        if self.pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self.pool.acquire() as connection:
            try:
                yield connection
            except Exception as e:
                logger.error(f"Error during database operation: {e}", exc_info=True)
                raise

    async def execute(self, query: str, *args, timeout: Optional[float] = None) -> str:
        """Execute a query without returning results, e.g. "UPDATE 1" """
        async with self.acquire() as conn:
            return await conn.execute(query, *args, timeout=timeout)

    async def fetch(self, query: str, *args, timeout: Optional[float] = None) -> List[asyncpg.Record]:
        """Fetch multiple rows"""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args, timeout=timeout)

    async def fetchrow(self, query: str, *args, timeout: Optional[float] = None) -> Optional[asyncpg.Record]:
        """Fetch a single row, or None"""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args, timeout=timeout)

    async def fetchval(
        self,
        query: str,
        *args,
        column: int = 0,
        timeout: Optional[float] = None
    ) -> Any:
        """Fetch a single value"""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column, timeout=timeout)

    @asynccontextmanager
    async def transaction(self):
        """
        Run operations within a transaction on one connection

        Usage:
            async with db.transaction() as conn:
                await conn.execute("UPDATE ...")
                await conn.execute("INSERT ...")
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn


class DatabaseMigration:
    """
    Apply the schema file to a database
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db

    async def apply_schema(self, schema_file: str):
        """Execute the entire schema file in a single transaction"""
        logger.info(f"Applying schema from {schema_file} to {self.db.config.database}...")

        with open(schema_file, 'r', encoding='utf-8') as f:
            schema_sql = f.read()

        try:
            async with self.db.transaction() as conn:
                await conn.execute(schema_sql)
            logger.info("✅ Schema applied successfully")
        except Exception as e:
            logger.error(f"❌ Failed to apply schema: {e}")
            raise
