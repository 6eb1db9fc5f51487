"""
Database configuration for the saved search server
Master (library directory) database plus one PostgreSQL database per shard
Environment-aware configuration based on APP_ENV
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional, Literal, Dict
from urllib.parse import quote_plus
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Environment modes
EnvironmentMode = Literal["development", "test", "production"]

# Shard used when SHARD_IDS is not set (single-node mode)
DEFAULT_SHARD_ID = 1


def load_app_environment(mode: Optional[str] = None) -> str:
    """
    Load environment variables from the appropriate .env file.

    Priority:
    1. Explicit 'mode' argument
    2. APP_ENV environment variable
    3. Default to 'development'

    Loads .env.{mode} if it exists.
    """
    if not mode:
        mode = os.getenv('APP_ENV', 'development')

    env_file = Path(__file__).parent / f'.env.{mode}'

    if env_file.exists():
        logger.info(f"Loading config from {env_file}")
        # override=False lets variables set by the host win over the file
        load_dotenv(env_file, override=False)
    else:
        logger.debug(f"No config file found for mode '{mode}' at {env_file}")

    return mode


@dataclass
class DatabaseConfig:
    """PostgreSQL database configuration"""

    host: str
    port: int
    database: str
    user: str
    password: str

    # Connection pool settings
    min_pool_size: int = 2
    max_pool_size: int = 10
    command_timeout: int = 60  # seconds

    ssl_mode: str = "require"

    @property
    def asyncpg_dsn(self) -> str:
        """Get asyncpg DSN format"""
        return (
            f"postgresql://{self.user}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @classmethod
    def from_environment(cls, mode: Optional[EnvironmentMode] = None) -> 'DatabaseConfig':
        """
        Load the master database configuration from environment variables

        Environment variables:
        - APP_ENV: Environment mode (development, test, production)
        - DB_HOST: Database host (default: localhost)
        - DB_PORT: Database port (default: 5432)
        - DB_NAME: Database name (default: library_master)
        - DB_USER: Database user
        - DB_PASSWORD: Database password
        - DB_SSL_MODE: SSL mode (default: prefer in development, require otherwise)
        """
        mode = load_app_environment(mode)

        config = cls(
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(os.getenv('DB_PORT', '5432')),
            database=os.getenv('DB_NAME', 'library_master'),
            user=os.getenv('DB_USER', 'postgres'),
            password=os.getenv('DB_PASSWORD', ''),
            ssl_mode=os.getenv('DB_SSL_MODE', 'prefer' if mode in ('development', 'test') else 'require'),
            min_pool_size=int(os.getenv('DB_MIN_POOL_SIZE', '2')),
            max_pool_size=int(os.getenv('DB_MAX_POOL_SIZE', '10')),
        )

        config.validate_safety(mode)

        return config

    def validate_safety(self, mode: str):
        """Ensure configuration is safe for the requested mode"""
        if mode == 'test':
            if 'test' not in self.database:
                raise ValueError(f"SAFETY ERROR: Test mode requested but database is '{self.database}'. Test database must contain 'test'.")
            if 'prod' in self.database:
                raise ValueError(f"SAFETY ERROR: Test mode requested but database '{self.database}' appears to be production.")

    @classmethod
    def for_testing(cls) -> 'DatabaseConfig':
        """Configuration for test PostgreSQL database"""
        return cls(
            host='localhost',
            port=5432,
            database='library_test',
            user='postgres',
            password='postgres',
            ssl_mode='prefer',
            min_pool_size=1,
            max_pool_size=5,
        )


@dataclass
class ShardConfig:
    """
    Shard layout: which shard ids exist and how to reach each one.

    Environment Variables:
    - SHARD_IDS: comma separated shard ids (unset: single-node, shard 1 is the master database)
    - SHARD_<ID>_DB_NAME: database name for the shard (required per listed shard)
    - SHARD_<ID>_DB_HOST / _DB_PORT / _DB_USER / _DB_PASSWORD: override the master settings
    """
    shards: Dict[int, DatabaseConfig]

    @classmethod
    def from_environment(cls, master: DatabaseConfig) -> "ShardConfig":
        raw_ids = os.getenv('SHARD_IDS', '').strip()
        if not raw_ids:
            return cls.single_node(master)

        shards = {}
        for raw_id in raw_ids.split(','):
            raw_id = raw_id.strip()
            if not raw_id:
                continue
            shard_id = int(raw_id)
            prefix = f'SHARD_{shard_id}_'
            database = os.getenv(prefix + 'DB_NAME')
            if not database:
                raise ValueError(f"{prefix}DB_NAME must be set for shard {shard_id}")
            shards[shard_id] = replace(
                master,
                host=os.getenv(prefix + 'DB_HOST', master.host),
                port=int(os.getenv(prefix + 'DB_PORT', str(master.port))),
                database=database,
                user=os.getenv(prefix + 'DB_USER', master.user),
                password=os.getenv(prefix + 'DB_PASSWORD', master.password),
            )
        return cls(shards=shards)

    @classmethod
    def single_node(cls, master: DatabaseConfig) -> "ShardConfig":
        return cls(shards={DEFAULT_SHARD_ID: master})

    @property
    def is_single_node(self) -> bool:
        return len(self.shards) == 1 and DEFAULT_SHARD_ID in self.shards


# Utility functions
def get_environment_mode() -> EnvironmentMode:
    """Get current environment mode from APP_ENV variable"""
    mode = os.getenv('APP_ENV', 'development').lower()
    if mode not in ('development', 'test', 'production'):
        mode = 'development'
    return mode  # type: ignore

