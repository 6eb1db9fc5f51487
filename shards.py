"""
Shard directory

Libraries live on exactly one shard. The master database records which
(libraries.shard_id); each shard is its own PostgreSQL database with its own pool.
"""

import logging
from typing import Dict, Optional

from config import DatabaseConfig, ShardConfig
from database import DatabaseConnection
from utils.errors import LibraryNotFoundError, ShardNotFoundError

logger = logging.getLogger(__name__)


class ShardDirectory:
    """Resolves a library to the DatabaseConnection of its shard."""

    def __init__(self, master: DatabaseConnection, shards: Dict[int, DatabaseConnection]):
        self.master = master
        self.shards = shards
        self._library_shards: Dict[int, int] = {}

    @classmethod
    def from_config(cls, master_config: DatabaseConfig, shard_config: ShardConfig) -> "ShardDirectory":
        master = DatabaseConnection(master_config)
        shards = {}
        for shard_id, config in shard_config.shards.items():
            # Single-node layouts point a shard at the master database; share the pool
            if config == master_config:
                shards[shard_id] = master
            else:
                shards[shard_id] = DatabaseConnection(config)
        return cls(master, shards)

    async def connect(self):
        await self.master.connect()
        for shard_id, shard in self.shards.items():
            if shard is not self.master:
                await shard.connect()
        logger.info(f"Shard directory ready ({len(self.shards)} shard(s))")

    async def disconnect(self):
        for shard in self.shards.values():
            if shard is not self.master:
                await shard.disconnect()
        await self.master.disconnect()
        self._library_shards.clear()

    async def get_shard_id_for_library(self, library_id: int) -> int:
        shard_id = self._library_shards.get(library_id)
        if shard_id is not None:
            return shard_id

        shard_id = await self.master.fetchval(
            "SELECT shard_id FROM libraries WHERE library_id = $1", library_id
        )
        if shard_id is None:
            raise LibraryNotFoundError(f"Library {library_id} not found", field="libraryID")

        self._library_shards[library_id] = shard_id
        return shard_id

    async def get_shard_for_library(self, library_id: int) -> DatabaseConnection:
        shard_id = await self.get_shard_id_for_library(library_id)
        shard = self.get_shard(shard_id)
        if shard is None:
            raise ShardNotFoundError(f"Shard {shard_id} for library {library_id} is not configured")
        return shard

    def get_shard(self, shard_id: int) -> Optional[DatabaseConnection]:
        return self.shards.get(shard_id)

    def forget_library(self, library_id: int):
        """Drop a cached mapping, e.g. after the library moved shards"""
        self._library_shards.pop(library_id, None)
