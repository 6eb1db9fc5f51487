"""
Repository layer for saved searches
Rows live on the shard that owns their library
"""

import logging
from typing import Any, Dict, List, Optional, Union

from models import SavedSearch, SearchCondition, SearchParams, FORMAT_KEYS, FORMAT_VERSIONS
from query.builder import SearchQueryBuilder
from query.validators import validate_json_search, validate_search_params
from json_objects import extract_editable_json, process_json_object_key, check_json_object_version
from shards import ShardDirectory
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class DataObjectsRepository:
    """Base repository for versioned, per-library objects addressed by id or key"""

    TABLE = ""
    ID_COLUMN = ""
    _COLUMNS = ""

    def __init__(self, shards: ShardDirectory):
        self.shards = shards

    async def _load(self, conn, row):
        raise NotImplementedError

    async def _get_where(self, library_id: int, column: str, value):
        db = await self.shards.get_shard_for_library(library_id)
        async with db.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {self._COLUMNS} FROM {self.TABLE} WHERE library_id = $1 AND {column} = $2",
                library_id, value,
            )
            if row is None:
                return None
            return await self._load(conn, row)

    async def get(self, library_id: int, object_id: int):
        """Get object by shard-local ID, or None"""
        return await self._get_where(library_id, self.ID_COLUMN, object_id)

    async def get_by_key(self, library_id: int, key: str):
        """Get object by library and key, or None"""
        return await self._get_where(library_id, "key", key)

    async def _next_library_version(self, conn, library_id: int) -> int:
        """Bump and return the library's version; every saved change takes a new one"""
        query = """
            INSERT INTO shard_libraries (library_id, version)
            VALUES ($1, 1)
            ON CONFLICT (library_id) DO UPDATE SET version = shard_libraries.version + 1
            RETURNING version
        """
        return await conn.fetchval(query, library_id)

    async def get_library_version(self, library_id: int) -> int:
        db = await self.shards.get_shard_for_library(library_id)
        version = await db.fetchval(
            "SELECT version FROM shard_libraries WHERE library_id = $1", library_id
        )
        return version or 0


class SavedSearchesRepository(DataObjectsRepository):
    """Repository for saved search operations"""

    TABLE = "saved_searches"
    ID_COLUMN = "search_id"
    _COLUMNS = "search_id, library_id, key, name, version, date_added, date_modified"

    def __init__(self, shards: ShardDirectory):
        super().__init__(shards)
        self.builder = SearchQueryBuilder()

    def new(self, library_id: int) -> SavedSearch:
        """Unsaved search assigned to a library"""
        return SavedSearch(library_id=library_id)

    async def _load(self, conn, row) -> SavedSearch:
        condition_rows = await conn.fetch(
            """
            SELECT condition, mode, operator, value FROM saved_search_conditions
            WHERE search_id = $1 ORDER BY search_condition_id
            """,
            row["search_id"],
        )
        return SavedSearch(
            id=row["search_id"],
            library_id=row["library_id"],
            key=row["key"],
            name=row["name"],
            version=row["version"],
            date_added=row["date_added"],
            date_modified=row["date_modified"],
            conditions=[SearchCondition(**dict(c)) for c in condition_rows],
        )

    async def search(
        self,
        library_id: int,
        params: Union[SearchParams, Dict[str, Any], None] = None,
    ) -> Dict[str, Any]:
        """
        List a library's saved searches.

        Returns:
            {"results": ..., "total": int} where results is a list of keys
            (format=keys), a key -> version dict (format=versions), or a list
            of SavedSearch objects. total ignores limit/start.
        """
        params = validate_search_params(params)
        select_sql, select_params = self.builder.build_select(library_id, params)
        count_sql, count_params = self.builder.build_count(library_id, params)

        db = await self.shards.get_shard_for_library(library_id)
        async with db.acquire() as conn:
            rows = await conn.fetch(select_sql, *select_params)
            total = await conn.fetchval(count_sql, *count_params)

        results: Union[List[Any], Dict[str, int]]
        if params.format == FORMAT_KEYS:
            results = [row["key"] for row in rows]
        elif params.format == FORMAT_VERSIONS:
            results = {}
            for row in rows:
                results[row["key"]] = row["version"]
        else:
            results = []
            for row in rows:
                search = await self.get(library_id, row["search_id"])
                # Deleted between the listing and the lookup
                if search is not None:
                    results.append(search)

        return {"results": results, "total": total or 0}

    async def update_from_json(
        self,
        search: SavedSearch,
        json_data: Any,
        request_params: Optional[dict] = None,
        user_id: Optional[int] = None,
        require_version: bool = False,
        partial_update: bool = False,
    ) -> bool:
        """
        Validate a saved search document and apply it.

        Args:
            search: An existing search, or a new one with a library assigned
            json_data: Decoded JSON document
            request_params: Request parameters (API version 'v', 'ifUnmodifiedSinceVersion')
            user_id: Acting user, recorded on the row
            require_version: Fail unless an expected version is supplied
            partial_update: Allow omitting name/conditions on an existing search

        Returns:
            True if the search was changed, False otherwise
        """
        json_data = extract_editable_json(json_data)
        exists, key = process_json_object_key(search, json_data, request_params)
        check_json_object_version(search, json_data, request_params, require_version)
        validate_json_search(json_data, request_params, partial_update and exists)

        if not exists:
            search.set_key(key)

        if json_data.get("name") is not None:
            search.set_name(json_data["name"])

        if json_data.get("conditions") is not None:
            search.update_conditions([SearchCondition.from_json(c) for c in json_data["conditions"]])

        return await self.save(search, user_id)

    async def save(self, search: SavedSearch, user_id: Optional[int] = None) -> bool:
        """
        Persist changed fields under a new library version.
        Returns False without touching the database if nothing changed.
        """
        if not search.has_changed():
            logger.debug(f"Saved search {search.key} unchanged, not saving")
            return False

        if not search.name:
            raise InvalidInputError("Saved search name not provided", field="name")

        db = await self.shards.get_shard_for_library(search.library_id)
        async with db.transaction() as conn:
            version = await self._next_library_version(conn, search.library_id)

            if not search.exists:
                row = await conn.fetchrow(
                    """
                    INSERT INTO saved_searches (library_id, key, name, version, last_modified_by_user_id)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING search_id, date_added, date_modified
                    """,
                    search.library_id, search.key, search.name, version, user_id,
                )
                search.id = row["search_id"]
                search.date_added = row["date_added"]
            else:
                row = await conn.fetchrow(
                    """
                    UPDATE saved_searches
                    SET name = $1, version = $2, date_modified = NOW(),
                        server_date_modified = NOW(), last_modified_by_user_id = $3
                    WHERE search_id = $4
                    RETURNING date_modified
                    """,
                    search.name, version, user_id, search.id,
                )
                # Deleted since it was loaded; raising rolls back the version bump
                if row is None:
                    raise NotFoundError(f"Saved search {search.key} no longer exists", field="key")

            if search.has_changed("conditions") or search.has_changed("key"):
                await conn.execute("DELETE FROM saved_search_conditions WHERE search_id = $1", search.id)
                await conn.executemany(
                    """
                    INSERT INTO saved_search_conditions
                        (search_id, search_condition_id, condition, mode, operator, value)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    """,
                    [
                        (search.id, i, c.condition, c.mode, c.operator, c.value)
                        for i, c in enumerate(search.conditions, start=1)
                    ],
                )

        search.version = version
        search.date_modified = row["date_modified"]
        search.mark_saved()
        logger.info(f"Saved search {search.library_id}/{search.key} at version {version}")
        return True
