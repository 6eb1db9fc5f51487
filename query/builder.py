"""
Saved Search Query Builder

Translates listing parameters into parameterized SQL for one shard.
All values are passed as asyncpg positional parameters ($1, $2, ...), never interpolated.
The only caller-influenced identifier, the sort column, is resolved through SORT_COLUMNS.

Supports:
- Output formats: keys, versions (key + version), full objects (search ids)
- Filters: since (version), sincetime (modification time), searchIDs, searchKey
- Sorting by field, by name ('title') or by position in the searchKey list ('searchKeyList')
- Stable pagination (version, then id, as tiebreakers)
"""

import logging

from models import SearchParams, FORMAT_KEYS, FORMAT_VERSIONS
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

TABLE = "saved_searches"
ALIAS = "s"

# Sortable field name -> column
SORT_COLUMNS = {
    "title": "s.name",
    "name": "s.name",
    "key": "s.key",
    "version": "s.version",
    "dateAdded": "s.date_added",
    "dateModified": "s.date_modified",
}

SORT_SEARCH_KEY_LIST = "searchKeyList"


class SearchQueryBuilder:
    """Builds the listing SELECT and its COUNT from the same filter clauses."""

    def _select_columns(self, fmt: str) -> str:
        if fmt == FORMAT_KEYS:
            return "s.key"
        if fmt == FORMAT_VERSIONS:
            return "s.key, s.version"
        return "s.search_id"

    def _build_filter(self, library_id: int, params: SearchParams, sql_params: list) -> list[str]:
        """
        Build WHERE clause fragments, in a fixed order:
        library, since, sincetime, searchIDs, searchKey.
        Empty id/key lists add no constraint.
        """
        sql_params.append(library_id)
        conditions = [f"s.library_id = ${len(sql_params)}"]

        if params.since:
            sql_params.append(params.since)
            conditions.append(f"s.version > ${len(sql_params)}")

        # Transitional filter for clients still syncing by timestamp
        if params.sincetime:
            sql_params.append(float(params.sincetime))
            conditions.append(f"s.server_date_modified >= to_timestamp(${len(sql_params)})")

        if params.search_ids:
            sql_params.append(list(params.search_ids))
            conditions.append(f"s.search_id = ANY(${len(sql_params)}::int[])")

        if params.search_keys:
            sql_params.append(list(params.search_keys))
            conditions.append(f"s.key = ANY(${len(sql_params)}::text[])")

        return conditions

    def _build_order(self, params: SearchParams, sql_params: list) -> str:
        """
        Build ORDER BY. The primary sort (if any) is followed by version and id,
        all in the requested direction, so paging through results is deterministic.
        """
        direction = params.direction or "ASC"
        parts = []

        if params.sort:
            if params.sort == SORT_SEARCH_KEY_LIST:
                if not params.search_keys:
                    raise InvalidInputError(
                        "'searchKey' must be provided when sorting by searchKeyList", field="sort"
                    )
                sql_params.append(list(params.search_keys))
                order_sql = f"array_position(${len(sql_params)}::text[], s.key::text)"
            elif params.sort in SORT_COLUMNS:
                order_sql = SORT_COLUMNS[params.sort]
            else:
                raise InvalidInputError(f"Invalid 'sort' value '{params.sort}'", field="sort")

            if params.direction:
                parts.append(f"{order_sql} {params.direction}")
            else:
                parts.append(order_sql)

        parts.append(f"s.version {direction}")
        parts.append(f"s.search_id {direction}")
        return "ORDER BY " + ", ".join(parts)

    def _build_pagination(self, params: SearchParams, sql_params: list) -> str:
        if not params.limit:
            return ""
        sql_params.append(params.limit)
        limit_clause = f"LIMIT ${len(sql_params)}"
        sql_params.append(params.start or 0)
        return f"{limit_clause} OFFSET ${len(sql_params)}"

    def build_select(self, library_id: int, params: SearchParams) -> tuple[str, list]:
        """
        Build the listing SELECT.
        Returns (sql, params).
        """
        sql_params: list = []
        select_clause = self._select_columns(params.format)
        conditions = self._build_filter(library_id, params, sql_params)
        where_clause = f"WHERE {' AND '.join(conditions)}"
        order_clause = self._build_order(params, sql_params)
        pagination_clause = self._build_pagination(params, sql_params)

        sql = " ".join(
            f"SELECT {select_clause} FROM {TABLE} {ALIAS} {where_clause} {order_clause} {pagination_clause}".split()
        )
        logger.debug(f"saved search listing SQL: {sql} -- params: {sql_params}")

        return sql, sql_params

    def build_count(self, library_id: int, params: SearchParams) -> tuple[str, list]:
        """
        Build a COUNT over the same filters, ignoring sort and pagination.
        Returns (sql, params).
        """
        sql_params: list = []
        conditions = self._build_filter(library_id, params, sql_params)
        where_clause = f"WHERE {' AND '.join(conditions)}"

        sql = f"SELECT COUNT(*) AS total FROM {TABLE} {ALIAS} {where_clause}"

        return " ".join(sql.split()), sql_params
