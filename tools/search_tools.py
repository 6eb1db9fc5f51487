"""
Saved Search MCP Tools

Tool definitions for listing, reading and writing a library's saved searches.
"""

from mcp import types

from query.builder import SORT_COLUMNS


def search_saved_searches() -> types.Tool:
    return types.Tool(
        name="search_saved_searches",
        description=(
            "List a library's saved searches. Returns {results, total}; total ignores limit/start.\n\n"
            "FORMATS: 'keys' (list of keys), 'versions' (key -> version map); any other value (default 'json') returns full objects.\n\n"
            "SORT: a field name, 'title', or 'searchKeyList' to keep the order of the searchKey list. "
            "Results are always ordered by version then id after the primary sort."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "libraryID": {"type": "integer", "description": "Library to list."},
                "format": {
                    "type": "string",
                    "description": "'keys', 'versions', or anything else (e.g. 'json') for full objects.",
                },
                "searchKey": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Only these keys. Empty means no restriction.",
                },
                "since": {"type": "integer", "description": "Only searches with a version greater than this."},
                "sincetime": {"type": "number", "description": "Unix timestamp; only searches modified at or after it."},
                "sort": {
                    "type": "string",
                    "enum": sorted(SORT_COLUMNS) + ["searchKeyList"],
                },
                "direction": {"type": "string", "enum": ["asc", "desc"]},
                "limit": {"type": "integer", "minimum": 0},
                "start": {"type": "integer", "minimum": 0},
            },
            "required": ["libraryID"],
        },
    )


def get_saved_search() -> types.Tool:
    return types.Tool(
        name="get_saved_search",
        description="Get one saved search by library and key.",
        inputSchema={
            "type": "object",
            "properties": {
                "libraryID": {"type": "integer"},
                "key": {"type": "string", "description": "8-character saved search key."},
            },
            "required": ["libraryID", "key"],
        },
    )


def write_saved_search() -> types.Tool:
    return types.Tool(
        name="write_saved_search",
        description=(
            "Create or update a saved search from a JSON document.\n\n"
            "DOCUMENT: {name, conditions: [{condition, operator, value}], key?, version?}. "
            "A condition may carry a mode as 'field/mode' (e.g. 'title/regexp').\n\n"
            "Without 'key' a new search is created. With a key that exists the search is updated; "
            "'partial' allows omitting name or conditions. Conditions are always replaced as a whole.\n\n"
            "VERSIONS: pass the last seen version (in the document or ifUnmodifiedSinceVersion) to "
            "fail instead of overwriting newer changes."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "libraryID": {"type": "integer"},
                "search": {"type": "object", "description": "Saved search document."},
                "userID": {"type": "integer", "description": "Acting user."},
                "partial": {"type": "boolean", "description": "Partial update (PATCH semantics)."},
                "requireVersion": {"type": "boolean"},
                "ifUnmodifiedSinceVersion": {"type": "integer"},
            },
            "required": ["libraryID", "search"],
        },
    )


def get_search_tools() -> list[types.Tool]:
    return [search_saved_searches(), get_saved_search(), write_saved_search()]
