"""
Saved Search Handlers

Handles the `search_saved_searches`, `get_saved_search` and `write_saved_search` MCP tools.
Saved search errors are returned as structured error objects; anything else
propagates to the server's tool boundary.
"""

import json
import logging
from typing import Any

from mcp import types

from models import SavedSearch
from utils.errors import InvalidInputError, NotFoundError, SavedSearchError

logger = logging.getLogger(__name__)


def _text(payload: dict) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


def _library_id(arguments: dict[str, Any]) -> int:
    library_id = arguments.get("libraryID")
    if library_id is None:
        raise InvalidInputError("'libraryID' not provided", field="libraryID")
    try:
        return int(library_id)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid libraryID '{library_id}'", field="libraryID")


def _serialize_results(results: Any) -> Any:
    if isinstance(results, list):
        return [r.to_response_json() if isinstance(r, SavedSearch) else r for r in results]
    return results


async def handle_search_saved_searches(arguments: dict[str, Any], repos) -> list[types.TextContent]:
    """List a library's saved searches."""
    try:
        library_id = _library_id(arguments)
        params = {k: v for k, v in arguments.items() if k != "libraryID"}
        result = await repos.saved_searches.search(library_id, params)
    except SavedSearchError as e:
        return _text(e.to_dict())

    return _text({
        "libraryID": library_id,
        "total": result["total"],
        "results": _serialize_results(result["results"]),
    })


async def handle_get_saved_search(arguments: dict[str, Any], repos) -> list[types.TextContent]:
    """Get one saved search by key."""
    try:
        library_id = _library_id(arguments)
        key = arguments.get("key")
        if not key:
            raise InvalidInputError("'key' not provided", field="key")
        search = await repos.saved_searches.get_by_key(library_id, key)
        if search is None:
            raise NotFoundError(f"Saved search {key} not found", field="key")
    except SavedSearchError as e:
        return _text(e.to_dict())

    return _text(search.to_response_json())


async def handle_write_saved_search(arguments: dict[str, Any], repos) -> list[types.TextContent]:
    """
    Create or update a saved search.

    Flow:
    1. Resolve the target (existing by key, else a new search in the library)
    2. Validate and apply the document
    3. Return the stored state
    """
    document = arguments.get("search")
    # MCP clients sometimes send objects as JSON strings
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError:
            return _text({"error": True, "code": "INVALID_JSON", "message": "search must be a valid JSON object"})

    try:
        library_id = _library_id(arguments)
        repo = repos.saved_searches

        search = None
        key = document.get("key") if isinstance(document, dict) else None
        if isinstance(document, dict) and isinstance(document.get("data"), dict):
            key = document["data"].get("key", key)
        if isinstance(key, str) and key:
            search = await repo.get_by_key(library_id, key)
        if search is None:
            search = repo.new(library_id)

        request_params = {}
        if arguments.get("ifUnmodifiedSinceVersion") is not None:
            request_params["ifUnmodifiedSinceVersion"] = arguments["ifUnmodifiedSinceVersion"]

        changed = await repo.update_from_json(
            search,
            document,
            request_params,
            arguments.get("userID"),
            require_version=bool(arguments.get("requireVersion", False)),
            partial_update=bool(arguments.get("partial", False)),
        )
    except SavedSearchError as e:
        logger.info(f"write_saved_search rejected: {e.code} {e.message}")
        return _text(e.to_dict())

    return _text({
        "changed": changed,
        "key": search.key,
        "version": search.version,
        "search": search.to_response_json(),
    })
