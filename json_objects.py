"""
JSON object helpers shared by writable entity types

- extract_editable_json: strip the envelope and server-managed properties
- process_json_object_key: decide create vs update and the key to use
- check_json_object_version: optimistic concurrency against the stored version
"""

import logging
from typing import Any, Optional, Tuple

from models import SavedSearch, generate_key, is_valid_key
from utils.errors import (
    InvalidInputError, NotFoundError, PreconditionRequiredError, VersionConflictError,
)

logger = logging.getLogger(__name__)

# Properties the server owns; silently dropped from inbound documents
SERVER_MANAGED_PROPS = ("dateAdded", "dateModified", "links", "meta", "library")

# API version that introduced plain 'key'/'version' properties
CURRENT_API_VERSION = 3


def _api_version(request_params: Optional[dict]) -> int:
    if not request_params:
        return CURRENT_API_VERSION
    try:
        return int(request_params.get("v", CURRENT_API_VERSION))
    except (TypeError, ValueError):
        return CURRENT_API_VERSION


def _key_props(request_params: Optional[dict]) -> Tuple[str, str]:
    """(key property, version property) for the request's API version"""
    if _api_version(request_params) < CURRENT_API_VERSION:
        return "searchKey", "searchVersion"
    return "key", "version"


def extract_editable_json(json_data: Any) -> Any:
    """
    Return the editable part of an inbound document.
    A full response object ({"key", "version", "data": {...}}) is unwrapped to its data.
    Non-object input is returned unchanged so validation can report it.
    """
    if not isinstance(json_data, dict):
        return json_data
    if isinstance(json_data.get("data"), dict):
        json_data = json_data["data"]
    return {k: v for k, v in json_data.items() if k not in SERVER_MANAGED_PROPS}


def process_json_object_key(
    search: SavedSearch,
    json_data: Any,
    request_params: Optional[dict] = None,
) -> Tuple[bool, str]:
    """
    Resolve the key for a write.

    Returns:
        (exists, key): whether the search is already stored, and the key it will have.
        New searches take a supplied key or get a generated one.

    Raises:
        InvalidInputError: malformed key, or key not matching the stored search
    """
    key_prop, _ = _key_props(request_params)
    supplied = json_data.get(key_prop) if isinstance(json_data, dict) else None

    if search.exists:
        if supplied is not None and supplied != search.key:
            raise InvalidInputError(
                f"'{key_prop}' property '{supplied}' does not match saved search key '{search.key}'",
                field=key_prop,
            )
        return True, search.key

    if supplied is not None:
        if not is_valid_key(supplied):
            raise InvalidInputError(f"'{supplied}' is not a valid saved search key", field=key_prop)
        return False, supplied

    return False, search.key or generate_key()


def check_json_object_version(
    search: SavedSearch,
    json_data: Any,
    request_params: Optional[dict] = None,
    require_version: bool = False,
) -> None:
    """
    Compare the caller's expected version against the stored one.

    The expected version comes from the document's version property, falling
    back to the request's ifUnmodifiedSinceVersion.

    Raises:
        PreconditionRequiredError: version required but not provided
        NotFoundError: non-zero version for a search that doesn't exist
        VersionConflictError: stored version is newer than expected
    """
    _, version_prop = _key_props(request_params)

    expected = None
    if isinstance(json_data, dict) and json_data.get(version_prop) is not None:
        expected = json_data[version_prop]
    elif request_params and request_params.get("ifUnmodifiedSinceVersion") is not None:
        expected = request_params["ifUnmodifiedSinceVersion"]

    if expected is None:
        if require_version:
            raise PreconditionRequiredError(
                f"Either If-Unmodified-Since-Version or object {version_prop} property must be provided "
                "for key-based writes",
                field=version_prop,
            )
        return

    if isinstance(expected, bool) or not isinstance(expected, (int, str)):
        raise InvalidInputError(f"'{version_prop}' must be an integer", field=version_prop)
    try:
        expected = int(expected)
    except ValueError:
        raise InvalidInputError(f"'{version_prop}' must be an integer", field=version_prop)

    if not search.exists:
        if expected != 0:
            raise NotFoundError(
                f"Saved search doesn't exist (expected version {expected}; use 0 instead)",
                field=version_prop,
            )
        return

    if search.version > expected:
        logger.info(f"Version conflict on saved search {search.key}: expected {expected}, found {search.version}")
        raise VersionConflictError(
            f"Saved search has been modified since specified version "
            f"(expected {expected}, found {search.version})",
            field=version_prop,
        )
