"""
Input Validators

Validates saved search JSON documents and listing parameters.
Validation stops at the first violation, in document property order, and
raises an error naming the offending property.
"""

from typing import Any, Optional, Union

from pydantic import ValidationError

from models import SearchParams
from utils.errors import InvalidInputError, FieldTooLongError

# Top-level properties handled by the key/version checks, not here
PASSTHROUGH_PROPS = {"key", "version", "searchKey", "searchVersion"}

REQUIRED_PROPS = ("name", "conditions")
REQUIRED_CONDITION_PROPS = ("condition", "operator", "value")

MAX_NAME_CHARS = 255
MAX_CONDITION_BYTES = 50
MAX_OPERATOR_BYTES = 25
MAX_VALUE_BYTES = 255


def _json_type(val: Any) -> str:
    """Name of a decoded JSON value's type, for error messages."""
    if val is None:
        return "null"
    if isinstance(val, bool):
        return "boolean"
    if isinstance(val, int):
        return "integer"
    if isinstance(val, float):
        return "double"
    if isinstance(val, str):
        return "string"
    if isinstance(val, dict):
        return "object"
    if isinstance(val, (list, tuple)):
        return "array"
    return type(val).__name__


def _is_set(obj: Any, prop: str) -> bool:
    return isinstance(obj, dict) and obj.get(prop) is not None


def _byte_length(val: str) -> int:
    return len(val.encode("utf-8"))


def _validate_condition(condition: Any) -> None:
    for prop in REQUIRED_CONDITION_PROPS:
        if not _is_set(condition, prop):
            raise InvalidInputError(f"'{prop}' property not provided for search condition", field=prop)

    for prop, val in condition.items():
        if not isinstance(val, str):
            raise InvalidInputError(f"'{prop}' must be a string", field=prop)

        if prop == "condition":
            if val == "":
                raise InvalidInputError("Search condition cannot be empty", field=prop)
            if _byte_length(val) > MAX_CONDITION_BYTES:
                raise InvalidInputError(
                    f"Search condition cannot be longer than {MAX_CONDITION_BYTES} bytes", field=prop
                )

        elif prop == "operator":
            if val == "":
                raise InvalidInputError("Search operator cannot be empty", field=prop)
            if _byte_length(val) > MAX_OPERATOR_BYTES:
                raise InvalidInputError(
                    f"Search operator cannot be longer than {MAX_OPERATOR_BYTES} bytes", field=prop
                )

        elif prop == "value":
            if _byte_length(val) > MAX_VALUE_BYTES:
                raise InvalidInputError(
                    f"Search value cannot be longer than {MAX_VALUE_BYTES} bytes", field=prop
                )

        else:
            raise InvalidInputError(f"Invalid property '{prop}' for search condition", field=prop)


def validate_json_search(
    json_data: Any,
    request_params: Optional[dict] = None,
    partial_update: bool = False,
) -> None:
    """
    Validate a saved search document. Returns None if valid.

    Raises:
        InvalidInputError: missing, unknown, wrong-typed or out-of-range property
        FieldTooLongError: name longer than 255 characters
    """
    if not isinstance(json_data, dict):
        raise InvalidInputError(f"Saved search data must be an object ({_json_type(json_data)})")

    required = () if partial_update else REQUIRED_PROPS
    for prop in required:
        if not _is_set(json_data, prop):
            raise InvalidInputError(f"'{prop}' property not provided", field=prop)

    for key, val in json_data.items():
        if key in PASSTHROUGH_PROPS:
            continue

        if key == "name":
            if not isinstance(val, str):
                raise InvalidInputError("'name' must be a string", field=key)
            if val == "":
                raise InvalidInputError("Search name cannot be empty", field=key)
            # Characters, not bytes
            if len(val) > MAX_NAME_CHARS:
                raise FieldTooLongError(
                    f"Search name cannot be longer than {MAX_NAME_CHARS} characters", field=key
                )

        elif key == "conditions":
            if not isinstance(val, (list, tuple)):
                raise InvalidInputError(f"'conditions' must be an array ({_json_type(val)})", field=key)
            if not val:
                raise InvalidInputError("'conditions' cannot be empty", field=key)
            for condition in val:
                _validate_condition(condition)

        else:
            raise InvalidInputError(f"Invalid property '{key}'", field=key)


def validate_search_params(params: Union[SearchParams, dict, None]) -> SearchParams:
    """
    Coerce listing parameters into SearchParams.
    Raises InvalidInputError naming the first bad parameter.
    """
    if isinstance(params, SearchParams):
        return params
    try:
        return SearchParams.model_validate(params or {})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise InvalidInputError(f"Invalid parameter '{field}': {first['msg']}", field=field) from e
