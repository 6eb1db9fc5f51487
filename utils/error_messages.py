"""
Error Message Utilities

Turns database constraint violations and saved search errors into
human-readable messages for the tool surface.
"""

import re

from utils.errors import SavedSearchError

# Human-readable constraint explanations
CONSTRAINT_MESSAGES = {
    "saved_searches_library_key_unique": "A saved search with this key already exists in the library.",
    "saved_searches_pkey": "A saved search with this ID already exists.",
    "saved_search_conditions_pkey": "Duplicate condition position within a saved search.",
    "check_search_name_length": "Search name must be between 1 and 255 characters.",
    "check_search_key_format": "Search key must be 8 characters from 23456789ABCDEFGHIJKLMNPQRSTUVWXYZ.",
}


def enhance_error_message(error: Exception) -> str:
    """
    Enhance error messages with human-readable explanations.

    Handles:
    - Saved search errors (code and offending property)
    - Constraint violations (adds explanation of the constraint)
    - Unique and not-null violations

    Returns the enhanced error message string.
    """
    if isinstance(error, SavedSearchError):
        if error.field:
            return f"{error.code} ({error.field}): {error.message}"
        return f"{error.code}: {error.message}"

    error_str = str(error)

    constraint_match = re.search(r'violates check constraint "(\w+)"', error_str)
    if constraint_match:
        constraint_name = constraint_match.group(1)
        explanation = CONSTRAINT_MESSAGES.get(constraint_name)
        if explanation:
            return f"Constraint violation ({constraint_name}): {explanation}"
        return f"Constraint violation: {constraint_name}. {error_str}"

    unique_match = re.search(r'duplicate key value violates unique constraint "(\w+)"', error_str)
    if unique_match:
        constraint_name = unique_match.group(1)
        explanation = CONSTRAINT_MESSAGES.get(constraint_name)
        if explanation:
            return f"Duplicate entry: {explanation}"
        return f"Duplicate entry: A record with this value already exists ({constraint_name})."

    null_match = re.search(r'null value in column "(\w+)" .* violates not-null constraint', error_str)
    if null_match:
        column_name = null_match.group(1)
        return f"Required field missing: '{column_name}' cannot be null."

    return error_str
