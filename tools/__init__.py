"""
MCP Tools Package

Saved search tools:
- search_saved_searches (read)
- get_saved_search (read)
- write_saved_search (write)
"""

from .search_tools import get_search_tools, search_saved_searches, get_saved_search, write_saved_search


def get_core_tool_catalog():
    """Get all MCP tools exposed by the server."""
    return [*get_search_tools()]


__all__ = [
    'get_core_tool_catalog',
    'get_search_tools',
    'search_saved_searches',
    'get_saved_search',
    'write_saved_search',
]
