"""
Handler Registry - Maps tool names to handler functions

Each handler is an async function: handle_<tool_name>(arguments, repos)

Usage:
    from handlers import get_handler

    handler = get_handler(tool_name)
    if handler:
        result = await handler(arguments, repos)
"""

from typing import Callable, Optional

from . import search_handlers


HANDLER_REGISTRY = {
    "search_saved_searches": search_handlers.handle_search_saved_searches,
    "get_saved_search": search_handlers.handle_get_saved_search,
    "write_saved_search": search_handlers.handle_write_saved_search,
}


def get_handler(tool_name: str) -> Optional[Callable]:
    """Get the handler function for a tool, or None"""
    return HANDLER_REGISTRY.get(tool_name)


def list_all_handlers() -> list[str]:
    """Get list of all registered tool names"""
    return list(HANDLER_REGISTRY.keys())


__all__ = [
    'get_handler',
    'list_all_handlers',
    'HANDLER_REGISTRY'
]
