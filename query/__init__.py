"""
Saved search query layer

SQL generation for listings and validation of inbound documents/parameters.
"""

from .builder import SearchQueryBuilder, SORT_COLUMNS
from .validators import validate_json_search, validate_search_params

__all__ = [
    'SearchQueryBuilder',
    'SORT_COLUMNS',
    'validate_json_search',
    'validate_search_params',
]
