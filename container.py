"""
Repository Container - Centralized dependency injection container

Single place where repositories are wired to the shard directory, used by
the server and by tests.
"""

from repositories import SavedSearchesRepository
from shards import ShardDirectory


class RepositoryContainer:
    """
    Container for repository instances with attribute access.
    """
    def __init__(self, shards: ShardDirectory):
        self.shards = shards
        self.saved_searches = SavedSearchesRepository(shards)
