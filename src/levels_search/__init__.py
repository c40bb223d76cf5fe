"""levels-search: phonetic full-text search on an ordered key-value store."""

from __future__ import annotations

from levels_search.config import Settings, load_settings
from levels_search.errors import ConfigurationError, InvalidDocumentIdError, LevelsSearchError, StoreIOError
from levels_search.search.combinators import Combinator
from levels_search.search.index import Query, Search, create_index
from levels_search.storage import AbstractOrderedStore, BatchOp, MemoryOrderedStore, SqliteOrderedStore, create_store


__version__ = "0.1.0"


def open_index(settings: Settings | None = None) -> Search:
    """Build the configured store and return an index over it."""
    settings = settings or load_settings()
    store = create_store(settings)
    return create_index(store, settings.namespace, max_concurrent_scans=settings.max_concurrent_scans)


__all__ = [
    "AbstractOrderedStore",
    "BatchOp",
    "Combinator",
    "ConfigurationError",
    "InvalidDocumentIdError",
    "LevelsSearchError",
    "MemoryOrderedStore",
    "Query",
    "Search",
    "Settings",
    "SqliteOrderedStore",
    "StoreIOError",
    "__version__",
    "create_index",
    "create_store",
    "load_settings",
    "open_index",
]
