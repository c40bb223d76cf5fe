"""Ordered key-value stores backing the search index."""

from levels_search.storage.base import AbstractOrderedStore, BatchOp
from levels_search.storage.factory import create_store
from levels_search.storage.memory import MemoryOrderedStore
from levels_search.storage.sqlite import SqliteOrderedStore


__all__ = [
    "AbstractOrderedStore",
    "BatchOp",
    "MemoryOrderedStore",
    "SqliteOrderedStore",
    "create_store",
]
