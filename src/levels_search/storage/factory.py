"""Storage factory for choosing between the memory and SQLite backends."""

from __future__ import annotations

from levels_search.config import Settings
from levels_search.storage.base import AbstractOrderedStore
from levels_search.storage.memory import MemoryOrderedStore
from levels_search.storage.sqlite import SqliteOrderedStore


def create_store(settings: Settings) -> AbstractOrderedStore:
    """Create the ordered store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return MemoryOrderedStore(page_size=settings.scan_page_size)
    return SqliteOrderedStore(
        settings.db_path,
        page_size=settings.scan_page_size,
        busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        max_workers=settings.sqlite_max_workers,
    )
