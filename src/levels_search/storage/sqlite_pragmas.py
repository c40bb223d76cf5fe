"""Shared SQLite PRAGMA helpers for consistent performance tuning."""

from __future__ import annotations

import sqlite3


def apply_store_pragmas(
    conn: sqlite3.Connection,
    *,
    busy_timeout_ms: int | None = 30000,
    cache_size_kb: int = -16384,
    mmap_size_bytes: int = 67108864,
    temp_store: str = "MEMORY",
    synchronous: str = "NORMAL",
) -> None:
    """Apply PRAGMAs for a connection that both scans and writes the store."""
    if busy_timeout_ms is not None:
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute(f"PRAGMA synchronous = {synchronous}")
    conn.execute(f"PRAGMA cache_size = {cache_size_kb}")
    conn.execute(f"PRAGMA mmap_size = {mmap_size_bytes}")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
