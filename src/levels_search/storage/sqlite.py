"""SQLite-backed ordered store.

Entries live in a single ``WITHOUT ROWID`` table keyed by a BLOB, so SQLite's
memcmp ordering of BLOBs is the store's key order. Blocking SQLite calls run
on a thread pool owned by the store; each pool thread keeps one connection,
so the number of open connections never exceeds ``max_workers`` no matter how
many event loops drive the store. Range scans read one ordered page per
statement, so no SQLite cursor stays open between pages.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
import functools
import logging
from pathlib import Path
import sqlite3
import threading
import time
from typing import TypeVar

from levels_search.errors import ConfigurationError, StoreIOError
from levels_search.storage.base import DEFAULT_PAGE_SIZE, AbstractOrderedStore, BatchOp
from levels_search.storage.sqlite_pragmas import apply_store_pragmas


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 4
_MAX_CONNECT_RETRIES = 3
_RETRY_DELAY_SECONDS = 0.2

_SCHEMA = "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"
_PAGE_FROM_START = "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key LIMIT ?"
_PAGE_AFTER_KEY = "SELECT key, value FROM kv WHERE key > ? AND key < ? ORDER BY key LIMIT ?"


class SqliteOrderedStore(AbstractOrderedStore):
    """Persist the ordered key space in a SQLite database file."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        busy_timeout_ms: int = 30000,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        super().__init__(page_size=page_size)
        if str(db_path) == ":memory:":
            raise ConfigurationError("SqliteOrderedStore needs a database file; use MemoryOrderedStore instead")
        if max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self.max_workers = max_workers
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._initialize_schema()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="levels-sqlite")

    @property
    def open_connections(self) -> int:
        with self._connections_lock:
            return len(self._connections)

    def _connect(self) -> sqlite3.Connection:
        """Open a connection, retrying transient filesystem failures with backoff."""
        last_error: sqlite3.Error | None = None
        for attempt in range(_MAX_CONNECT_RETRIES):
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                apply_store_pragmas(conn, busy_timeout_ms=self.busy_timeout_ms)
                return conn
            except sqlite3.Error as exc:
                last_error = exc
                if attempt < _MAX_CONNECT_RETRIES - 1:
                    delay = _RETRY_DELAY_SECONDS * (2**attempt)
                    logger.warning(
                        "SQLite connect attempt %d/%d failed for %s: %s. Retrying in %.1fs...",
                        attempt + 1,
                        _MAX_CONNECT_RETRIES,
                        self.db_path,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
        raise StoreIOError(
            f"Unable to open SQLite store at {self.db_path} after {_MAX_CONNECT_RETRIES} attempts: {last_error}"
        ) from last_error

    def _connection(self) -> sqlite3.Connection:
        """Return the calling pool thread's connection, opening it on first use."""
        self._ensure_open()
        conn = getattr(self._local, "connection", None)
        if conn is None:
            conn = self._connect()
            self._local.connection = conn
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    def _initialize_schema(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            raise StoreIOError(f"Failed to initialize SQLite store at {self.db_path}: {exc}") from exc
        finally:
            conn.close()

    def _read_page_sync(
        self,
        start: bytes,
        end: bytes,
        after: bytes | None,
        limit: int,
    ) -> list[tuple[bytes, bytes]]:
        conn = self._connection()
        if after is None:
            rows = conn.execute(_PAGE_FROM_START, (start, end, limit)).fetchall()
        else:
            rows = conn.execute(_PAGE_AFTER_KEY, (after, end, limit)).fetchall()
        return [(bytes(key), bytes(value)) for key, value in rows]

    def _apply_batch_sync(self, ops: list[BatchOp]) -> None:
        conn = self._connection()
        # The connection context manager commits on success and rolls back on error.
        with conn:
            for op in ops:
                if op.type == "put":
                    conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (op.key, op.value))
                else:
                    conn.execute("DELETE FROM kv WHERE key = ?", (op.key,))

    def _get_sync(self, key: bytes) -> bytes | None:
        row = self._connection().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    async def _run(self, func: Callable[..., T], *args: object) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    async def _read_page(
        self,
        start: bytes,
        end: bytes,
        after: bytes | None,
        limit: int,
    ) -> list[tuple[bytes, bytes]]:
        try:
            return await self._run(self._read_page_sync, start, end, after, limit)
        except sqlite3.Error as exc:
            raise StoreIOError(f"Range scan failed on {self.db_path}: {exc}") from exc

    async def _apply_batch(self, ops: list[BatchOp]) -> None:
        try:
            await self._run(self._apply_batch_sync, ops)
        except sqlite3.Error as exc:
            raise StoreIOError(f"Batch write of {len(ops)} operations failed on {self.db_path}: {exc}") from exc

    async def _get(self, key: bytes) -> bytes | None:
        try:
            return await self._run(self._get_sync, key)
        except sqlite3.Error as exc:
            raise StoreIOError(f"Read failed on {self.db_path}: {exc}") from exc

    async def _close(self) -> None:
        # Let in-flight statements finish before their connections go away.
        self._executor.shutdown(wait=True)
        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for conn in connections:
            try:
                conn.close()
            except sqlite3.Error as exc:
                logger.warning("Failed to close SQLite connection for %s: %s", self.db_path, exc)
