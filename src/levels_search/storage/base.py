"""Ordered key-value store abstraction consumed by the search index.

Keys and values are raw bytes; keys compare bytewise. Backends implement four
primitives (page read, atomic batch, point get, close) and inherit the public
async API, including cursor-scoped range scans.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from typing import Literal

from levels_search.errors import StoreIOError


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 256


@dataclass(frozen=True, slots=True)
class BatchOp:
    """A single mutation inside an atomic batch."""

    type: Literal["put", "del"]
    key: bytes
    value: bytes | None = None

    @classmethod
    def put(cls, key: bytes, value: bytes) -> BatchOp:
        return cls("put", key, value)

    @classmethod
    def delete(cls, key: bytes) -> BatchOp:
        return cls("del", key)

    def validate(self) -> None:
        if not isinstance(self.key, bytes):
            raise TypeError(f"batch key must be bytes, got {type(self.key).__name__}")
        if self.type == "put":
            if not isinstance(self.value, bytes):
                raise TypeError(f"put value must be bytes, got {type(self.value).__name__}")
        elif self.type != "del":
            raise ValueError(f"Unknown batch operation type '{self.type}'")


class AbstractOrderedStore(ABC):
    """Abstract ordered store with range scans and atomic batched writes."""

    def __init__(self, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreIOError(f"{type(self).__name__} is closed")

    async def batch(self, ops: Sequence[BatchOp]) -> None:
        """Apply ``ops`` atomically: either all of them land or none do."""
        self._ensure_open()
        ops = list(ops)
        for op in ops:
            op.validate()
        if not ops:
            return
        await self._apply_batch(ops)

    async def put(self, key: bytes, value: bytes) -> None:
        await self.batch([BatchOp.put(key, value)])

    async def delete(self, key: bytes) -> None:
        await self.batch([BatchOp.delete(key)])

    async def get(self, key: bytes) -> bytes | None:
        self._ensure_open()
        return await self._get(key)

    @asynccontextmanager
    async def scan(self, start: bytes, end: bytes) -> AsyncIterator[AsyncIterator[tuple[bytes, bytes]]]:
        """Yield an async iterator over ``start <= key < end`` in key order.

        The cursor is released when the block exits, including on error or
        task cancellation.
        """
        self._ensure_open()
        cursor = self._iterate(start, end)
        try:
            yield cursor
        finally:
            await cursor.aclose()

    async def _iterate(self, start: bytes, end: bytes) -> AsyncIterator[tuple[bytes, bytes]]:
        after: bytes | None = None
        while True:
            self._ensure_open()
            page = await self._read_page(start, end, after, self.page_size)
            for item in page:
                yield item
            if len(page) < self.page_size:
                return
            after = page[-1][0]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._close()
        logger.debug("Closed %s", type(self).__name__)

    async def __aenter__(self) -> AbstractOrderedStore:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @abstractmethod
    async def _read_page(
        self,
        start: bytes,
        end: bytes,
        after: bytes | None,
        limit: int,
    ) -> list[tuple[bytes, bytes]]:
        """Return up to ``limit`` items in ``[start, end)``, strictly after ``after`` when set."""
        raise NotImplementedError

    @abstractmethod
    async def _apply_batch(self, ops: list[BatchOp]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def _get(self, key: bytes) -> bytes | None:
        raise NotImplementedError

    async def _close(self) -> None:
        """Optional hook releasing backend resources."""

        return
