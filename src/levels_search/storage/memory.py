"""In-process ordered store backed by a sorted key list."""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort

from levels_search.storage.base import DEFAULT_PAGE_SIZE, AbstractOrderedStore, BatchOp


class MemoryOrderedStore(AbstractOrderedStore):
    """Ordered store kept entirely in memory.

    Batches apply without yielding to the event loop, so they are atomic with
    respect to every other coroutine using the store.
    """

    def __init__(self, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        super().__init__(page_size=page_size)
        self._keys: list[bytes] = []
        self._data: dict[bytes, bytes] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def items(self) -> list[tuple[bytes, bytes]]:
        """Snapshot of every entry in key order."""
        return [(key, self._data[key]) for key in self._keys]

    async def _read_page(
        self,
        start: bytes,
        end: bytes,
        after: bytes | None,
        limit: int,
    ) -> list[tuple[bytes, bytes]]:
        lo = bisect_left(self._keys, start) if after is None else bisect_right(self._keys, after)
        hi = bisect_left(self._keys, end)
        return [(key, self._data[key]) for key in self._keys[lo : min(lo + limit, hi)]]

    async def _apply_batch(self, ops: list[BatchOp]) -> None:
        for op in ops:
            if op.type == "put":
                if op.key not in self._data:
                    insort(self._keys, op.key)
                self._data[op.key] = op.value
            elif op.key in self._data:
                del self._data[op.key]
                del self._keys[bisect_left(self._keys, op.key)]

    async def _get(self, key: bytes) -> bytes | None:
        return self._data.get(key)

    async def _close(self) -> None:
        self._keys.clear()
        self._data.clear()
