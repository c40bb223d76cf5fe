"""Phonetic inverted index over an ordered key-value store.

Indexing tokenizes text, maps each token to its phonetic code and writes a
forward ``(code, id)`` and a reverse ``(id, code)`` entry per distinct code in
one atomic batch. Queries resolve every code with a concurrent range scan and
merge the per-code id sets with intersection or union.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
import logging

from levels_search.errors import ConfigurationError
from levels_search.observability.context import log_context
from levels_search.observability.metrics import QUERY_CODES, QUERY_RESULTS, track_operation
from levels_search.observability.tracing import create_span
from levels_search.search import keys
from levels_search.search.analyzers import tokenize
from levels_search.search.combinators import Combinator, combine
from levels_search.search.phonetic import PhoneticEncoder, map_to_codes
from levels_search.storage.base import AbstractOrderedStore, BatchOp


logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_SCANS = 16

TextAnalyzer = Callable[[str], list[str]]


def create_index(
    store: AbstractOrderedStore | None,
    namespace: str | None,
    *,
    analyzer: TextAnalyzer | None = None,
    encoder: PhoneticEncoder | None = None,
    max_concurrent_scans: int = DEFAULT_MAX_CONCURRENT_SCANS,
) -> Search:
    """Return a :class:`Search` writing under ``namespace`` in ``store``."""
    if store is None:
        raise ConfigurationError("create_index() requires an ordered store")
    if not namespace or not str(namespace).strip():
        raise ConfigurationError("create_index() requires a namespace for key isolation")
    if max_concurrent_scans < 1:
        raise ConfigurationError("max_concurrent_scans must be at least 1")
    return Search(
        store,
        str(namespace).strip(),
        analyzer=analyzer,
        encoder=encoder,
        max_concurrent_scans=max_concurrent_scans,
    )


class Search:
    """Index, remove and query documents under one namespace."""

    def __init__(
        self,
        store: AbstractOrderedStore,
        namespace: str,
        *,
        analyzer: TextAnalyzer | None = None,
        encoder: PhoneticEncoder | None = None,
        max_concurrent_scans: int = DEFAULT_MAX_CONCURRENT_SCANS,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self._analyze = analyzer or tokenize
        self._encoder = encoder
        self._scan_limit = asyncio.Semaphore(max_concurrent_scans)

    def codes(self, text: str) -> list[str]:
        """Distinct phonetic codes ``text`` contributes; identical for indexing and querying."""
        return map_to_codes(self._analyze(text), self._encoder)

    async def index(self, text: str, doc_id: int | str) -> None:
        """Index ``text`` under ``doc_id``.

        Postings accumulate: indexing the same id twice adds the new codes
        without removing the old ones.
        """
        doc_id = keys.coerce_doc_id(doc_id)
        codes = self.codes(text)
        ops: list[BatchOp] = []
        for code in codes:
            ops.append(BatchOp.put(keys.word_key(self.namespace, code, doc_id), keys.pack((doc_id,))))
            ops.append(BatchOp.put(keys.object_key(self.namespace, doc_id, code), keys.pack((code,))))

        with log_context(namespace=self.namespace):
            with track_operation("index"), create_span("levels.index", attributes={"levels.doc_id": doc_id}):
                await self.store.batch(ops)
            logger.debug("Indexed document %s with %d phonetic codes", doc_id, len(codes))

    async def remove(self, doc_id: int | str) -> None:
        """Remove every posting contributed by ``doc_id``.

        Only the ``(code, doc_id)`` forward entries are deleted, so documents
        sharing a code keep their postings. All deletes land in one batch.
        """
        doc_id = keys.coerce_doc_id(doc_id)
        with log_context(namespace=self.namespace):
            with track_operation("remove"), create_span("levels.remove", attributes={"levels.doc_id": doc_id}):
                codes = await self._codes_for(doc_id)
                if not codes:
                    logger.debug("Document %s has no postings; nothing to remove", doc_id)
                    return
                ops: list[BatchOp] = []
                for code in codes:
                    ops.append(BatchOp.delete(keys.word_key(self.namespace, code, doc_id)))
                    ops.append(BatchOp.delete(keys.object_key(self.namespace, doc_id, code)))
                await self.store.batch(ops)
            logger.debug("Removed document %s (%d phonetic codes)", doc_id, len(codes))

    async def _codes_for(self, doc_id: int) -> list[str]:
        start, end = keys.object_range(self.namespace, doc_id)
        codes: list[str] = []
        async with self.store.scan(start, end) as cursor:
            async for key, _value in cursor:
                codes.append(str(keys.unpack(key)[-1]))
        return codes

    async def postings(self, code: str) -> set[int]:
        """Return the ids holding ``code``."""
        start, end = keys.word_range(self.namespace, code)
        hits: set[int] = set()
        async with self._scan_limit:
            async with self.store.scan(start, end) as cursor:
                async for _key, value in cursor:
                    hits.add(int(keys.unpack(value)[0]))
        return hits

    def query(self, text: str) -> Query:
        """Start a query over ``text``; intersection unless changed on the builder."""
        return Query(text, self)


class Query:
    """Query builder returned by :meth:`Search.query`."""

    def __init__(self, text: str, search: Search) -> None:
        self.text = text
        self.search = search
        self.combinator = Combinator.INTERSECTION

    def with_combinator(self, combinator: Combinator | str) -> Query:
        self.combinator = Combinator.parse(combinator)
        return self

    def type(self, name: Combinator | str) -> Query:
        """Alias of :meth:`with_combinator` accepting "and"/"or"/"intersect"/"union"."""
        return self.with_combinator(name)

    async def execute(self) -> list[int]:
        """Run the query and return matching ids sorted ascending."""
        codes = self.search.codes(self.text)
        QUERY_CODES.observe(len(codes))
        if not codes:
            QUERY_RESULTS.observe(0)
            return []

        attributes = {"levels.codes": len(codes), "levels.combinator": self.combinator.value}
        with log_context(namespace=self.search.namespace):
            with track_operation("query"), create_span("levels.query", attributes=attributes):
                groups = await _gather_cancelling(self.search.postings(code) for code in codes)
                ids = combine(groups, self.combinator)

            QUERY_RESULTS.observe(len(ids))
            logger.debug(
                "Query %r over %d codes (%s) matched %d ids", self.text, len(codes), self.combinator.value, len(ids)
            )
        return ids


async def _gather_cancelling(coros: Iterable) -> list:
    """Run ``coros`` concurrently; on the first failure cancel the rest and re-raise it."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Let cancelled scans release their cursors before the error propagates.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
