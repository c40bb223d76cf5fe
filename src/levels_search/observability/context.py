"""Log correlation fields carried across async boundaries.

The context holds ``trace_id`` and ``span_id`` plus any fields bound with
:func:`log_context` (the index namespace, for instance). Tasks spawned by a
query copy the caller's context, so every scan logs under the same trace.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from collections.abc import Generator


trace_context: ContextVar[dict | None] = ContextVar("levels_trace_context", default=None)


def _fresh_ids() -> dict[str, str]:
    trace_id = uuid4().hex
    return {"trace_id": trace_id, "span_id": trace_id[:16]}


def get_trace_context() -> dict:
    """Return the current fields, starting a new trace when none is active."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), **_fresh_ids()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    trace_context.set({**get_trace_context(), "span_id": span_id})


@contextmanager
def log_context(**fields: object) -> Generator[dict, None, None]:
    """Bind ``fields`` for the duration of the block, restoring the previous context on exit."""
    token = trace_context.set({**get_trace_context(), **fields})
    try:
        yield trace_context.get()
    finally:
        trace_context.reset(token)
