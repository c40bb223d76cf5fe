"""Set algebra used to merge per-code posting sets into a query result."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TypeVar


T = TypeVar("T")


class Combinator(str, Enum):
    """Boolean operation applied across the posting sets of a query."""

    INTERSECTION = "intersection"
    UNION = "union"

    @classmethod
    def parse(cls, value: Combinator | str) -> Combinator:
        """Resolve a combinator or one of its names ("and", "or", "intersect", ...)."""
        if isinstance(value, Combinator):
            return value
        normalized = str(value).strip().lower()
        try:
            return _ALIASES[normalized]
        except KeyError:
            msg = f"Unknown combinator '{value}'. Available: {sorted(_ALIASES)}"
            raise ValueError(msg) from None


_ALIASES: dict[str, Combinator] = {
    "and": Combinator.INTERSECTION,
    "intersect": Combinator.INTERSECTION,
    "intersection": Combinator.INTERSECTION,
    "or": Combinator.UNION,
    "union": Combinator.UNION,
}


def intersection(groups: Iterable[Iterable[T]]) -> set[T]:
    """Members present in every group; no groups yields an empty set."""
    result: set[T] | None = None
    for group in groups:
        result = set(group) if result is None else result.intersection(group)
        if not result:
            return set()
    return result or set()


def union(groups: Iterable[Iterable[T]]) -> set[T]:
    """Members present in at least one group."""
    result: set[T] = set()
    for group in groups:
        result.update(group)
    return result


def combine(groups: Iterable[Iterable[T]], combinator: Combinator | str = Combinator.INTERSECTION) -> list[T]:
    """Merge ``groups`` with ``combinator`` and return the members sorted ascending."""
    resolved = Combinator.parse(combinator)
    merged = intersection(groups) if resolved is Combinator.INTERSECTION else union(groups)
    return sorted(merged)
