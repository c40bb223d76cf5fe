"""Phonetic mapping of stemmed tokens.

Each token is reduced to its Metaphone code so spelling variants collapse onto
the same postings:

    >>> map_to_code_table(["tobi", "wants", "4", "dollars"])
    {'tobi': 'TB', 'wants': 'WNTS', '4': '4', 'dollars': 'TLRS'}
    >>> map_to_codes(["foo", "bar", "baz"])
    ['F', 'BR', 'BS']
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import jellyfish

from levels_search.search.keys import WORD_FAMILY


PhoneticEncoder = Callable[[str], str]


def phonetic_code(token: str, encoder: PhoneticEncoder | None = None) -> str:
    """Return the phonetic code for ``token``.

    Tokens the encoder reduces to nothing (digits, underscores) keep their own
    text, so numbers remain searchable.
    """
    code = (encoder or jellyfish.metaphone)(token)
    return code or token


def map_to_code_table(tokens: Iterable[str], encoder: PhoneticEncoder | None = None) -> dict[str, str]:
    """Map every distinct token to its phonetic code."""
    table: dict[str, str] = {}
    for token in tokens:
        if token not in table:
            table[token] = phonetic_code(token, encoder)
    return table


def map_to_codes(tokens: Iterable[str], encoder: PhoneticEncoder | None = None) -> list[str]:
    """Return the distinct phonetic codes of ``tokens`` in first-seen order."""
    return list(dict.fromkeys(map_to_code_table(tokens, encoder).values()))


def phonetic_keys(tokens: Iterable[str], encoder: PhoneticEncoder | None = None) -> list[tuple[str, str]]:
    """Return the ``(family, code)`` key prefixes a query over ``tokens`` scans."""
    return [(WORD_FAMILY, code) for code in map_to_codes(tokens, encoder)]
