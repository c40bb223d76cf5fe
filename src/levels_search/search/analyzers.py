"""Tokenizer pipeline turning raw text into stemmed index terms.

The design is a composable tokenizer/filter chain: a regex tokenizer emits
word-run tokens, a stop filter drops stop words and a stem filter normalizes
what is left. The module-level helpers (:func:`words`,
:func:`strip_stop_words`, :func:`stem`, :func:`tokenize`) expose each stage
on plain string lists.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
import re
from typing import Any, Protocol

from nltk.stem import PorterStemmer


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields one token per maximal word run."""

    def __init__(self, pattern: str = r"\w+", flags: int = re.UNICODE | re.MULTILINE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


DEFAULT_STOPWORDS = [
    "about", "above", "after", "again", "all", "also", "am", "an", "and", "another",
    "any", "are", "as", "at", "be", "because", "been", "before", "being", "below",
    "between", "both", "but", "by", "came", "can", "cannot", "come", "could", "did",
    "do", "does", "doing", "during", "each", "few", "for", "from", "further", "get",
    "got", "has", "had", "he", "have", "her", "here", "him", "himself", "his", "how",
    "if", "in", "into", "is", "it", "its", "itself", "like", "make", "many", "me",
    "might", "more", "most", "much", "must", "my", "myself", "never", "now", "of", "on",
    "only", "or", "other", "our", "ours", "ourselves", "out", "over", "own",
    "said", "same", "see", "should", "since", "so", "some", "still", "such", "take", "than",
    "that", "the", "their", "theirs", "them", "themselves", "then", "there", "these", "they",
    "this", "those", "through", "to", "too", "under", "until", "up", "very", "was",
    "way", "we", "well", "were", "what", "where", "when", "which", "while", "who",
    "whom", "with", "would", "why", "you", "your", "yours", "yourself",
    "a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k", "l", "m", "n",
    "o", "p", "q", "r", "s", "t", "u", "v", "w", "x", "y", "z",
    "$", "1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "_",
]  # fmt: skip

_DEFAULT_STOPWORD_SET = frozenset(DEFAULT_STOPWORDS)


def is_stop_word(word: str) -> bool:
    """Case-sensitive membership test against the default stop-word list."""
    return word in _DEFAULT_STOPWORD_SET


class StopFilter:
    """Removes stopwords from the stream.

    Matching is case-sensitive: "The" survives while "the" is dropped.
    """

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


@lru_cache(maxsize=1)
def _porter_stemmer() -> PorterStemmer:
    return PorterStemmer()


def porter_stem(word: str) -> str:
    """Stem ``word`` with NLTK's Porter stemmer (lowercases as a side effect)."""
    return _porter_stemmer().stem(word)


class StemFilter:
    """Applies a stemming function to every token."""

    def __init__(self, stemmer: Callable[[str], str] | None = None) -> None:
        self._stem = stemmer or porter_stem

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield token.copy_with(text=self._stem(token.text))


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class StandardAnalyzer:
    """Word runs, stop-word removal, then stemming."""

    def __init__(
        self,
        *,
        stopwords: Sequence[str] | None = None,
        stemmer: Callable[[str], str] | None = None,
    ) -> None:
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), [StopFilter(stopwords), StemFilter(stemmer)])

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)

    def terms(self, text: str) -> list[str]:
        return [token.text for token in self(text)]


_WORD_TOKENIZER = RegexTokenizer()
_STOP_FILTER = StopFilter()
_STEM_FILTER = StemFilter()
_STANDARD_ANALYZER = StandardAnalyzer()


def _as_tokens(texts: Iterable[str]) -> list[Token]:
    return [Token(text=word, position=idx, start_char=0, end_char=len(word)) for idx, word in enumerate(texts)]


def words(text: object) -> list[str]:
    """Return the ``\\w+`` runs in ``text``; non-strings are converted first."""
    return [token.text for token in _WORD_TOKENIZER(str(text))]


def strip_stop_words(tokens: Iterable[str] | None) -> list[str]:
    if not tokens:
        return []
    return [token.text for token in _STOP_FILTER(_as_tokens(tokens))]


def stem(tokens: Iterable[str]) -> list[str]:
    return [token.text for token in _STEM_FILTER(_as_tokens(tokens))]


def count_words(tokens: Iterable[str]) -> dict[str, int]:
    """Map each word to the number of times it occurs in ``tokens``."""
    counts: dict[str, int] = {}
    for word in tokens:
        counts[word] = counts.get(word, 0) + 1
    return counts


def tokenize(text: object) -> list[str]:
    """Index terms of ``text``: word runs, stop-word removal, stemming.

    Runs the module's :class:`StandardAnalyzer`, so indexing and querying
    share one pipeline.
    """
    return _STANDARD_ANALYZER.terms(str(text))
