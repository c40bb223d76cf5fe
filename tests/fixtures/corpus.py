"""Sample documents shared by the index tests."""

from __future__ import annotations


CORPUS: dict[int, str] = {
    0: "Tobi wants 4 dollars",
    2: "Loki is a ferret",
    3: "Tobi is also a ferret",
    4: "Jane is a bitchy ferret",
    5: "Tobi is employed by LearnBoost",
    6: "computing stuff",
    7: "simple words do not mean simple ideas",
    8: "The dog spoke the words, much to our unbelief.",
    9: "puppy dog eagle puppy frog puppy dog simple",
}


async def index_corpus(search, corpus: dict[int, str] | None = None) -> None:
    for doc_id, text in (corpus or CORPUS).items():
        await search.index(text, doc_id)
