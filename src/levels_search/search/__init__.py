"""
Phonetic full-text indexing engine.

- analyzers: word tokenizer, stop-word filter, stemming
- phonetic: token to Metaphone code mapping
- keys: order-preserving key layout of the inverted index
- combinators: intersection/union over posting sets
- index: Search (index/remove) and Query (concurrent boolean evaluation)
"""
