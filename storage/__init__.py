"""
Corpus Storage Module.

Narrow storage port for corpora, so the retrievers can be fed from
any backend:
- InMemoryCorpusStore for tests
- ChromaCorpusStore for persistent storage (storage.chroma_store)
- JSON index files written by the offline builders

Usage:
    from storage import InMemoryCorpusStore, load_corpus

    store = InMemoryCorpusStore()
    store.put_index(index)
    corpus = load_corpus(store)
"""

from .corpus_store import CorpusStore, InMemoryCorpusStore, load_corpus
from .index_file import read_corpus_index, write_corpus_index

__all__ = [
    "CorpusStore",
    "InMemoryCorpusStore",
    "load_corpus",
    "read_corpus_index",
    "write_corpus_index",
]
