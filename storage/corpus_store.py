"""
Corpus storage port.

The retrievers only need `get_meta` and `get_all_chunks`; writers use
`put_meta`, `put_chunks` and `clear`. Any backend implementing this
narrow interface can feed a VectorStore.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from shared.schemas import Chunk, CorpusIndex, CorpusMeta

logger = logging.getLogger(__name__)


class CorpusStore(ABC):
    """Key-value persistence for one corpus: a meta record plus chunks keyed by id."""

    @abstractmethod
    def get_meta(self) -> Optional[CorpusMeta]:
        """Corpus metadata, or None if never written."""

    @abstractmethod
    def get_all_chunks(self) -> List[Chunk]:
        """Every stored chunk."""

    @abstractmethod
    def put_meta(self, meta: CorpusMeta) -> None:
        """Replace the corpus metadata."""

    @abstractmethod
    def put_chunks(self, chunks: List[Chunk]) -> None:
        """Insert or replace chunks by id."""

    @abstractmethod
    def clear(self) -> None:
        """Drop metadata and all chunks."""

    def put_index(self, index: CorpusIndex) -> None:
        """Write a whole corpus."""
        self.put_meta(index.meta)
        self.put_chunks(list(index.chunks))


class InMemoryCorpusStore(CorpusStore):
    """
    Dict-backed store.

    Use for tests or single-process deployments where the corpus is
    built and searched in the same process.
    """

    def __init__(self):
        self._meta: Optional[CorpusMeta] = None
        self._chunks: Dict[str, Chunk] = {}

    def get_meta(self) -> Optional[CorpusMeta]:
        return self._meta

    def get_all_chunks(self) -> List[Chunk]:
        return list(self._chunks.values())

    def put_meta(self, meta: CorpusMeta) -> None:
        self._meta = meta

    def put_chunks(self, chunks: List[Chunk]) -> None:
        for chunk in chunks:
            self._chunks[chunk.id] = chunk

    def clear(self) -> None:
        self._meta = None
        self._chunks.clear()


def load_corpus(store: CorpusStore) -> Optional[CorpusIndex]:
    """
    Assemble a CorpusIndex from a store.

    Returns:
        None when the store has no metadata or no chunks
    """
    meta = store.get_meta()
    chunks = store.get_all_chunks()
    if meta is None or not chunks:
        logger.info("Corpus store is empty")
        return None

    return CorpusIndex(
        model=meta.model,
        dims=meta.dims,
        created_at=meta.created_at,
        chunks=chunks,
    )
