"""
Single-corpus retrieval for the general knowledge base.

No fusion and no filtering: embed the query, run the vector store
search and assemble a bounded context string.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from context.context_builder import assemble_context
from embeddings.embedder import EmbeddingClient
from shared.config import VectorSearchConfig, settings
from shared.exceptions import DimensionMismatchError, EmbeddingError
from shared.schemas import CorpusIndex
from storage.corpus_store import CorpusStore, load_corpus

from .vector_retriever import VectorSearchResult, VectorStore

logger = logging.getLogger(__name__)


@dataclass
class RetrieveResult:
    """Assembled context plus every chunk the search returned."""

    context: str
    chunks: List[VectorSearchResult]
    chunks_included: int


class CorpusRetriever:
    """
    Context retriever over one corpus.

    Usage:
        retriever = CorpusRetriever(embedder)
        retriever.load(read_corpus_index("data/rag_index.json"))
        result = retriever.retrieve("warranty terms", max_context_chars=2000)
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        config: Optional[VectorSearchConfig] = None,
    ):
        self.embedder = embedder
        self.config = config or settings.vector_search
        self._store: Optional[VectorStore] = None

    @property
    def is_loaded(self) -> bool:
        return self._store is not None

    def count(self) -> int:
        return self._store.count() if self._store else 0

    def load(self, index: CorpusIndex) -> None:
        self._store = VectorStore(index)

    def load_from_store(self, store: CorpusStore) -> bool:
        """
        Load the corpus from storage.

        Returns:
            False if the store has no metadata or no chunks
        """
        index = load_corpus(store)
        if index is None:
            return False
        self.load(index)
        return True

    def retrieve(
        self,
        query: str,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
        mmr_lambda: Optional[float] = None,
        max_context_chars: Optional[int] = None,
    ) -> Optional[RetrieveResult]:
        """
        Retrieve and assemble context.

        Args:
            query: Search query
            top_k: Number of chunks to search for
            min_score: Minimal cosine similarity
            mmr_lambda: Relevance/diversity trade-off
            max_context_chars: Hard cap on the context length

        Returns:
            RetrieveResult, or None when no corpus is loaded or the
            query could not be embedded
        """
        if self._store is None:
            return None

        cfg = self.config
        top_k = cfg.top_k if top_k is None else top_k
        min_score = cfg.min_score if min_score is None else min_score
        mmr_lambda = cfg.mmr_lambda if mmr_lambda is None else mmr_lambda
        max_context_chars = cfg.max_context_chars if max_context_chars is None else max_context_chars

        try:
            query_embedding = self.embedder.embed_query(query)
            results = self._store.search(
                query_embedding, top_k=top_k, min_score=min_score, mmr_lambda=mmr_lambda
            )
        except (EmbeddingError, DimensionMismatchError) as e:
            logger.warning(f"Retrieval skipped, no context: {e}")
            return None

        assembled = assemble_context(results, max_context_chars=max_context_chars)
        return RetrieveResult(
            context=assembled.text,
            chunks=results,
            chunks_included=assembled.chunks_included,
        )
