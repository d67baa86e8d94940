"""
Hybrid retrieval over two corpora: fine-grained records and
coarse-grained summaries.

Per corpus:
- Metadata filter on the raw chunk list
- Dense search with MMR, restricted to the filtered pool
- BM25 over the filtered pool
- Score fusion: score = w_dense * s_dense + w_lex * s_bm25

Both corpora's fused lists are merged, sorted and truncated to k.
Search never raises on embedding failure: it returns an empty list
and the caller answers without context.
"""

import logging
from typing import List, Optional

from embeddings.embedder import EmbeddingClient
from shared.config import HybridConfig, settings
from shared.exceptions import DimensionMismatchError, EmbeddingError
from shared.schemas import Chunk, CorpusIndex, CorpusTag, SearchFilter
from storage.corpus_store import CorpusStore, load_corpus

from .lexical_retriever import BM25Scorer
from .metadata_filter import apply_filter
from .score_fusion import HybridResult, fuse_corpus_scores
from .vector_retriever import VectorStore

logger = logging.getLogger(__name__)


class _Corpus:
    """A loaded corpus: vector store plus the raw chunks for BM25 and filtering."""

    def __init__(self, tag: CorpusTag, index: CorpusIndex):
        self.tag = tag
        self.store = VectorStore(index)
        self.chunks: List[Chunk] = list(index.chunks)


class HybridRetriever:
    """
    Hybrid retrieval combining vector + lexical + metadata.

    Usage:
        retriever = HybridRetriever(embedder)
        retriever.load(record_index, summary_index)
        results = retriever.search(
            "spotify subscription",
            search_filter=SearchFilter(year=2024, month=3),
            k=6,
        )
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        config: Optional[HybridConfig] = None,
    ):
        """
        Args:
            embedder: Embedding collaborator for queries
            config: Fusion weights and dense search parameters
        """
        self.embedder = embedder
        self.config = config or settings.hybrid
        self._scorer = BM25Scorer(k1=self.config.lexical.k1, b=self.config.lexical.b)
        self._corpora: List[_Corpus] = []

    @property
    def is_loaded(self) -> bool:
        return bool(self._corpora)

    def count(self, tag: CorpusTag) -> int:
        """Chunk count of one corpus (0 if not loaded)."""
        for corpus in self._corpora:
            if corpus.tag == tag:
                return corpus.store.count()
        return 0

    def load(self, record_index: CorpusIndex, summary_index: CorpusIndex) -> None:
        """
        Load both corpora.

        Raises:
            DimensionMismatchError: a chunk does not match its corpus dims
        """
        corpora = [
            _Corpus(CorpusTag.RECORD, record_index),
            _Corpus(CorpusTag.SUMMARY, summary_index),
        ]
        self._corpora = corpora
        logger.info(
            f"Hybrid retriever loaded: {len(record_index.chunks)} records, "
            f"{len(summary_index.chunks)} summaries"
        )

    def load_from_stores(self, record_store: CorpusStore, summary_store: CorpusStore) -> bool:
        """
        Load both corpora from storage.

        Returns:
            False if either store is empty (nothing is loaded)
        """
        record_index = load_corpus(record_store)
        summary_index = load_corpus(summary_store)
        if record_index is None or summary_index is None:
            return False
        self.load(record_index, summary_index)
        return True

    def search(
        self,
        query: str,
        search_filter: Optional[SearchFilter] = None,
        k: Optional[int] = None,
    ) -> List[HybridResult]:
        """
        Hybrid search with score fusion.

        Args:
            query: Search query
            search_filter: Metadata equality constraints
            k: Number of results

        Returns:
            Up to k results sorted by fused score, each tagged with its corpus
        """
        k = self.config.default_k if k is None else k
        if not self.is_loaded or k <= 0:
            return []

        try:
            query_embedding = self.embedder.embed_query(query)
        except EmbeddingError as e:
            logger.warning(f"Query embedding failed, no context: {e}")
            return []

        dense_top_k = min(k, self.config.dense_top_k_cap)
        fused: List[HybridResult] = []

        for corpus in self._corpora:
            pool = apply_filter(corpus.chunks, search_filter)
            pool_ids = {chunk.id for chunk in pool}

            try:
                dense = corpus.store.search(
                    query_embedding,
                    top_k=dense_top_k,
                    min_score=self.config.min_score,
                    mmr_lambda=self.config.mmr_lambda,
                )
            except DimensionMismatchError as e:
                logger.warning(f"Query embedding does not fit {corpus.tag.value} corpus: {e}")
                return []

            # Dense hits outside the filtered pool are dropped
            dense = [r for r in dense if r.id in pool_ids]
            lexical = self._scorer.score(query, pool)

            fused.extend(
                fuse_corpus_scores(
                    dense,
                    lexical,
                    pool,
                    source=corpus.tag,
                    k=k,
                    dense_weight=self.config.dense_weight,
                    lexical_weight=self.config.lexical_weight,
                    epsilon=self.config.epsilon,
                )
            )

        fused.sort(key=lambda r: r.score, reverse=True)
        logger.debug(f"Hybrid search: {len(fused)} fused candidates, returning {min(k, len(fused))}")
        return fused[:k]
