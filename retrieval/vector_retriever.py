"""
In-memory vector store with cosine similarity and MMR diversification.

Supports:
- Unit-normalized embedding matrix (copied at load, caller data untouched)
- Threshold preselection with a top-N fallback
- Maximal Marginal Relevance selection

Corpora are small (low thousands of chunks), so a brute-force O(n) scan
is used instead of an ANN index.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from shared.exceptions import DimensionMismatchError
from shared.schemas import CorpusIndex

logger = logging.getLogger(__name__)


@dataclass
class VectorSearchResult:
    """Result from vector search."""

    id: str
    text: str
    score: float  # Cosine similarity in [-1, 1]
    page: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def normalize(vec: Sequence[float]) -> np.ndarray:
    """Return a unit-length copy of vec. A zero vector stays zero."""
    arr = np.array(vec, dtype=np.float64)
    norm = np.linalg.norm(arr)
    return arr / (norm or 1.0)


def cosine(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two unit vectors."""
    return float(np.dot(a, b))


class VectorStore:
    """
    Vector store over a single corpus.

    Usage:
        store = VectorStore(index)
        results = store.search(query_embedding, top_k=5, min_score=0.25, mmr_lambda=0.5)
    """

    def __init__(self, index: Optional[CorpusIndex] = None):
        self.model: Optional[str] = None
        self.dims: Optional[int] = None

        self._ids: List[str] = []
        self._texts: List[str] = []
        self._pages: List[Optional[int]] = []
        self._metadatas: List[Dict[str, Any]] = []
        self._embeddings: Optional[np.ndarray] = None  # (n, dims), unit rows

        if index is not None:
            self.load(index)

    @property
    def is_loaded(self) -> bool:
        return self._embeddings is not None

    def count(self) -> int:
        """Get chunk count."""
        return len(self._ids)

    def load(self, index: CorpusIndex) -> None:
        """
        Ingest a corpus, normalizing every embedding to unit length.

        Raises:
            DimensionMismatchError: a chunk embedding is not `dims` long
        """
        dims = index.dims
        for chunk in index.chunks:
            if len(chunk.embedding) != dims:
                raise DimensionMismatchError(dims, len(chunk.embedding), chunk.id)

        matrix = np.array(
            [chunk.embedding for chunk in index.chunks], dtype=np.float64
        ).reshape(len(index.chunks), dims)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0

        self.model = index.model
        self.dims = dims
        self._embeddings = matrix / norms
        self._ids = [chunk.id for chunk in index.chunks]
        self._texts = [chunk.text for chunk in index.chunks]
        self._pages = [chunk.page for chunk in index.chunks]
        self._metadatas = [dict(chunk.metadata or {}) for chunk in index.chunks]

        logger.info(
            f"Loaded {len(self._ids)} chunks (model={index.model}, dims={dims})"
        )

    def similarities(self, query_embedding: Sequence[float]) -> np.ndarray:
        """Cosine similarity of the query against every stored chunk."""
        if len(query_embedding) != self.dims:
            raise DimensionMismatchError(self.dims, len(query_embedding))
        q = normalize(query_embedding)
        return np.clip(self._embeddings @ q, -1.0, 1.0)

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 5,
        min_score: float = 0.25,
        mmr_lambda: float = 0.5,
    ) -> List[VectorSearchResult]:
        """
        Search the store.

        Args:
            query_embedding: Raw query vector (normalized here)
            top_k: Maximum number of results
            min_score: Minimal cosine similarity for a candidate
            mmr_lambda: 1 = relevance only, 0 = diversity only

        Returns:
            Diversity-filtered results sorted by raw relevance
        """
        if not self.is_loaded or self.count() == 0 or top_k <= 0:
            return []

        scores = self.similarities(query_embedding)

        # Candidates in relevance order; equal scores keep corpus order
        order = np.argsort(-scores, kind="stable")
        candidates = order[scores[order] >= min_score]
        if candidates.size == 0:
            # Nothing passed the threshold, keep the best few anyway
            candidates = order[: top_k * 3]

        selected = self._mmr_select(scores, candidates, top_k, mmr_lambda)
        selected.sort(key=lambda i: scores[i], reverse=True)

        return [
            VectorSearchResult(
                id=self._ids[i],
                text=self._texts[i],
                score=float(scores[i]),
                page=self._pages[i],
                metadata=dict(self._metadatas[i]),
            )
            for i in selected
        ]

    def _mmr_select(
        self,
        scores: np.ndarray,
        candidates: np.ndarray,
        top_k: int,
        mmr_lambda: float,
    ) -> List[int]:
        """
        Greedy MMR over candidates.

        mmr = lambda * relevance - (1 - lambda) * max_sim_to_selected
        The redundancy term starts at 0 and candidates arrive sorted by
        relevance, so the first pick is always the most relevant one.
        Ties go to the earliest candidate.
        """
        relevance = scores[candidates]
        cand_vectors = self._embeddings[candidates]
        redundancy = np.zeros(len(candidates))
        available = np.ones(len(candidates), dtype=bool)

        selected: List[int] = []
        while len(selected) < top_k and available.any():
            mmr = mmr_lambda * relevance - (1 - mmr_lambda) * redundancy
            mmr[~available] = -np.inf
            best = int(np.argmax(mmr))

            available[best] = False
            selected.append(int(candidates[best]))
            redundancy = np.maximum(redundancy, cand_vectors @ cand_vectors[best])

        return selected
