"""
Score fusion utilities for hybrid retrieval.

Combines per-corpus scores from:
- Vector similarity (dense)
- BM25 (lexical)

Formula: fused = w_dense * dense / max(dense) + w_lex * lex / max(lex)

Chunks strong in either signal surface; chunks strong in both win.
The 0.6 / 0.4 default split is a tuning choice, see HybridConfig.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from shared.schemas import CorpusTag

from .lexical_retriever import LexicalDocument
from .vector_retriever import VectorSearchResult

logger = logging.getLogger(__name__)


@dataclass
class HybridResult:
    """Result after score fusion."""

    id: str
    text: str
    score: float  # Fused score
    source: CorpusTag
    dense_score: float = 0.0
    lexical_score: float = 0.0


def normalize_by_max(scores: Dict[str, float], epsilon: float = 1e-6) -> Dict[str, float]:
    """
    Divide every score by the observed maximum.

    The maximum is floored at epsilon so an all-zero map never divides by zero.
    """
    if not scores:
        return {}
    max_s = max(max(scores.values()), epsilon)
    return {doc_id: s / max_s for doc_id, s in scores.items()}


def fuse_corpus_scores(
    dense_results: Sequence[VectorSearchResult],
    lexical_scores: Dict[str, float],
    pool: Sequence[LexicalDocument],
    source: CorpusTag,
    k: int,
    dense_weight: float = 0.6,
    lexical_weight: float = 0.4,
    epsilon: float = 1e-6,
) -> List[HybridResult]:
    """
    Fuse dense and lexical scores for one corpus.

    Args:
        dense_results: Vector store hits (already restricted to the pool)
        lexical_scores: {doc_id: bm25} over the pool
        pool: Filtered documents, used to look up lexical-only texts
        source: Corpus tag for provenance
        k: Maximum number of lexical-only additions
        dense_weight: Weight for normalized dense scores
        lexical_weight: Weight for normalized lexical scores
        epsilon: Floor for the normalizing maxima

    Returns:
        Unsorted list of HybridResult
    """
    dense_max = max([r.score for r in dense_results] + [epsilon])
    lex_norm = normalize_by_max(lexical_scores, epsilon)

    results: List[HybridResult] = []
    seen = set()

    for r in dense_results:
        fused = dense_weight * (r.score / dense_max) + lexical_weight * lex_norm.get(r.id, 0.0)
        results.append(
            HybridResult(
                id=r.id,
                text=r.text,
                score=fused,
                source=source,
                dense_score=r.score,
                lexical_score=lexical_scores.get(r.id, 0.0),
            )
        )
        seen.add(r.id)

    texts = {doc.id: doc.text for doc in pool}
    lexical_top = sorted(lexical_scores.items(), key=lambda x: x[1], reverse=True)[:k]
    for doc_id, lex_score in lexical_top:
        if doc_id in seen or doc_id not in texts:
            continue
        results.append(
            HybridResult(
                id=doc_id,
                text=texts[doc_id],
                score=lexical_weight * lex_norm[doc_id],
                source=source,
                lexical_score=lex_score,
            )
        )

    logger.debug(
        f"Fused {source.value}: {len(seen)} dense, {len(results) - len(seen)} lexical-only"
    )
    return results
