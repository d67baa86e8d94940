"""
Hybrid Retrieval Module.

Retrieval is the optical lens for your LLM.

This module implements:
- Vector retrieval (cosine similarity + MMR diversification)
- Lexical scoring (BM25 over the filtered pool)
- Metadata filtering (lenient equality constraints)
- Hybrid retrieval (score fusion across two corpora)
- Single-corpus retrieval with bounded context assembly
- Query routing and constraint extraction

Score fusion: score = w_dense * s_dense / max + w_bm25 * s_bm25 / max

Usage:
    from retrieval import HybridRetriever

    retriever = HybridRetriever(embedder)
    retriever.load(record_index, summary_index)
    results = retriever.search("What did I pay Spotify in March?", k=5)
"""

from .corpus_retriever import CorpusRetriever, RetrieveResult
from .hybrid_retriever import HybridRetriever
from .lexical_retriever import BM25Scorer, bm25_scores, tokenize
from .metadata_filter import apply_filter, matches
from .query_router import Constraints, QueryRouter, RouteDecision, extract_constraints, route_query
from .score_fusion import HybridResult, fuse_corpus_scores, normalize_by_max
from .vector_retriever import VectorSearchResult, VectorStore

__all__ = [
    "VectorStore",
    "VectorSearchResult",
    "BM25Scorer",
    "bm25_scores",
    "tokenize",
    "apply_filter",
    "matches",
    "HybridRetriever",
    "HybridResult",
    "fuse_corpus_scores",
    "normalize_by_max",
    "CorpusRetriever",
    "RetrieveResult",
    "QueryRouter",
    "RouteDecision",
    "Constraints",
    "extract_constraints",
    "route_query",
]
