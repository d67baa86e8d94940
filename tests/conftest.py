"""Pytest fixtures and test utilities for the retrieval engine test suite."""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

from embeddings.embedder import EmbeddingClient
from shared.exceptions import EmbeddingError
from shared.schemas import Chunk, CorpusIndex


class StubEmbedder(EmbeddingClient):
    """
    Embedder returning canned vectors.

    Queries found in `vectors` get their vector, anything else gets
    `default`. With `fail=True` every call raises EmbeddingError.
    """

    model_name = "stub"

    def __init__(
        self,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        default: Optional[Sequence[float]] = None,
        fail: bool = False,
    ):
        self.vectors = vectors or {}
        self.default = default
        self.fail = fail
        self.calls: List[List[str]] = []

    def embed(self, texts: List[str]) -> np.ndarray:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingError("embedding service unavailable")
        out = []
        for text in texts:
            vec = self.vectors.get(text, self.default)
            if vec is None:
                raise EmbeddingError(f"no vector for {text!r}")
            out.append(vec)
        return np.asarray(out, dtype=np.float64)


def make_chunk(chunk_id: str, embedding, text: str = None, metadata=None, page=None) -> Chunk:
    return Chunk(
        id=chunk_id,
        text=text if text is not None else f"text of {chunk_id}",
        embedding=list(embedding),
        metadata=metadata,
        page=page,
    )


def make_index(chunks: List[Chunk], dims: int = None, model: str = "stub") -> CorpusIndex:
    if dims is None:
        dims = len(chunks[0].embedding) if chunks else 3
    return CorpusIndex(model=model, dims=dims, created_at="2024-05-01T00:00:00Z", chunks=chunks)


# ============================================================================
# CORPUS FIXTURES
# ============================================================================


@pytest.fixture
def record_chunks() -> List[Chunk]:
    """Fine-grained corpus: one chunk per transaction."""
    return [
        make_chunk(
            "tx_1",
            [1.0, 0.0, 0.0],
            "Spotify subscription payment 1990 KZT",
            {"year": 2024, "month": 3, "merchant": "spotify", "category_lvl1": "subscription"},
        ),
        make_chunk(
            "tx_2",
            [0.0, 1.0, 0.0],
            "Groceries at Magnum 12500 KZT",
            {"year": 2024, "month": 3, "merchant": "magnum", "category_lvl1": "groceries"},
        ),
        make_chunk(
            "tx_3",
            [0.9, 0.1, 0.0],
            "Netflix subscription payment 3500 KZT",
            {"year": 2024, "month": 4, "merchant": "netflix", "category_lvl1": "subscription"},
        ),
    ]


@pytest.fixture
def summary_chunks() -> List[Chunk]:
    """Coarse-grained corpus: precomputed aggregates."""
    return [
        make_chunk(
            "sum_2024-03_totals",
            [0.7, 0.7, 0.0],
            "In 2024-03 income was 500000 KZT and expenses 14490 KZT",
            {"year": 2024, "month": 3, "kind": "monthly_totals"},
        ),
        make_chunk(
            "sum_recurring_list",
            [0.0, 0.0, 1.0],
            "Recurring subscriptions: Spotify 1990 KZT; Netflix 3500 KZT",
            {"kind": "recurring_list"},
        ),
    ]


@pytest.fixture
def record_index(record_chunks) -> CorpusIndex:
    return make_index(record_chunks)


@pytest.fixture
def summary_index(summary_chunks) -> CorpusIndex:
    return make_index(summary_chunks)


@pytest.fixture
def query_embedder() -> StubEmbedder:
    """Every query embeds close to the Spotify transaction."""
    return StubEmbedder(default=[1.0, 0.0, 0.0])
