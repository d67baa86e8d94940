"""
Embedding collaborator interface.

CRITICAL: Never compare vectors from different models. The query must be
embedded with the same model (and dims) the corpus was built with.

Implementations raise EmbeddingError on any failure; the retrievers
catch it and treat the query as having no context.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from shared.config import EmbeddingConfig, settings
from shared.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def preprocess_text(text: str) -> str:
    """
    Deterministic text preprocessing.

    Collapses whitespace and trims; casing is kept for proper nouns
    and acronyms.
    """
    return " ".join((text or "").split())


class EmbeddingClient(ABC):
    """
    Produces one vector per input text.

    Usage:
        client = get_embedding_client()
        vector = client.embed_query("how much did I spend on groceries")
    """

    model_name: str

    @abstractmethod
    def embed(self, texts: List[str]) -> np.ndarray:
        """
        Embed a batch of texts.

        Returns:
            Array of shape (len(texts), dims)

        Raises:
            EmbeddingError: the embedding could not be produced
        """

    def embed_query(self, query: str) -> np.ndarray:
        """Embed a single query for retrieval."""
        raw = self.embed([preprocess_text(query)])
        try:
            vectors = np.asarray(raw, dtype=np.float64)
        except (ValueError, TypeError) as exc:
            raise EmbeddingError(f"Query embedding is not numeric: {exc}") from exc
        if vectors.ndim != 2 or len(vectors) != 1:
            raise EmbeddingError(f"Expected 1 embedding row, got shape {vectors.shape}")
        if not np.isfinite(vectors).all():
            raise EmbeddingError("Query embedding contains non-finite values")
        return vectors[0]


def get_embedding_client(config: Optional[EmbeddingConfig] = None) -> EmbeddingClient:
    """
    Build the embedding client selected by config.provider.

    Providers:
    - http: OpenAI-compatible /embeddings endpoint
    - local: sentence-transformers model loaded in process
    """
    config = config or settings.embedding

    if config.provider == "http":
        from .http_client import HttpEmbeddingClient

        return HttpEmbeddingClient(config=config)

    if config.provider == "local":
        from .local_embedder import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(config=config)

    raise ValueError(f"Unknown embedding provider: {config.provider}")
