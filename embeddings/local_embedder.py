"""
In-process embedding with sentence-transformers.

Useful when no embeddings endpoint is available. The corpus must have
been built with the same model, or dims will not match.
"""

import logging
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from shared.config import EmbeddingConfig, settings
from shared.exceptions import EmbeddingError

from .embedder import EmbeddingClient, preprocess_text

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder(EmbeddingClient):
    """
    Local embedding client.

    Usage:
        embedder = SentenceTransformerEmbedder(EmbeddingConfig(model_name="all-MiniLM-L6-v2"))
        vectors = embedder.embed(["text1", "text2"])
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or settings.embedding
        self.model_name = self.config.model_name
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model."""
        if self._model is None:
            logger.info(f"Loading embedding model: {self.model_name}")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, texts: List[str]) -> np.ndarray:
        processed = [preprocess_text(t) for t in texts]
        try:
            vectors = self.model.encode(
                processed, show_progress_bar=False, convert_to_numpy=True
            )
        except (OSError, RuntimeError, ValueError) as exc:
            raise EmbeddingError(f"Local embedding failed: {exc}") from exc

        vectors = np.asarray(vectors, dtype=np.float64)
        if self.config.normalize:
            norms = np.linalg.norm(vectors, axis=1, keepdims=True)
            vectors = vectors / (norms + 1e-10)  # Avoid division by zero
        return vectors
