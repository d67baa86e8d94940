"""
OpenAI-compatible embeddings API client.

Request:  POST {api_base}/embeddings  {"model": ..., "input": [...]}
Response: {"data": [{"embedding": [...]}, ...]}

A single failed attempt is final: no retries are performed here.
"""

import logging
from typing import List, Optional

import httpx
import numpy as np

from shared.config import EmbeddingConfig, settings
from shared.exceptions import EmbeddingError

from .embedder import EmbeddingClient, preprocess_text

logger = logging.getLogger(__name__)


class HttpEmbeddingClient(EmbeddingClient):
    """Embedding client for Ollama / OpenAI style endpoints."""

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            config: Endpoint, model and credentials
            client: Pre-built httpx client (tests inject a MockTransport)
        """
        self.config = config or settings.embedding
        self.model_name = self.config.model_name

        headers = {"accept": "application/json"}
        if self.config.api_key:
            headers["authorization"] = f"Bearer {self.config.api_key}"

        self._client = client or httpx.Client(
            base_url=self.config.api_base.rstrip("/"),
            timeout=self.config.timeout,
        )
        self._headers = headers

    def embed(self, texts: List[str]) -> np.ndarray:
        payload = {
            "model": self.model_name,
            "input": [preprocess_text(t) for t in texts],
        }

        try:
            resp = self._client.post("/embeddings", json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Embeddings request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise EmbeddingError(
                f"Embeddings API error {resp.status_code}: {resp.text[:200]}"
            )

        try:
            data = resp.json()["data"]
            vectors = np.asarray([item["embedding"] for item in data], dtype=np.float64)
        except (ValueError, KeyError, TypeError) as exc:
            raise EmbeddingError(f"Malformed embeddings response: {exc}") from exc

        # null entries come through np.asarray as nan
        if vectors.ndim != 2 or not np.isfinite(vectors).all():
            raise EmbeddingError("Malformed embeddings response: missing or non-finite values")

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embeddings count {len(vectors)} does not match inputs {len(texts)}"
            )

        logger.debug(f"Embedded {len(texts)} texts with {self.model_name}")
        return vectors

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpEmbeddingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
