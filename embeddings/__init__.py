"""
Embeddings Module.

CRITICAL: Never compare vectors from different models.

This module provides the embedding collaborator used at query time:
- HTTP client for OpenAI-compatible embeddings endpoints
- Local sentence-transformers client (embeddings.local_embedder)
- Deterministic query preprocessing

Usage:
    from embeddings import get_embedding_client

    client = get_embedding_client()
    vector = client.embed_query("groceries in March")
"""

from .embedder import EmbeddingClient, get_embedding_client, preprocess_text
from .http_client import HttpEmbeddingClient

__all__ = [
    "EmbeddingClient",
    "HttpEmbeddingClient",
    "get_embedding_client",
    "preprocess_text",
]
