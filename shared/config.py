"""
Configuration module for the retrieval engine.
Manages all environment variables and settings.

Credentials are read from the environment at startup and are never
hardcoded. Fusion weights and MMR defaults are tuning values, not
derived optima: adjust them here rather than in the retrievers.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


@dataclass
class EmbeddingConfig:
    """Embedding collaborator configuration - version this with your index."""

    provider: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "http")
    )
    model_name: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", "mxbai-embed-large:latest")
    )
    api_base: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_API_BASE", "http://localhost:11434/v1")
    )
    api_key: str = field(default_factory=lambda: os.getenv("EMBEDDING_API_KEY", ""))
    timeout: float = field(
        default_factory=lambda: float(os.getenv("EMBEDDING_TIMEOUT", "30"))
    )
    normalize: bool = True


@dataclass
class VectorSearchConfig:
    """Single-corpus search and context assembly defaults."""

    top_k: int = 5
    min_score: float = 0.25
    mmr_lambda: float = 0.5
    max_context_chars: int = 2000


@dataclass
class LexicalConfig:
    """BM25 parameters."""

    k1: float = 1.2
    b: float = 0.75


@dataclass
class HybridConfig:
    """
    Hybrid search configuration.

    dense_weight / lexical_weight and the MMR lambda are empirical
    values with no derivation behind them.
    """

    dense_weight: float = 0.6
    lexical_weight: float = 0.4
    dense_top_k_cap: int = 6
    min_score: float = 0.2
    mmr_lambda: float = 0.6
    default_k: int = 6
    epsilon: float = 1e-6
    lexical: LexicalConfig = field(default_factory=LexicalConfig)


@dataclass
class Settings:
    """Main application settings loaded from environment."""

    # Index files produced by the offline builders
    RECORD_INDEX_PATH: Optional[str] = field(
        default_factory=lambda: os.getenv("RECORD_INDEX_PATH")
    )
    SUMMARY_INDEX_PATH: Optional[str] = field(
        default_factory=lambda: os.getenv("SUMMARY_INDEX_PATH")
    )
    KNOWLEDGE_INDEX_PATH: Optional[str] = field(
        default_factory=lambda: os.getenv("KNOWLEDGE_INDEX_PATH")
    )

    # Chroma corpus store
    CHROMA_PATH: str = field(default_factory=lambda: os.getenv("CHROMA_PATH", "./data/chroma"))
    CHROMA_HOST: Optional[str] = field(default_factory=lambda: os.getenv("CHROMA_HOST"))
    CHROMA_PORT: int = field(default_factory=lambda: int(os.getenv("CHROMA_PORT", "8000")))

    # Application settings
    DEBUG: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Nested configs
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_search: VectorSearchConfig = field(default_factory=VectorSearchConfig)
    hybrid: HybridConfig = field(default_factory=HybridConfig)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
