"""
Pydantic schemas for corpus documents and API request/response models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CorpusTag(str, Enum):
    """Which corpus a hybrid result came from."""

    RECORD = "record"  # one chunk per atomic record
    SUMMARY = "summary"  # one chunk per precomputed aggregate


class RouteType(str, Enum):
    SEMANTIC = "semantic"
    STRUCTURED = "structured"


# ---------------------------------------------------------------------------
# Corpus documents
# ---------------------------------------------------------------------------


class Chunk(BaseModel):
    """A minimal retrievable unit: text, embedding and optional metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    embedding: List[float]
    metadata: Optional[Dict[str, Any]] = None
    page: Optional[int] = None


class CorpusMeta(BaseModel):
    """Corpus-level metadata shared by every chunk."""

    model_config = ConfigDict(populate_by_name=True)

    model: str
    dims: int = Field(..., ge=1)
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )


class CorpusIndex(CorpusMeta):
    """
    A corpus ready to be loaded into a VectorStore.

    JSON shape: {model, dims, createdAt, chunks: [{id, text, embedding, metadata?}]}
    """

    version: Optional[int] = None
    chunks: List[Chunk] = Field(default_factory=list)

    @property
    def meta(self) -> CorpusMeta:
        return CorpusMeta(model=self.model, dims=self.dims, created_at=self.created_at)


class SearchFilter(BaseModel):
    """Equality constraints over chunk metadata. Absent fields are unconstrained."""

    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    category: Optional[str] = None
    merchant: Optional[str] = None
    currency: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# API models
# ---------------------------------------------------------------------------


class HybridSearchRequest(BaseModel):
    """Request model for hybrid search over the record and summary corpora."""

    query: str = Field(..., min_length=1, description="Natural-language query")
    filter: Optional[SearchFilter] = Field(
        default=None, description="Metadata equality constraints"
    )
    k: int = Field(default=6, ge=1, le=50, description="Number of results to return")
    auto_filter: bool = Field(
        default=False,
        description="Derive the filter from the query when none is given",
    )


class HybridSearchResult(BaseModel):
    id: str
    text: str
    score: float
    source: CorpusTag


class HybridSearchResponse(BaseModel):
    results: List[HybridSearchResult]
    total_found: int
    applied_filter: Optional[SearchFilter] = None


class RetrieveRequest(BaseModel):
    """Request model for single-corpus context retrieval."""

    query: str = Field(..., min_length=1)
    top_k: int = Field(default=5, ge=1, le=50)
    min_score: float = Field(default=0.25, ge=-1.0, le=1.0)
    mmr_lambda: float = Field(default=0.5, ge=0.0, le=1.0)
    max_context_chars: int = Field(default=2000, ge=0)


class RetrievedChunk(BaseModel):
    id: str
    text: str
    score: float
    page: Optional[int] = None


class RetrieveResponse(BaseModel):
    context: str
    chunks: List[RetrievedChunk]
    chunks_included: int


class RouteRequest(BaseModel):
    query: str = Field(..., min_length=1)


class RouteResponse(BaseModel):
    route: RouteType
    filter: SearchFilter
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    hybrid_loaded: bool
    corpus_loaded: bool
    record_count: int
    summary_count: int
    knowledge_count: int
