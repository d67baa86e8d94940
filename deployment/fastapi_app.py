"""
FastAPI application for the retrieval engine.

Endpoints:
- GET  /health   - corpus load status
- POST /search   - hybrid search over records and summaries
- POST /retrieve - single-corpus context retrieval
- POST /route    - query routing and constraint extraction

Retrievers are injected through create_app(); without injection they
are built from settings and loaded from the configured index files.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from embeddings import get_embedding_client
from retrieval import CorpusRetriever, HybridRetriever, route_query
from shared.config import settings
from shared.exceptions import DimensionMismatchError
from shared.schemas import (
    CorpusTag,
    HealthResponse,
    HybridSearchRequest,
    HybridSearchResponse,
    HybridSearchResult,
    RetrievedChunk,
    RetrieveRequest,
    RetrieveResponse,
    RouteRequest,
    RouteResponse,
)
from storage import read_corpus_index

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

__version__ = "1.0.0"


def _load_from_settings(hybrid: HybridRetriever, corpus: CorpusRetriever) -> None:
    """Load index files named in settings; missing files leave a retriever unloaded."""
    record_path, summary_path = settings.RECORD_INDEX_PATH, settings.SUMMARY_INDEX_PATH
    if record_path and summary_path and Path(record_path).exists() and Path(summary_path).exists():
        hybrid.load(read_corpus_index(record_path), read_corpus_index(summary_path))
    else:
        logger.warning("Record/summary index files not configured or missing")

    knowledge_path = settings.KNOWLEDGE_INDEX_PATH
    if knowledge_path and Path(knowledge_path).exists():
        corpus.load(read_corpus_index(knowledge_path))
    else:
        logger.warning("Knowledge index file not configured or missing")


def create_app(
    hybrid_retriever: Optional[HybridRetriever] = None,
    corpus_retriever: Optional[CorpusRetriever] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        hybrid_retriever: Pre-loaded hybrid retriever (tests)
        corpus_retriever: Pre-loaded single-corpus retriever (tests)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting retrieval engine v{__version__}")

        if hybrid_retriever is None or corpus_retriever is None:
            embedder = get_embedding_client()
            hybrid = hybrid_retriever or HybridRetriever(embedder)
            corpus = corpus_retriever or CorpusRetriever(embedder)
            try:
                _load_from_settings(hybrid, corpus)
            except (OSError, ValueError, DimensionMismatchError) as e:
                logger.error(f"Index loading failed: {e}")
        else:
            hybrid, corpus = hybrid_retriever, corpus_retriever

        app.state.hybrid_retriever = hybrid
        app.state.corpus_retriever = corpus
        yield

        logger.info("Shutting down retrieval engine")

    app = FastAPI(
        title="Hybrid Retrieval Engine",
        description="Dense + lexical retrieval for grounding chat answers",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID for tracing."""
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"- {response.status_code} - {duration_ms:.1f}ms"
        )

        response.headers["X-Request-ID"] = request_id
        return response

    def get_hybrid(request: Request) -> HybridRetriever:
        return request.app.state.hybrid_retriever

    def get_corpus(request: Request) -> CorpusRetriever:
        return request.app.state.corpus_retriever

    @app.get("/health", response_model=HealthResponse)
    def health_check(
        hybrid: HybridRetriever = Depends(get_hybrid),
        corpus: CorpusRetriever = Depends(get_corpus),
    ):
        """Health check endpoint."""
        ready = hybrid.is_loaded and corpus.is_loaded
        return HealthResponse(
            status="healthy" if ready else "degraded",
            version=__version__,
            hybrid_loaded=hybrid.is_loaded,
            corpus_loaded=corpus.is_loaded,
            record_count=hybrid.count(CorpusTag.RECORD),
            summary_count=hybrid.count(CorpusTag.SUMMARY),
            knowledge_count=corpus.count(),
        )

    @app.post("/search", response_model=HybridSearchResponse)
    def search_endpoint(
        body: HybridSearchRequest,
        hybrid: HybridRetriever = Depends(get_hybrid),
    ):
        """
        Hybrid search without LLM generation.

        An empty result means "no context": the index is not loaded or
        the query could not be embedded.
        """
        search_filter = body.filter
        if search_filter is None and body.auto_filter:
            search_filter = route_query(body.query).constraints.to_filter()

        try:
            results = hybrid.search(body.query, search_filter=search_filter, k=body.k)
        except Exception as e:
            logger.exception(f"Search failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return HybridSearchResponse(
            results=[
                HybridSearchResult(id=r.id, text=r.text, score=r.score, source=r.source)
                for r in results
            ],
            total_found=len(results),
            applied_filter=search_filter,
        )

    @app.post("/retrieve", response_model=RetrieveResponse)
    def retrieve_endpoint(
        body: RetrieveRequest,
        corpus: CorpusRetriever = Depends(get_corpus),
    ):
        """Assemble a bounded context string from the knowledge corpus."""
        result = corpus.retrieve(
            body.query,
            top_k=body.top_k,
            min_score=body.min_score,
            mmr_lambda=body.mmr_lambda,
            max_context_chars=body.max_context_chars,
        )
        if result is None:
            return RetrieveResponse(context="", chunks=[], chunks_included=0)

        return RetrieveResponse(
            context=result.context,
            chunks=[
                RetrievedChunk(id=c.id, text=c.text, score=c.score, page=c.page)
                for c in result.chunks
            ],
            chunks_included=result.chunks_included,
        )

    @app.post("/route", response_model=RouteResponse)
    def route_endpoint(body: RouteRequest):
        """Classify a query and extract its metadata constraints."""
        decision = route_query(body.query)
        return RouteResponse(
            route=decision.route,
            filter=decision.constraints.to_filter(),
            start_date=decision.constraints.start_date,
            end_date=decision.constraints.end_date,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
