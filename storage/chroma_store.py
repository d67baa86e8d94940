"""
Persistent corpus store on ChromaDB.

Chroma is used as a key-value store only: searching happens in the
in-memory VectorStore after loading. Corpus metadata lives on the
collection metadata; each chunk is a Chroma record holding its text,
embedding and metadata.
"""

import logging
from typing import Any, Dict, List, Optional

import chromadb
import numpy as np
from chromadb.config import Settings as ChromaSettings

from shared.config import settings
from shared.schemas import Chunk, CorpusMeta

from .corpus_store import CorpusStore

logger = logging.getLogger(__name__)

# Reserved record-metadata key for Chunk.page
_PAGE_KEY = "_page"


def _to_record_metadata(chunk: Chunk) -> Optional[Dict[str, Any]]:
    """Chroma metadata values must be scalars and not None."""
    meta = {k: v for k, v in (chunk.metadata or {}).items() if v is not None}
    if chunk.page is not None:
        meta[_PAGE_KEY] = chunk.page
    return meta or None


class ChromaCorpusStore(CorpusStore):
    """
    Corpus store wrapper with Chroma backend.

    Usage:
        store = ChromaCorpusStore(path="./data/chroma", collection_name="records")
        store.put_index(index)
        corpus = load_corpus(store)
    """

    def __init__(
        self,
        collection_name: str,
        path: str = None,
        host: str = None,
        port: int = None,
        client: Optional[chromadb.ClientAPI] = None,
    ):
        """
        Args:
            collection_name: One collection per corpus
            path: Local storage path
            host: Remote Chroma host (optional)
            port: Remote Chroma port
            client: Pre-built client (tests use chromadb.EphemeralClient)
        """
        self.collection_name = collection_name
        self.path = path or settings.CHROMA_PATH
        self.host = host or settings.CHROMA_HOST
        self.port = port or settings.CHROMA_PORT

        self._client = client
        self._collection = None

    @property
    def client(self) -> chromadb.ClientAPI:
        """Get or create Chroma client."""
        if self._client is None:
            if self.host:
                self._client = chromadb.HttpClient(host=self.host, port=self.port)
            else:
                self._client = chromadb.PersistentClient(
                    path=self.path, settings=ChromaSettings(anonymized_telemetry=False)
                )
        return self._client

    @property
    def collection(self):
        """Get or create collection."""
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(name=self.collection_name)
        return self._collection

    def get_meta(self) -> Optional[CorpusMeta]:
        meta = self.collection.metadata or {}
        if "model" not in meta or "dims" not in meta:
            return None
        return CorpusMeta(
            model=meta["model"],
            dims=int(meta["dims"]),
            created_at=meta.get("created_at", ""),
        )

    def get_all_chunks(self) -> List[Chunk]:
        result = self.collection.get(include=["documents", "metadatas", "embeddings"])

        ids = result.get("ids") or []
        documents = result.get("documents")
        metadatas = result.get("metadatas")
        embeddings = result.get("embeddings")
        if documents is None:
            documents = [""] * len(ids)
        if metadatas is None:
            metadatas = [None] * len(ids)
        if embeddings is None:
            embeddings = [[]] * len(ids)

        chunks = []
        for chunk_id, text, meta, emb in zip(ids, documents, metadatas, embeddings):
            meta = dict(meta or {})
            page = meta.pop(_PAGE_KEY, None)
            chunks.append(
                Chunk(
                    id=chunk_id,
                    text=text or "",
                    embedding=np.asarray(emb, dtype=np.float64).tolist(),
                    metadata=meta or None,
                    page=page,
                )
            )
        return chunks

    def put_meta(self, meta: CorpusMeta) -> None:
        self.collection.modify(
            metadata={"model": meta.model, "dims": meta.dims, "created_at": meta.created_at}
        )

    def put_chunks(self, chunks: List[Chunk]) -> None:
        if not chunks:
            return
        self.collection.upsert(
            ids=[c.id for c in chunks],
            documents=[c.text for c in chunks],
            embeddings=[list(c.embedding) for c in chunks],
            metadatas=[_to_record_metadata(c) for c in chunks],
        )
        logger.info(f"Stored {len(chunks)} chunks in collection {self.collection_name}")

    def clear(self) -> None:
        self.client.delete_collection(self.collection_name)
        self._collection = None
        logger.info(f"Cleared collection {self.collection_name}")
