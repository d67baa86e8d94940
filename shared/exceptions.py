"""
Exceptions raised by the retrieval engine.

Collaborator boundaries raise; the retrievers catch at the orchestration
boundary and degrade to "no context".
"""


class RetrievalError(Exception):
    """Base class for retrieval engine errors."""


class EmbeddingError(RetrievalError):
    """The embedding collaborator failed (transport, status or payload)."""


class DimensionMismatchError(RetrievalError, ValueError):
    """An embedding's length does not match the corpus dimensionality."""

    def __init__(self, expected: int, actual: int, chunk_id: str = None):
        self.expected = expected
        self.actual = actual
        self.chunk_id = chunk_id
        where = f"chunk {chunk_id!r}" if chunk_id else "query embedding"
        super().__init__(f"Dimension mismatch for {where}: expected {expected}, got {actual}")
