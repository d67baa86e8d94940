"""
Context assembly for the single-corpus retriever.

Treat prompt context as a resource with a budget.

- Concatenate results in relevance order with "Source N" headers
- Include an optional page number and score in each header
- Never cut a block: a block goes in whole or assembly stops
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Dict, List, Sequence

import tiktoken

if TYPE_CHECKING:
    from retrieval.vector_retriever import VectorSearchResult

logger = logging.getLogger(__name__)


@lru_cache()
def _get_encoding():
    """Load the tokenizer on first use."""
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count tokens in text."""
    return len(_get_encoding().encode(text))


@dataclass
class AssembledContext:
    """Assembled context ready for an LLM prompt."""

    text: str
    sources: List[Dict] = field(default_factory=list)
    chunks_included: int = 0

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def token_count(self) -> int:
        """Tokens the context will take in the completion prompt."""
        return count_tokens(self.text)


def format_block_header(
    result: "VectorSearchResult",
    index: int,
    include_score: bool = True,
) -> str:
    """
    Format a block header for LLM context.

    Example:
    Source 1 (p. 4) | score 0.812
    """
    header = f"Source {index + 1}"
    if result.page:
        header += f" (p. {result.page})"
    if include_score:
        header += f" | score {result.score:.3f}"
    return header


def assemble_context(
    results: Sequence["VectorSearchResult"],
    max_context_chars: int = 2000,
    include_scores: bool = True,
    separator: str = "\n\n",
) -> AssembledContext:
    """
    Assemble context from search results under a character budget.

    Assembly stops before the first block that, together with its
    separator, would push the total past max_context_chars. Later
    (shorter) blocks are not tried, so sources stay in relevance order
    and keep contiguous numbering.

    Args:
        results: Search results in relevance order
        max_context_chars: Hard cap on len(context)
        include_scores: Include relevance scores in headers
        separator: Separator between blocks

    Returns:
        AssembledContext with len(text) <= max_context_chars
    """
    blocks: List[str] = []
    sources: List[Dict] = []
    used = 0

    for i, result in enumerate(results):
        block = f"{format_block_header(result, i, include_scores)}\n{result.text}"
        cost = len(block) + (len(separator) if blocks else 0)
        if used + cost > max_context_chars:
            logger.debug(f"Context budget reached after {len(blocks)} blocks")
            break

        blocks.append(block)
        used += cost
        sources.append(
            {
                "chunk_id": result.id,
                "score": result.score,
                "page": result.page,
            }
        )

    return AssembledContext(
        text=separator.join(blocks),
        sources=sources,
        chunks_included=len(blocks),
    )
