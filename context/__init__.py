"""
Context Assembly Module.

Treat prompt context as a resource with a budget.

This module handles:
- Context building from retrieved chunks
- Character budget enforcement (whole blocks only)
- Token counting for the downstream prompt

Usage:
    from context import assemble_context

    context = assemble_context(results, max_context_chars=2000)
"""

from .context_builder import (
    AssembledContext,
    assemble_context,
    count_tokens,
    format_block_header,
)

__all__ = [
    "assemble_context",
    "format_block_header",
    "count_tokens",
    "AssembledContext",
]
