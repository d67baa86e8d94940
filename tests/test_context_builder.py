"""Tests for budgeted context assembly."""

import pytest

from context import context_builder
from context.context_builder import assemble_context, format_block_header
from retrieval.vector_retriever import VectorSearchResult


def result(chunk_id, text, score=0.9, page=None):
    return VectorSearchResult(id=chunk_id, text=text, score=score, page=page)


class TestHeaders:
    def test_header_with_page_and_score(self):
        assert format_block_header(result("a", "x", 0.8123, page=4), 0) == "Source 1 (p. 4) | score 0.812"

    def test_header_without_page(self):
        assert format_block_header(result("a", "x", 0.5), 2) == "Source 3 | score 0.500"

    def test_header_without_score(self):
        assert format_block_header(result("a", "x", page=2), 0, include_score=False) == "Source 1 (p. 2)"


class TestAssembly:
    def test_blocks_in_result_order(self):
        ctx = assemble_context(
            [result("a", "alpha", 0.9, page=1), result("b", "beta", 0.7)],
            max_context_chars=1000,
        )
        assert ctx.text == "Source 1 (p. 1) | score 0.900\nalpha\n\nSource 2 | score 0.700\nbeta"
        assert ctx.chunks_included == 2
        assert [s["chunk_id"] for s in ctx.sources] == ["a", "b"]
        assert ctx.char_count == len(ctx.text)

    @pytest.mark.parametrize("budget", [0, 10, 25, 30, 31, 60, 64, 65, 100, 500])
    def test_never_exceeds_budget_and_never_cuts_a_block(self, budget):
        results = [result(f"c{i}", "lorem ipsum " * (i + 1)) for i in range(6)]
        ctx = assemble_context(results, max_context_chars=budget)

        assert len(ctx.text) <= budget
        full = assemble_context(results, max_context_chars=10_000).text.split("\n\n")
        included = ctx.text.split("\n\n") if ctx.text else []
        assert included == full[: len(included)]
        assert ctx.chunks_included == len(included)

    def test_exact_fit_is_included(self):
        block = "Source 1 | score 0.900\nalpha"
        ctx = assemble_context([result("a", "alpha")], max_context_chars=len(block))
        assert ctx.text == block

    def test_stops_at_first_block_that_does_not_fit(self):
        results = [result("big", "x" * 500), result("small", "y")]
        ctx = assemble_context(results, max_context_chars=100)
        assert ctx.text == ""
        assert ctx.chunks_included == 0

    def test_empty_results(self):
        ctx = assemble_context([], max_context_chars=100)
        assert ctx.text == ""
        assert ctx.sources == []


def test_token_count_uses_encoding(monkeypatch):
    class WordEncoding:
        def encode(self, text):
            return text.split()

    monkeypatch.setattr(context_builder, "_get_encoding", lambda: WordEncoding())
    ctx = assemble_context([result("a", "one two three")], max_context_chars=1000)
    # "Source 1 | score 0.900" + "one two three"
    assert ctx.token_count == 8
