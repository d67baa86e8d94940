"""
Tests for the in-memory vector store.

Tests:
- Load-time normalization and dimension checks
- Threshold preselection and fallback
- MMR selection (relevance boundary, diversity, tie-breaking)
- Output invariants (ordering, score range, cardinality, determinism)
"""

import numpy as np
import pytest

from retrieval.vector_retriever import VectorStore, cosine, normalize
from shared.exceptions import DimensionMismatchError

from .conftest import make_chunk, make_index


def random_index(n: int = 40, dims: int = 8, seed: int = 7):
    rng = np.random.default_rng(seed)
    chunks = [make_chunk(f"c{i}", rng.normal(size=dims)) for i in range(n)]
    return make_index(chunks, dims=dims), rng


class TestNormalization:
    def test_normalize_unit_length(self):
        out = normalize([3.0, 4.0])
        assert out.tolist() == pytest.approx([0.6, 0.8])

    def test_zero_vector_stays_zero(self):
        assert normalize([0.0, 0.0, 0.0]).tolist() == [0.0, 0.0, 0.0]

    def test_cosine_of_unit_vectors(self):
        assert cosine(normalize([1, 0]), normalize([1, 1])) == pytest.approx(2 ** -0.5)

    def test_load_does_not_mutate_caller_embeddings(self):
        raw = [3.0, 4.0]
        index = make_index([make_chunk("a", raw)])
        store = VectorStore(index)

        assert index.chunks[0].embedding == [3.0, 4.0]
        results = store.search([3.0, 4.0], top_k=1)
        assert results[0].score == pytest.approx(1.0)

    def test_zero_vector_chunk_scores_zero(self):
        store = VectorStore(make_index([make_chunk("z", [0, 0]), make_chunk("a", [1, 0])]))
        results = store.search([1, 0], top_k=2, min_score=-1.0)
        scores = {r.id: r.score for r in results}
        assert scores == {"a": pytest.approx(1.0), "z": 0.0}


class TestDimensionChecks:
    def test_mismatched_chunk_rejected_at_load(self):
        index = make_index(
            [make_chunk("ok", [1, 0, 0]), make_chunk("short", [1, 0])], dims=3
        )
        with pytest.raises(DimensionMismatchError) as exc_info:
            VectorStore(index)
        assert exc_info.value.chunk_id == "short"
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2

    def test_mismatched_query_rejected(self):
        store = VectorStore(make_index([make_chunk("a", [1, 0, 0])]))
        with pytest.raises(DimensionMismatchError):
            store.search([1, 0], top_k=1)

    def test_dimension_mismatch_is_value_error(self):
        assert issubclass(DimensionMismatchError, ValueError)


class TestUnavailableIndex:
    def test_never_loaded_returns_empty(self):
        assert VectorStore().search([1, 0, 0]) == []

    def test_empty_corpus_returns_empty(self):
        store = VectorStore(make_index([], dims=3))
        assert store.is_loaded
        assert store.count() == 0
        assert store.search([1, 0, 0]) == []

    def test_non_positive_top_k_returns_empty(self):
        store = VectorStore(make_index([make_chunk("a", [1, 0])]))
        assert store.search([1, 0], top_k=0) == []


class TestCandidateSelection:
    def test_threshold_excludes_low_scores(self):
        store = VectorStore(
            make_index([make_chunk("hit", [1, 0]), make_chunk("miss", [0, 1])])
        )
        results = store.search([1, 0], top_k=5, min_score=0.5)
        assert [r.id for r in results] == ["hit"]

    def test_fallback_when_nothing_passes_threshold(self):
        store = VectorStore(
            make_index(
                [
                    make_chunk("a", [0.3, 1.0]),
                    make_chunk("b", [0.6, 1.0]),
                    make_chunk("c", [-1.0, 0.0]),
                ]
            )
        )
        results = store.search([1, 0], top_k=1, min_score=0.99, mmr_lambda=1.0)
        assert [r.id for r in results] == ["b"]

    def test_fallback_pool_is_three_times_top_k(self):
        # Ten chunks, all below threshold; only the best 3 are candidates
        chunks = [make_chunk(f"c{i}", [i / 10, 1.0]) for i in range(10)]
        store = VectorStore(make_index(chunks))
        results = store.search([1, 0], top_k=1, min_score=0.999, mmr_lambda=0.0)
        # Pure diversity still picks the most relevant first
        assert [r.id for r in results] == ["c9"]

        results = store.search([1, 0], top_k=5, min_score=0.999, mmr_lambda=1.0)
        assert len(results) == 5


class TestMMR:
    def test_lambda_one_equals_plain_top_k(self):
        index, rng = random_index()
        store = VectorStore(index)
        query = rng.normal(size=8)

        results = store.search(query, top_k=6, min_score=-1.0, mmr_lambda=1.0)

        matrix = np.array([normalize(c.embedding) for c in index.chunks])
        sims = matrix @ normalize(query)
        expected = [index.chunks[i].id for i in np.argsort(-sims)[:6]]
        assert [r.id for r in results] == expected

    def test_lambda_zero_first_pick_is_most_relevant(self):
        index, rng = random_index(seed=11)
        store = VectorStore(index)
        query = rng.normal(size=8)

        top1 = store.search(query, top_k=1, min_score=-1.0, mmr_lambda=1.0)
        diverse1 = store.search(query, top_k=1, min_score=-1.0, mmr_lambda=0.0)
        assert [r.id for r in diverse1] == [r.id for r in top1]

    def test_diversity_promotes_distinct_vector(self):
        chunks = [
            make_chunk("dup_1", [1.0, 0.05, 0.0, 0.0]),
            make_chunk("dup_2", [1.0, 0.0, 0.05, 0.0]),
            make_chunk("dup_3", [1.0, 0.05, 0.05, 0.0]),
            make_chunk("distinct", [0.8, 0.0, 0.0, 0.6]),
        ]
        store = VectorStore(make_index(chunks))
        query = [1.0, 0.0, 0.0, 0.0]

        # Sanity: the duplicates are near-identical and outrank the distinct vector
        dups = [normalize(c.embedding) for c in chunks[:3]]
        assert min(cosine(a, b) for a in dups for b in dups) > 0.95
        by_relevance = store.search(query, top_k=2, mmr_lambda=1.0)
        assert "distinct" not in [r.id for r in by_relevance]

        results = store.search(query, top_k=2, mmr_lambda=0.3)
        ids = [r.id for r in results]
        assert "distinct" in ids
        assert len(ids) == 2

    def test_output_sorted_by_relevance_not_selection_order(self):
        chunks = [
            make_chunk("dup_1", [1.0, 0.05, 0.0, 0.0]),
            make_chunk("dup_2", [1.0, 0.0, 0.05, 0.0]),
            make_chunk("distinct", [0.8, 0.0, 0.0, 0.6]),
        ]
        store = VectorStore(make_index(chunks))
        results = store.search([1, 0, 0, 0], top_k=3, mmr_lambda=0.3)
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_ties_resolve_to_first_candidate(self):
        chunks = [
            make_chunk("first", [1.0, 0.0]),
            make_chunk("second", [1.0, 0.0]),
        ]
        store = VectorStore(make_index(chunks))
        results = store.search([1, 0], top_k=1)
        assert [r.id for r in results] == ["first"]


class TestOutputInvariants:
    def test_deterministic(self):
        index, rng = random_index(seed=3)
        store = VectorStore(index)
        query = rng.normal(size=8)

        first = store.search(query, top_k=5, min_score=0.0, mmr_lambda=0.5)
        second = store.search(query, top_k=5, min_score=0.0, mmr_lambda=0.5)
        assert [(r.id, r.score) for r in first] == [(r.id, r.score) for r in second]

    def test_scores_within_cosine_range(self):
        index, rng = random_index(seed=5)
        store = VectorStore(index)
        for _ in range(5):
            results = store.search(rng.normal(size=8) * 1000, top_k=40, min_score=-1.0)
            assert all(-1.0 <= r.score <= 1.0 for r in results)

    @pytest.mark.parametrize("top_k", [1, 3, 40, 100])
    def test_cardinality_bounded(self, top_k):
        index, rng = random_index(n=40, seed=9)
        store = VectorStore(index)
        results = store.search(rng.normal(size=8), top_k=top_k, min_score=-1.0)
        assert len(results) == min(top_k, 40)
        assert len({r.id for r in results}) == len(results)

    def test_results_carry_page_and_metadata(self):
        store = VectorStore(
            make_index([make_chunk("a", [1, 0], metadata={"year": 2024}, page=4)])
        )
        result = store.search([1, 0], top_k=1)[0]
        assert result.page == 4
        assert result.metadata == {"year": 2024}
