"""Unit tests for maximal marginal relevance re-ranking."""

import numpy as np
import pytest

from embedstore.core.domain import Document, ScoredResult, SimilarityMetric
from embedstore.core.domain.exceptions import InvalidParameterError
from embedstore.core.services.mmr import MMRReranker, maximal_marginal_relevance, validate_lambda

pytestmark = pytest.mark.unit


def _result(doc_id, vector, score):
    return ScoredResult(document=Document(doc_id, doc_id=doc_id, vector=vector), score=score)


@pytest.fixture
def candidates():
    """Ranked candidates: two near-duplicates on top, then a distinct one."""
    return [
        _result("a", [1.0, 0.0], 0.95),
        _result("a2", [0.99, 0.01], 0.94),
        _result("b", [0.6, 0.8], 0.70),
        _result("c", [0.0, 1.0], 0.10),
    ]


class TestMaximalMarginalRelevance:
    def test_lambda_one_is_relevance_order(self):
        relevance_scores = np.array([0.9, 0.8, 0.7])
        similarity = np.ones((3, 3))
        assert maximal_marginal_relevance(relevance_scores, similarity, 3, 1.0) == [0, 1, 2]

    def test_first_pick_is_most_relevant(self):
        relevance_scores = np.array([0.2, 0.9, 0.5])
        similarity = np.eye(3)
        assert maximal_marginal_relevance(relevance_scores, similarity, 1, 0.3) == [1]

    def test_k_capped_at_candidates(self):
        assert maximal_marginal_relevance(np.array([0.5, 0.4]), np.eye(2), 5, 0.5) == [0, 1]

    def test_k_zero(self):
        assert maximal_marginal_relevance(np.array([0.5]), np.eye(1), 0, 0.5) == []

    def test_ties_go_to_earlier_candidate(self):
        relevance_scores = np.array([0.5, 0.5, 0.5])
        assert maximal_marginal_relevance(relevance_scores, np.eye(3), 3, 0.5) == [0, 1, 2]


class TestMMRReranker:
    def test_lambda_one_matches_plain_order(self, candidates):
        reranked = MMRReranker().rerank(candidates, SimilarityMetric.COSINE, 4, lambda_mult=1.0)
        assert [r.document.doc_id for r in reranked] == ["a", "a2", "b", "c"]

    def test_lambda_zero_prefers_dissimilar(self, candidates):
        reranked = MMRReranker().rerank(candidates, SimilarityMetric.COSINE, 2, lambda_mult=0.0)
        assert [r.document.doc_id for r in reranked] == ["a", "c"]

    def test_balanced_lambda_skips_near_duplicate(self, candidates):
        reranked = MMRReranker(lambda_mult=0.5).rerank(candidates, SimilarityMetric.COSINE, 2)
        ids = [r.document.doc_id for r in reranked]
        assert ids[0] == "a"
        assert "a2" not in ids

    def test_keeps_original_scores(self, candidates):
        reranked = MMRReranker().rerank(candidates, SimilarityMetric.COSINE, 2, lambda_mult=0.0)
        assert [r.score for r in reranked] == [0.95, 0.10]

    def test_euclidean_lambda_one_matches_distance_order(self):
        results = [
            _result("near", [1.0, 0.0], 0.1),
            _result("mid", [0.9, 0.2], 0.5),
            _result("far", [0.0, 1.0], 1.4),
        ]
        reranked = MMRReranker().rerank(results, SimilarityMetric.EUCLIDEAN, 3, lambda_mult=1.0)
        assert [r.document.doc_id for r in reranked] == ["near", "mid", "far"]

    def test_empty_and_single(self, candidates):
        reranker = MMRReranker()
        assert reranker.rerank([], SimilarityMetric.COSINE, 3) == []
        assert reranker.rerank(candidates[:1], SimilarityMetric.COSINE, 3) == candidates[:1]
        assert reranker.rerank(candidates, SimilarityMetric.COSINE, 0) == []


class TestValidateLambda:
    @pytest.mark.parametrize("value", [0, 0.0, 0.5, 1])
    def test_valid(self, value):
        assert validate_lambda(value) == float(value)

    @pytest.mark.parametrize("value", [-0.1, 1.01, "0.5", None, True])
    def test_invalid(self, value):
        with pytest.raises(InvalidParameterError):
            validate_lambda(value)

    def test_reranker_rejects_bad_default(self):
        with pytest.raises(InvalidParameterError):
            MMRReranker(lambda_mult=2.0)
