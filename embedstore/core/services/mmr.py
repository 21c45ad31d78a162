"""Maximal marginal relevance re-ranking.

MMR trades relevance to the query against novelty with respect to what has
already been picked. At each step it selects the candidate maximising

    lambda * relevance - (1 - lambda) * max_similarity_to_selected

so ``lambda = 1`` is plain relevance order and ``lambda = 0`` only looks
at diversity.
"""

import logging

import numpy as np

from ..domain import ScoredResult, SimilarityMetric
from ..domain.exceptions import InvalidParameterError
from ..domain.metric import cosine_similarity_matrix, relevance

logger = logging.getLogger(__name__)


def validate_lambda(lambda_mult: float) -> float:
    """Return ``lambda_mult`` as a float, rejecting values outside [0, 1]."""
    if isinstance(lambda_mult, bool) or not isinstance(lambda_mult, int | float):
        raise InvalidParameterError(
            f"lambda_mult must be a number, got {lambda_mult!r}",
            context={"lambda_mult": repr(lambda_mult)},
        )
    if not 0.0 <= lambda_mult <= 1.0:
        raise InvalidParameterError(
            f"lambda_mult must be between 0 and 1, got {lambda_mult}",
            context={"lambda_mult": lambda_mult},
        )
    return float(lambda_mult)


def maximal_marginal_relevance(
    relevance_scores: np.ndarray,
    similarity: np.ndarray,
    k: int,
    lambda_mult: float,
) -> list[int]:
    """Greedy MMR selection.

    Args:
        relevance_scores: Higher-is-better relevance per candidate, with
            candidates in their original rank order.
        similarity: Pairwise candidate similarity, shape (n, n).
        k: Number of candidates to select.
        lambda_mult: Relevance weight in [0, 1].

    Returns:
        Indices of the selected candidates in selection order. Ties in the
        objective go to the earlier-ranked candidate.
    """
    n = len(relevance_scores)
    k = min(k, n)
    if k <= 0:
        return []

    selected: list[int] = []
    taken = np.zeros(n, dtype=bool)
    max_similarity = np.full(n, -np.inf)

    for _ in range(k):
        if selected:
            objective = lambda_mult * relevance_scores - (1.0 - lambda_mult) * max_similarity
        else:
            objective = lambda_mult * relevance_scores
        objective = np.where(taken, -np.inf, objective)
        # argmax returns the first maximum, i.e. the best-ranked on ties
        choice = int(np.argmax(objective))
        selected.append(choice)
        taken[choice] = True
        max_similarity = np.maximum(max_similarity, similarity[choice])

    return selected


class MMRReranker:
    """Diversifies ranked search results with maximal marginal relevance.

    Relevance is the index score mapped to higher-is-better (see
    ``relevance``); diversity uses cosine similarity between candidate
    vectors regardless of the index metric.
    """

    def __init__(self, lambda_mult: float = 0.5) -> None:
        """Initialize the reranker.

        Args:
            lambda_mult: Default relevance weight in [0, 1].
        """
        self.lambda_mult = validate_lambda(lambda_mult)

    def rerank(
        self,
        results: list[ScoredResult],
        metric: SimilarityMetric,
        top_k: int,
        lambda_mult: float | None = None,
    ) -> list[ScoredResult]:
        """Select ``top_k`` diverse results from ranked candidates.

        Args:
            results: Candidates in index rank order, with vectors attached.
            metric: Metric that produced the scores.
            top_k: Number of results to return.
            lambda_mult: Overrides the default relevance weight.

        Returns:
            Selected results, keeping their original index scores.
        """
        weight = self.lambda_mult if lambda_mult is None else validate_lambda(lambda_mult)
        if not results or top_k <= 0:
            return []
        if len(results) == 1:
            return results[:top_k]

        vectors = np.array([r.document.vector for r in results], dtype=np.float64)
        scores = np.array([r.score for r in results], dtype=np.float64)

        order = maximal_marginal_relevance(
            relevance(metric, scores),
            cosine_similarity_matrix(vectors),
            top_k,
            weight,
        )
        logger.debug(f"MMR picked {order} from {len(results)} candidates (lambda={weight})")
        return [results[i] for i in order]
