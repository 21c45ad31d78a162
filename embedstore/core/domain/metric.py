"""Similarity metrics and deterministic scoring.

Scores are computed in float64. Row scores are reduced per row with
``sum(axis=1)`` so a document's score does not depend on which other rows
are scored alongside it; pre-filtered and post-filtered searches therefore
produce bit-identical scores.
"""

from enum import Enum

import numpy as np

from .exceptions import InvalidConfigurationError


class SimilarityMetric(str, Enum):
    """Closed set of supported metrics."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"

    @property
    def higher_is_better(self) -> bool:
        """True for similarity metrics, False for distance metrics."""
        return self is not SimilarityMetric.EUCLIDEAN

    @classmethod
    def parse(cls, value: "SimilarityMetric | str") -> "SimilarityMetric":
        """Resolve a metric from an enum member or its name.

        Accepts ``dot-product`` and ``dot_product`` spellings in any case.

        Raises:
            InvalidConfigurationError: If the name is not a supported metric.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Unsupported similarity metric: {value!r}",
                cause=e,
                context={"supported": [m.value for m in cls]},
            ) from e


def row_norms(matrix: np.ndarray) -> np.ndarray:
    """L2 norm of every row."""
    return np.sqrt((matrix * matrix).sum(axis=1))


def compute_scores(
    metric: SimilarityMetric,
    matrix: np.ndarray,
    query: np.ndarray,
    norms: np.ndarray | None = None,
) -> np.ndarray:
    """Score every row of ``matrix`` against ``query``.

    Args:
        metric: Metric to apply.
        matrix: Stored vectors, shape (n, d), float64.
        query: Query vector, shape (d,), float64.
        norms: Precomputed row norms for cosine; computed when omitted.

    Returns:
        Array of shape (n,). Cosine against a zero vector scores 0.0.
    """
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    if metric is SimilarityMetric.EUCLIDEAN:
        diff = matrix - query
        return np.sqrt((diff * diff).sum(axis=1))

    dots = (matrix * query).sum(axis=1)
    if metric is SimilarityMetric.DOT_PRODUCT:
        return dots

    if norms is None:
        norms = row_norms(matrix)
    query_norm = float(np.sqrt((query * query).sum()))
    denom = norms * query_norm
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)


def rank(metric: SimilarityMetric, scores: np.ndarray, ids: np.ndarray) -> np.ndarray:
    """Indices ordering ``scores`` best first, ties broken by id ascending."""
    primary = -scores if metric.higher_is_better else scores
    # lexsort sorts by the last key first
    return np.lexsort((ids, primary))


def relevance(metric: SimilarityMetric, scores: np.ndarray) -> np.ndarray:
    """Map raw scores to a higher-is-better relevance preserving rank order."""
    if metric is SimilarityMetric.EUCLIDEAN:
        return 1.0 / (1.0 + scores)
    return scores


def cosine_similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity; rows with zero norm are similar to nothing."""
    norms = row_norms(vectors)
    unit = vectors / np.where(norms > 0, norms, 1.0)[:, None]
    return unit @ unit.T
