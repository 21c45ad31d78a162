"""Domain models for embedstore.

This package contains the models shared across the application:

- document: Document, ScoredResult and Query
- metric: SimilarityMetric and deterministic scoring helpers
- filters: metadata predicates and the operator-mapping parser
- cancellation: CancellationToken for abortable searches

All models are re-exported here for convenient importing:

    from embedstore.core.domain import Document, ScoredResult, SimilarityMetric
"""

from .cancellation import CancellationToken
from .document import Document, Query, ScoredResult
from .filters import (
    And,
    Eq,
    FilterLike,
    In,
    Not,
    Or,
    Predicate,
    Range,
    coerce_filter,
    matches,
    parse_filter,
)
from .metric import SimilarityMetric

__all__ = [
    # Document models
    "Document",
    "Query",
    "ScoredResult",
    # Metric
    "SimilarityMetric",
    # Filters
    "Predicate",
    "Eq",
    "In",
    "Range",
    "And",
    "Or",
    "Not",
    "FilterLike",
    "parse_filter",
    "coerce_filter",
    "matches",
    # Cancellation
    "CancellationToken",
]
