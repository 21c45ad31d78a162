"""Exceptions raised by embedstore.

Every class derives from ``EmbedStoreError`` and carries an ``ES_<AREA>_<NNN>``
code. Areas: ``CFG`` configuration, ``IDX`` vector index and persistence,
``EMB`` embedding providers, ``RET`` retrieval, ``VAL`` caller input.

    from embedstore.core.domain.exceptions import DimensionMismatchError, EmptyIndexError
"""

# Base classes
from .base import EmbedStoreError, ExceptionContext

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    ImmutableSettingError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)

# Embedding exceptions
from .embedding import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
)

# Retrieval exceptions
from .retrieval import (
    EmptyIndexError,
    RetrievalError,
)

# Validation exceptions
from .validation import (
    EmptyQueryError,
    InvalidFilterError,
    InvalidParameterError,
    QueryTooLongError,
    ValidationError,
)

# Vector index exceptions
from .vector_index import (
    DimensionMismatchError,
    InvalidDocumentError,
    PersistenceError,
    SearchCancelledError,
    VectorIndexError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "EmbedStoreError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    "ImmutableSettingError",
    # Vector index
    "VectorIndexError",
    "DimensionMismatchError",
    "InvalidDocumentError",
    "SearchCancelledError",
    "PersistenceError",
    # Embedding
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingRateLimitError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "QueryTooLongError",
    "InvalidParameterError",
    "InvalidFilterError",
    # Retrieval
    "RetrievalError",
    "EmptyIndexError",
]
