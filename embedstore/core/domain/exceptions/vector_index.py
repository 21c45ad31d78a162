"""Vector index exceptions for embedstore."""

from .base import EmbedStoreError


class VectorIndexError(EmbedStoreError):
    """Base error for vector index operations."""

    error_code = "ES_IDX_001"


class DimensionMismatchError(VectorIndexError):
    """Vector length differs from the index's configured dimension."""

    error_code = "ES_IDX_002"


class InvalidDocumentError(VectorIndexError):
    """Document cannot be stored.

    Common causes:
    - Missing vector
    - NaN or infinite vector components
    - Empty document id
    """

    error_code = "ES_IDX_003"


class SearchCancelledError(VectorIndexError):
    """Search was cancelled or ran past its deadline."""

    error_code = "ES_IDX_004"


class PersistenceError(VectorIndexError):
    """Failed to save or load an index snapshot."""

    error_code = "ES_IDX_005"
