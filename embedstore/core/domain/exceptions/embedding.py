"""Embedding exceptions for embedstore."""

from .base import EmbedStoreError


class EmbeddingError(EmbedStoreError):
    """Failed to generate embeddings."""

    error_code = "ES_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "ES_EMB_002"


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding API rate limit exceeded."""

    error_code = "ES_EMB_003"
