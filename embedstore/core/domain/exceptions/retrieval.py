"""Retrieval exceptions for embedstore."""

from .base import EmbedStoreError


class RetrievalError(EmbedStoreError):
    """Error during document retrieval."""

    error_code = "ES_RET_001"


class EmptyIndexError(RetrievalError):
    """Results were requested from an index holding no documents."""

    error_code = "ES_RET_002"
