"""Validation exceptions for embedstore."""

from .base import EmbedStoreError


class ValidationError(EmbedStoreError):
    """Input validation failed."""

    error_code = "ES_VAL_001"


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "ES_VAL_002"


class QueryTooLongError(ValidationError):
    """Query exceeds maximum allowed length."""

    error_code = "ES_VAL_003"


class InvalidParameterError(ValidationError):
    """Numeric or structural request parameter is out of range."""

    error_code = "ES_VAL_004"


class InvalidFilterError(ValidationError):
    """Metadata filter could not be parsed."""

    error_code = "ES_VAL_005"
