"""Unit tests for exception handling system.

Tests both the exception hierarchy and the exception handler utilities,
including negative tests to verify correct exceptions are raised.
"""

import json

import pytest

from embedstore.adapters.common.exception_handler import (
    format_exception_json,
    get_error_code,
    get_http_status_code,
)
from embedstore.core.domain.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
    EmbedStoreError,
    EmptyIndexError,
    EmptyQueryError,
    ImmutableSettingError,
    InvalidConfigurationError,
    InvalidDocumentError,
    InvalidFilterError,
    InvalidParameterError,
    MissingAPIKeyError,
    PersistenceError,
    QueryTooLongError,
    RetrievalError,
    SearchCancelledError,
    ValidationError,
    VectorIndexError,
)

# Apply @pytest.mark.unit to all tests in this module
pytestmark = pytest.mark.unit


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_embedstore_error_is_base(self):
        """EmbedStoreError should be the base for all custom exceptions."""
        for exc_type in (
            ConfigurationError,
            VectorIndexError,
            EmbeddingError,
            RetrievalError,
            ValidationError,
        ):
            assert issubclass(exc_type, EmbedStoreError)

    def test_index_errors_inherit_from_vector_index_error(self):
        for exc_type in (
            DimensionMismatchError,
            InvalidDocumentError,
            SearchCancelledError,
            PersistenceError,
        ):
            assert issubclass(exc_type, VectorIndexError)

    def test_config_errors_inherit_from_configuration(self):
        for exc_type in (MissingAPIKeyError, InvalidConfigurationError, ImmutableSettingError):
            assert issubclass(exc_type, ConfigurationError)

    def test_embedding_errors_inherit_from_embedding_error(self):
        assert issubclass(EmbeddingAPIError, EmbeddingError)
        assert issubclass(EmbeddingRateLimitError, EmbeddingError)

    def test_empty_index_is_retrieval_error(self):
        assert issubclass(EmptyIndexError, RetrievalError)

    def test_validation_errors(self):
        for exc_type in (
            EmptyQueryError,
            QueryTooLongError,
            InvalidParameterError,
            InvalidFilterError,
        ):
            assert issubclass(exc_type, ValidationError)

    def test_error_codes_are_unique(self):
        """Every exception type should carry its own code."""
        types = [
            EmbedStoreError,
            ConfigurationError,
            MissingAPIKeyError,
            InvalidConfigurationError,
            ImmutableSettingError,
            VectorIndexError,
            DimensionMismatchError,
            InvalidDocumentError,
            SearchCancelledError,
            PersistenceError,
            EmbeddingError,
            EmbeddingAPIError,
            EmbeddingRateLimitError,
            RetrievalError,
            EmptyIndexError,
            ValidationError,
            EmptyQueryError,
            QueryTooLongError,
            InvalidParameterError,
            InvalidFilterError,
        ]
        codes = [t.error_code for t in types]
        assert len(set(codes)) == len(codes)


class TestExceptionCreation:
    """Tests for creating and using exceptions."""

    def test_basic_exception_creation(self):
        """Basic exception should have message and error code."""
        exc = EmbedStoreError("Test error message")
        assert str(exc) == "Test error message"
        assert exc.message == "Test error message"
        assert exc.error_code == "ES_ERR_001"

    def test_exception_with_context(self):
        exc = DimensionMismatchError("Wrong size", context={"expected": 3, "actual": 2})
        assert exc.extra_context == {"expected": 3, "actual": 2}
        assert exc.error_code == "ES_IDX_002"

    def test_exception_with_cause(self):
        """Exception should chain underlying cause."""
        original = ConnectionError("Network unreachable")
        exc = EmbeddingAPIError("Embedding call failed", cause=original)
        assert exc.cause is original

        result = exc.to_dict()
        assert result["cause"]["type"] == "ConnectionError"
        assert result["cause"]["message"] == "Network unreachable"

    def test_location_captured_from_raise_site(self):
        """Location should point at the code that built the exception."""

        class Component:
            def fail(self):
                raise InvalidParameterError("bad k")

        with pytest.raises(InvalidParameterError) as exc_info:
            Component().fail()

        location = exc_info.value.location
        assert location.class_name == "Component"
        assert location.method_name == "fail"
        assert location.file_name == "test_exceptions.py"
        assert location.line_number > 0

    def test_to_dict_is_json_serializable(self):
        exc = EmptyIndexError("The index holds no documents", context={"k": 3})
        data = exc.to_dict(include_trace=True)

        encoded = json.dumps(data)
        assert "ES_RET_002" in encoded
        assert data["error"]["type"] == "EmptyIndexError"
        assert data["context"] == {"k": 3}
        assert "location" in data


class TestExceptionHandler:
    """Tests for the exception handler utilities."""

    def test_format_custom_exception(self):
        exc = InvalidFilterError("Unknown operator $foo")
        data = format_exception_json(exc, extra_context={"path": "/api/v1/search"})
        assert data["error"]["code"] == "ES_VAL_005"
        assert data["context"]["path"] == "/api/v1/search"

    def test_format_standard_exception(self):
        try:
            raise KeyError("missing")
        except KeyError as e:
            data = format_exception_json(e, include_trace=True)

        assert data["error"]["type"] == "KeyError"
        assert data["error"]["code"] == "PYTHON_ERR"
        assert data["location"]["file"] == "test_exceptions.py"
        assert data["stack_trace"]

    def test_get_error_code(self):
        assert get_error_code(QueryTooLongError("too long")) == "ES_VAL_003"
        assert get_error_code(RuntimeError("boom")) == "PYTHON_ERR"

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (EmptyQueryError("empty"), 400),
            (InvalidFilterError("bad filter"), 400),
            (DimensionMismatchError("size"), 422),
            (InvalidDocumentError("nan"), 422),
            (EmptyIndexError("empty index"), 404),
            (SearchCancelledError("cancelled"), 408),
            (EmbeddingRateLimitError("429"), 429),
            (EmbeddingAPIError("down"), 502),
            (EmbeddingError("bad count"), 500),
            (ImmutableSettingError("metric"), 500),
            (PersistenceError("disk"), 500),
            (ValueError("bad"), 400),
            (TimeoutError("slow"), 503),
            (RuntimeError("boom"), 500),
        ],
    )
    def test_http_status_mapping(self, exc, status):
        assert get_http_status_code(exc) == status
