"""Unit tests for Settings and the composition root."""

import json
import logging
import sys

import pytest
from pydantic import ValidationError as PydanticValidationError

from embedstore.adapters.outbound.embedding import (
    GeminiEmbeddingAdapter,
    HashEmbeddingAdapter,
    SentenceTransformerEmbeddingAdapter,
)
from embedstore.composition.container import build_document_store, build_embedder, build_index
from embedstore.config.logging import JSONExceptionFormatter, setup_logging
from embedstore.config.settings import Settings
from embedstore.core.domain import SimilarityMetric
from embedstore.core.domain.exceptions import DimensionMismatchError, MissingAPIKeyError
from embedstore.core.ports.vector_index_port import FilterStrategy

pytestmark = pytest.mark.unit


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("EMBEDSTORE_METRIC", "EMBEDSTORE_EMBEDDING_PROVIDER", "EMBEDSTORE_DEFAULT_K"):
            monkeypatch.delenv(name, raising=False)
        config = Settings(_env_file=None)
        assert config.embedding_provider == "hash"
        assert config.metric is SimilarityMetric.COSINE
        assert config.filter_strategy is FilterStrategy.PRE
        assert config.default_k == 4

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("EMBEDSTORE_METRIC", "Dot-Product")
        monkeypatch.setenv("EMBEDSTORE_FILTER_STRATEGY", "post")
        monkeypatch.setenv("EMBEDSTORE_MMR_LAMBDA", "0.25")
        config = Settings(_env_file=None)
        assert config.metric is SimilarityMetric.DOT_PRODUCT
        assert config.filter_strategy is FilterStrategy.POST
        assert config.mmr_lambda == 0.25

    @pytest.mark.parametrize(
        "overrides",
        [
            {"metric": "manhattan"},
            {"mmr_lambda": 1.5},
            {"mmr_fetch_multiplier": 0.5},
            {"default_k": 0},
            {"embedding_provider": "openai"},
            {"embedding_dimension": 0},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, **overrides)

    def test_api_key_is_sanitized(self):
        config = Settings(_env_file=None, google_api_key="\ufeff  secret-key \n")
        assert config.google_api_key == "secret-key"

    def test_snapshot_path(self, tmp_path):
        config = Settings(_env_file=None, data_dir=tmp_path / "d")
        assert config.resolved_snapshot_path == tmp_path / "d" / "embedstore.db"

        explicit = Settings(_env_file=None, snapshot_path=tmp_path / "x" / "s.db")
        assert explicit.resolved_snapshot_path == tmp_path / "x" / "s.db"

    def test_ensure_directories(self, tmp_path):
        config = Settings(_env_file=None, data_dir=tmp_path / "d", snapshot_path=tmp_path / "s" / "a.db")
        config.ensure_directories()
        assert (tmp_path / "d").is_dir()
        assert (tmp_path / "s").is_dir()


class TestComposition:
    """Tests for explicit adapter selection in the composition root."""

    def test_hash_provider(self, test_settings):
        embedder = build_embedder(test_settings)
        assert isinstance(embedder, HashEmbeddingAdapter)
        assert embedder.dimension == 64

    def test_sentence_transformers_provider(self, test_settings):
        config = test_settings.model_copy(
            update={"embedding_provider": "sentence-transformers", "embedding_model": "my-model"}
        )
        embedder = build_embedder(config)
        assert isinstance(embedder, SentenceTransformerEmbeddingAdapter)
        assert embedder.model_name == "my-model"
        assert embedder.dimension == test_settings.embedding_dimension

    def test_gemini_provider(self, test_settings):
        config = test_settings.model_copy(
            update={
                "embedding_provider": "gemini",
                "google_api_key": "key",
                "embedding_requests_per_minute": 10,
            }
        )
        embedder = build_embedder(config)
        assert isinstance(embedder, GeminiEmbeddingAdapter)
        assert embedder.model_name == "gemini-embedding-001"
        assert embedder.dimension == 64

    def test_gemini_without_key(self, test_settings):
        config = test_settings.model_copy(
            update={"embedding_provider": "gemini", "google_api_key": ""}
        )
        with pytest.raises(MissingAPIKeyError):
            build_embedder(config)

    def test_build_index(self, test_settings):
        config = test_settings.model_copy(
            update={"metric": SimilarityMetric.EUCLIDEAN, "filter_strategy": FilterStrategy.POST}
        )
        index = build_index(config, 8)
        assert index.dimension == 8
        assert index.metric is SimilarityMetric.EUCLIDEAN
        assert index.filter_strategy is FilterStrategy.POST

    def test_build_document_store(self, test_settings):
        config = test_settings.model_copy(update={"default_k": 2, "mmr_lambda": 0.8})
        store = build_document_store(config)
        assert store.index.dimension == 64
        assert store.default_k == 2
        assert store.retriever.reranker.lambda_mult == 0.8


class TestLogging:
    def test_setup_logging_configures_package_logger(self):
        logger = setup_logging(level="DEBUG", json_format=True)
        assert logger.name == "embedstore"
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, JSONExceptionFormatter)

    def test_json_formatter_includes_exception(self):
        formatter = JSONExceptionFormatter()
        try:
            raise ValueError("bad value")
        except ValueError:
            record = logging.LogRecord(
                "embedstore.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        output = formatter.format(record)
        assert '"type": "ValueError"' in output
        assert '"message": "failed"' in output

    def test_json_formatter_keeps_extra_fields_and_error_code(self):
        formatter = JSONExceptionFormatter()
        error = DimensionMismatchError("wrong size", context={"expected": 3, "actual": 2})
        record = logging.LogRecord(
            "embedstore.index", logging.WARNING, __file__, 1, "rejected", None,
            (type(error), error, None),
        )
        record.doc_count = 2
        output = json.loads(formatter.format(record))

        assert output["fields"] == {"doc_count": 2}
        assert output["exception"]["code"] == "ES_IDX_002"
        assert output["exception"]["context"] == {"expected": 3, "actual": 2}

    def test_log_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "embedstore.log"
        logger = setup_logging(level="INFO", log_file=log_file)
        logging.getLogger("embedstore.test").info("written to file")
        for handler in logger.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text(encoding="utf-8")
        setup_logging(level="INFO")
