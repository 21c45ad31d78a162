"""Composition root wiring adapters to the application services.

Implementations are chosen from explicit settings here and nowhere else;
services only see the ports.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.embedding import (
    GeminiEmbeddingAdapter,
    HashEmbeddingAdapter,
    SentenceTransformerEmbeddingAdapter,
)
from ..adapters.outbound.persistence import SQLiteIndexRepository
from ..adapters.outbound.vector_index import InMemoryVectorIndex
from ..common.rate_limiter import RateLimiter
from ..config.settings import Settings, settings
from ..core.domain.exceptions import InvalidConfigurationError
from ..core.ports.embedding_port import EmbeddingPort
from ..core.services import DocumentStoreService, RetrievalService

logger = logging.getLogger(__name__)


def build_embedder(config: Settings) -> EmbeddingPort:
    """Create the embedding adapter selected by ``embedding_provider``."""
    provider = config.embedding_provider
    if provider == "hash":
        return HashEmbeddingAdapter(dimension=config.embedding_dimension)
    if provider == "sentence-transformers":
        return SentenceTransformerEmbeddingAdapter(
            model_name=config.embedding_model or None,
            dimension=config.embedding_dimension,
        )
    if provider == "gemini":
        return GeminiEmbeddingAdapter(
            api_key=config.google_api_key,
            model_name=config.embedding_model or "gemini-embedding-001",
            dimension=config.embedding_dimension,
            rate_limiter=RateLimiter(config.embedding_requests_per_minute),
        )
    raise InvalidConfigurationError(
        f"Unsupported embedding provider: {provider}",
        context={"embedding_provider": provider},
    )


def build_index(config: Settings, dimension: int) -> InMemoryVectorIndex:
    """Create an empty index configured from settings."""
    return InMemoryVectorIndex(
        dimension=dimension,
        metric=config.metric,
        filter_strategy=config.filter_strategy,
        search_chunk_size=config.search_chunk_size,
    )


def build_document_store(
    config: Settings,
    embedder: EmbeddingPort | None = None,
) -> DocumentStoreService:
    """Wire embedder, index, retriever and store from settings.

    Args:
        config: Settings to build from.
        embedder: Optional pre-built embedder (overrides the configured one).
    """
    embedder = embedder or build_embedder(config)
    index = build_index(config, embedder.dimension)
    retriever = RetrievalService(
        embedder,
        index,
        mmr_lambda=config.mmr_lambda,
        fetch_multiplier=config.mmr_fetch_multiplier,
        max_query_length=config.max_query_length,
    )
    return DocumentStoreService(embedder, index, retriever, default_k=config.default_k)


@lru_cache
def get_snapshot_repository() -> SQLiteIndexRepository:
    logger.info("Initializing SQLiteIndexRepository (composition root)...")
    settings.ensure_directories()
    return SQLiteIndexRepository(settings.resolved_snapshot_path)


@lru_cache
def get_document_store() -> DocumentStoreService:
    logger.info("Initializing DocumentStoreService (composition root)...")
    return build_document_store(settings)
