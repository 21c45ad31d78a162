"""Query-time retrieval: embed, search, optionally diversify."""

import logging
import math

from ...common.utils import clean_text
from ..domain import CancellationToken, Document, FilterLike, ScoredResult
from ..domain.exceptions import (
    EmbeddingError,
    EmbedStoreError,
    EmptyIndexError,
    EmptyQueryError,
    InvalidParameterError,
    QueryTooLongError,
)
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_index_port import VectorIndexPort
from .mmr import MMRReranker

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUERY_LENGTH = 2000
DEFAULT_FETCH_MULTIPLIER = 4.0


def embed_texts(embedder: EmbeddingPort, texts: list[str]) -> list[list[float]]:
    """Embed ``texts``, guaranteeing one vector per text.

    Provider errors that are not already ``EmbedStoreError`` are wrapped in
    ``EmbeddingError`` so callers see one failure type per concern.
    """
    if not texts:
        return []
    try:
        vectors = embedder.embed(texts)
    except EmbedStoreError:
        raise
    except Exception as e:
        raise EmbeddingError(
            "Embedding provider failed",
            cause=e,
            context={"provider": type(embedder).__name__, "texts": len(texts)},
        ) from e

    if len(vectors) != len(texts):
        raise EmbeddingError(
            f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts",
            context={"provider": type(embedder).__name__},
        )
    return [list(v) for v in vectors]


def embed_query(embedder: EmbeddingPort, text: str) -> list[float]:
    """Embed a single query, with the same error contract as ``embed_texts``."""
    try:
        return list(embedder.embed_query(text))
    except EmbedStoreError:
        raise
    except Exception as e:
        raise EmbeddingError(
            "Embedding provider failed on query",
            cause=e,
            context={"provider": type(embedder).__name__},
        ) from e


def validate_k(k: int) -> int:
    """Reject non-integer or negative result counts."""
    if isinstance(k, bool) or not isinstance(k, int):
        raise InvalidParameterError(f"k must be an integer, got {k!r}", context={"k": repr(k)})
    if k < 0:
        raise InvalidParameterError(f"k must be non-negative, got {k}", context={"k": k})
    return k


class RetrievalService:
    """Retrieves documents relevant to a text query.

    Steps: validate and clean the query, embed it, search the index with
    the optional filter, then optionally re-rank an over-fetched candidate
    set with maximal marginal relevance.
    """

    def __init__(
        self,
        embedder: EmbeddingPort,
        index: VectorIndexPort,
        *,
        diversify: bool = False,
        mmr_lambda: float = 0.5,
        fetch_multiplier: float = DEFAULT_FETCH_MULTIPLIER,
        max_query_length: int = DEFAULT_MAX_QUERY_LENGTH,
    ) -> None:
        """Initialize the retriever.

        Args:
            embedder: Provider used to embed queries.
            index: Vector index to search.
            diversify: Apply MMR by default.
            mmr_lambda: Default MMR relevance weight in [0, 1].
            fetch_multiplier: Candidates fetched per requested result when
                diversifying (at least 1).
            max_query_length: Longest accepted query, in characters.
        """
        if fetch_multiplier < 1:
            raise InvalidParameterError(
                f"fetch_multiplier must be at least 1, got {fetch_multiplier}",
                context={"fetch_multiplier": fetch_multiplier},
            )
        self.embedder = embedder
        self.index = index
        self.diversify = diversify
        self.fetch_multiplier = float(fetch_multiplier)
        self.max_query_length = max_query_length
        self.reranker = MMRReranker(mmr_lambda)

    def _validate_query(self, query_text: str) -> str:
        cleaned = clean_text(query_text or "").strip()
        if not cleaned:
            raise EmptyQueryError("Query cannot be empty")
        if len(cleaned) > self.max_query_length:
            raise QueryTooLongError(
                f"Query exceeds {self.max_query_length} characters",
                context={"length": len(cleaned), "max_length": self.max_query_length},
            )
        return cleaned

    def _fetch_size(self, k: int, fetch_k: int | None) -> int:
        if fetch_k is None:
            return max(k, math.ceil(k * self.fetch_multiplier))
        validate_k(fetch_k)
        if fetch_k < k:
            raise InvalidParameterError(
                f"fetch_k ({fetch_k}) must be at least k ({k})",
                context={"k": k, "fetch_k": fetch_k},
            )
        return fetch_k

    def _ensure_not_empty(self) -> None:
        if self.index.count() == 0:
            raise EmptyIndexError("The index holds no documents")

    def search_by_vector(
        self,
        query_vector: list[float],
        k: int,
        filter: FilterLike | None = None,
        *,
        diversify: bool | None = None,
        lambda_mult: float | None = None,
        fetch_k: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Search with a precomputed vector, applying MMR when requested.

        Raises:
            EmptyIndexError: If the index is empty and ``k > 0``.
        """
        validate_k(k)
        if k == 0:
            return []
        self._ensure_not_empty()

        use_mmr = self.diversify if diversify is None else diversify
        if not use_mmr:
            return self.index.search(query_vector, k, filter, cancel_token=cancel_token)

        candidates = self.index.search(
            query_vector, self._fetch_size(k, fetch_k), filter, cancel_token=cancel_token
        )
        return self.reranker.rerank(candidates, self.index.metric, k, lambda_mult)

    def retrieve_with_scores(
        self,
        query_text: str,
        k: int,
        filter: FilterLike | None = None,
        *,
        diversify: bool | None = None,
        lambda_mult: float | None = None,
        fetch_k: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Retrieve scored results for a text query.

        Args:
            query_text: Natural-language query.
            k: Number of results. Zero returns an empty list.
            filter: Optional metadata predicate or operator mapping.
            diversify: Override the default MMR setting.
            lambda_mult: Override the default MMR relevance weight.
            fetch_k: Explicit MMR candidate count (at least ``k``).
            cancel_token: Aborts the index scan when fired.

        Returns:
            Up to ``k`` results, each with its index score.

        Raises:
            EmptyQueryError: If the query is blank.
            QueryTooLongError: If the query is longer than allowed.
            EmptyIndexError: If the index is empty and ``k > 0``.
            EmbeddingError: If the query cannot be embedded.
        """
        validate_k(k)
        if k == 0:
            return []
        cleaned = self._validate_query(query_text)
        self._ensure_not_empty()

        query_vector = embed_query(self.embedder, cleaned)
        results = self.search_by_vector(
            query_vector,
            k,
            filter,
            diversify=diversify,
            lambda_mult=lambda_mult,
            fetch_k=fetch_k,
            cancel_token=cancel_token,
        )
        logger.info("Retrieved %d results for query (k=%d)", len(results), k)
        return results

    def retrieve(
        self,
        query_text: str,
        k: int,
        filter: FilterLike | None = None,
        **options,
    ) -> list[Document]:
        """Retrieve documents for a text query, best first.

        Accepts the same keyword options as ``retrieve_with_scores``.
        """
        return [r.document for r in self.retrieve_with_scores(query_text, k, filter, **options)]
