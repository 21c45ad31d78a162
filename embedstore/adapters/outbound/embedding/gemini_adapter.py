"""Google Gemini embeddings via the google-genai SDK."""

import logging
import time
from typing import Any

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingRateLimitError,
    MissingAPIKeyError,
)
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

# Constants
EMBEDDING_BATCH_SIZE = 20
MAX_EMBEDDING_RETRIES = 3
EMBEDDING_DIMENSION = 3072  # gemini-embedding-001 default dimension

_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "rate limit")


class GeminiEmbeddingAdapter(EmbeddingPort):
    """Embedding provider backed by the Gemini embedding API.

    Texts are sent in batches of ``EMBEDDING_BATCH_SIZE``. Each batch waits
    on the rate limiter and is retried with exponential backoff; a batch
    that still fails aborts the whole call.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-embedding-001",
        dimension: int = EMBEDDING_DIMENSION,
        rate_limiter: RateLimiter | None = None,
        retry_base_delay: float = 1.0,
    ) -> None:
        if not api_key:
            raise MissingAPIKeyError(
                "Google API key is required for Gemini embeddings",
                context={"setting": "EMBEDSTORE_GOOGLE_API_KEY"},
            )
        self.api_key = api_key
        self.model_name = model_name
        self._dimension = dimension
        self._rate_limiter = rate_limiter or RateLimiter(None)
        self._retry_base_delay = retry_base_delay
        self._client = None

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> Any:
        """Get or create the genai client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate document embeddings for ``texts``."""
        return self._embed_batched(texts, "RETRIEVAL_DOCUMENT")

    def embed_query(self, text: str) -> list[float]:
        """Generate an embedding tuned for search queries."""
        return self._embed_batched([text], "RETRIEVAL_QUERY")[0]

    def _embed_batched(self, texts: list[str], task_type: str) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), EMBEDDING_BATCH_SIZE):
            batch = texts[i : i + EMBEDDING_BATCH_SIZE]
            self._rate_limiter.acquire()
            all_embeddings.extend(self._embed_texts(batch, task_type, batch_start=i))

        logger.debug("Embedded %d texts with %s", len(texts), self.model_name)
        return all_embeddings

    def _embed_texts(
        self, texts: list[str], task_type: str, batch_start: int = 0
    ) -> list[list[float]]:
        """Embed one batch, retrying transient failures."""
        client = self._get_client()

        for attempt in range(MAX_EMBEDDING_RETRIES):
            try:
                result = client.models.embed_content(
                    model=self.model_name,
                    contents=texts,
                    config={"task_type": task_type, "output_dimensionality": self._dimension},
                )
                embeddings = getattr(result, "embeddings", None) or []
                return [list(emb.values) for emb in embeddings]
            except Exception as e:
                if attempt == MAX_EMBEDDING_RETRIES - 1:
                    context = {
                        "model": self.model_name,
                        "batch_start": batch_start,
                        "batch_size": len(texts),
                        "attempts": MAX_EMBEDDING_RETRIES,
                    }
                    if any(marker in str(e) for marker in _RATE_LIMIT_MARKERS):
                        raise EmbeddingRateLimitError(
                            "Gemini embedding rate limit exceeded", cause=e, context=context
                        ) from e
                    raise EmbeddingAPIError(
                        f"Gemini embedding failed after {MAX_EMBEDDING_RETRIES} attempts",
                        cause=e,
                        context=context,
                    ) from e
                logger.warning(f"Embedding batch {batch_start} failed (attempt {attempt + 1}): {e}")
                time.sleep(self._retry_base_delay * 2**attempt)
        return []
