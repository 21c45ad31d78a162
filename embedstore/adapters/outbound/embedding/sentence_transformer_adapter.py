"""Local embeddings with sentence-transformers."""

import logging
from typing import TYPE_CHECKING

from ....core.domain.exceptions import EmbeddingError
from ....core.ports.embedding_port import EmbeddingPort

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbeddingAdapter(EmbeddingPort):
    """Embeds texts with a pre-trained sentence-transformers model.

    The model is loaded lazily on first use to keep startup fast.
    """

    MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"

    def __init__(
        self,
        model_name: str | None = None,
        normalize: bool = True,
        batch_size: int = 32,
        dimension: int | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_name: Optional model name. Defaults to all-MiniLM-L6-v2.
            normalize: L2-normalise embeddings (recommended for cosine).
            batch_size: Encoding batch size.
            dimension: Expected output dimension. When given, ``dimension``
                answers without loading the model and ``embed`` checks the
                model against it.
        """
        self.model_name = model_name or self.MODEL_NAME
        self.normalize = normalize
        self.batch_size = batch_size
        self._dimension = dimension
        self._model = None

    def _get_model(self) -> "SentenceTransformer":
        """Lazy load the sentence-transformers model.

        Raises:
            EmbeddingError: If the package is missing, the model cannot be
                loaded, or its dimension differs from the configured one.
        """
        if self._model is not None:
            return self._model

        context = {"model": self.model_name}
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise EmbeddingError(
                "Please install sentence-transformers to use local embeddings: "
                "pip install 'embedstore[sentence-transformers]'",
                cause=e,
                context=context,
            ) from e

        logger.debug(f"Loading sentence-transformers model: {self.model_name}")
        try:
            model = SentenceTransformer(self.model_name)
            actual = int(model.get_sentence_embedding_dimension())
        except Exception as e:
            raise EmbeddingError(
                f"Could not load sentence-transformers model '{self.model_name}'",
                cause=e,
                context=context,
            ) from e

        if self._dimension is not None and actual != self._dimension:
            raise EmbeddingError(
                f"Model '{self.model_name}' produces {actual}-dimensional vectors, "
                f"configured dimension is {self._dimension}",
                context={**context, "expected": self._dimension, "actual": actual},
            )
        self._dimension = actual
        self._model = model
        logger.info("Sentence-transformers model loaded (dimension=%d)", actual)
        return model

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._get_model()
        return self._dimension

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        model = self._get_model()
        try:
            embeddings = model.encode(
                texts,
                batch_size=self.batch_size,
                convert_to_numpy=True,
                normalize_embeddings=self.normalize,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(
                "Sentence-transformers encoding failed",
                cause=e,
                context={"model": self.model_name, "texts": len(texts)},
            ) from e
        return [[float(x) for x in row] for row in embeddings]
