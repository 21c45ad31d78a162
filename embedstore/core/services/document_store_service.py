"""Caller-facing document store: add, delete and search documents by text."""

import logging
from typing import Any

from ...common.utils import clean_text
from ..domain import CancellationToken, Document, FilterLike, ScoredResult
from ..domain.exceptions import InvalidParameterError
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_index_port import VectorIndexPort
from .retrieval_service import RetrievalService, embed_texts, validate_k

logger = logging.getLogger(__name__)

DEFAULT_K = 4


class DocumentStoreService:
    """Embeds documents on the way in and searches them by text on the way out.

    This is the public API of the package. The embedder and index are
    injected, so any implementation of ``EmbeddingPort`` and
    ``VectorIndexPort`` can be combined.

    Example:
        store = DocumentStoreService(HashEmbeddingAdapter(64), InMemoryVectorIndex(64))
        store.add_texts(["red apples", "green pears"], metadatas=[{"kind": "fruit"}] * 2)
        store.similarity_search("apple", k=1, filter={"kind": "fruit"})
    """

    def __init__(
        self,
        embedder: EmbeddingPort,
        index: VectorIndexPort,
        retriever: RetrievalService | None = None,
        *,
        default_k: int = DEFAULT_K,
    ) -> None:
        if embedder.dimension != index.dimension:
            raise InvalidParameterError(
                f"Embedder dimension {embedder.dimension} does not match index dimension "
                f"{index.dimension}",
                context={"embedder": embedder.dimension, "index": index.dimension},
            )
        self.embedder = embedder
        self.index = index
        self.retriever = retriever or RetrievalService(embedder, index)
        self.default_k = validate_k(default_k)

    def _k(self, k: int | None) -> int:
        return self.default_k if k is None else validate_k(k)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_documents(self, documents: list[Document], ids: list[str] | None = None) -> list[str]:
        """Embed and store documents.

        Content is cleaned (BOM removal, NFKC) before embedding. All contents
        are embedded in one call; if embedding fails nothing is stored.

        Args:
            documents: Documents to store. Existing vectors are replaced.
            ids: Optional ids overriding ``doc_id``, one per document.

        Returns:
            The stored ids in input order.

        Raises:
            InvalidParameterError: If ``ids`` and ``documents`` differ in length.
            EmbeddingError: If the embedder fails.
            DimensionMismatchError: If the embedder returns wrong-sized vectors.
        """
        if ids is not None and len(ids) != len(documents):
            raise InvalidParameterError(
                f"Got {len(ids)} ids for {len(documents)} documents",
                context={"ids": len(ids), "documents": len(documents)},
            )
        if not documents:
            return []

        contents = [clean_text(doc.content) for doc in documents]
        vectors = embed_texts(self.embedder, contents)

        prepared = []
        for i, (doc, content, vector) in enumerate(zip(documents, contents, vectors)):
            prepared.append(
                Document(
                    content=content,
                    metadata=dict(doc.metadata),
                    doc_id=ids[i] if ids is not None else doc.doc_id,
                    vector=vector,
                )
            )

        stored_ids = self.index.insert(prepared)
        logger.info("Added %d documents", len(stored_ids))
        return stored_ids

    def add_texts(
        self,
        texts: list[str],
        metadatas: list[dict[str, Any]] | None = None,
        ids: list[str] | None = None,
    ) -> list[str]:
        """Store plain texts with optional per-text metadata."""
        if metadatas is not None and len(metadatas) != len(texts):
            raise InvalidParameterError(
                f"Got {len(metadatas)} metadatas for {len(texts)} texts",
                context={"metadatas": len(metadatas), "texts": len(texts)},
            )
        documents = [
            Document(content=text, metadata=dict(metadatas[i]) if metadatas else {})
            for i, text in enumerate(texts)
        ]
        return self.add_documents(documents, ids=ids)

    def delete_documents(self, ids: list[str]) -> int:
        """Delete documents by id. Unknown ids are ignored.

        Returns:
            Number of documents removed.
        """
        removed = self.index.delete(ids)
        logger.info("Deleted %d documents", removed)
        return removed

    def get_documents(self, ids: list[str]) -> list[Document]:
        """Fetch stored documents by id, skipping unknown ids."""
        return self.index.get(ids)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def similarity_search(
        self,
        query: str,
        k: int | None = None,
        filter: FilterLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Document]:
        """Return the ``k`` documents most similar to ``query``."""
        return [
            r.document
            for r in self.similarity_search_with_score(query, k, filter, cancel_token=cancel_token)
        ]

    def similarity_search_with_score(
        self,
        query: str,
        k: int | None = None,
        filter: FilterLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Like ``similarity_search`` but keeps the index score of each hit."""
        return self.retriever.retrieve_with_scores(
            query, self._k(k), filter, diversify=False, cancel_token=cancel_token
        )

    def similarity_search_by_vector(
        self,
        vector: list[float],
        k: int | None = None,
        filter: FilterLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Search with a precomputed query vector."""
        return self.retriever.search_by_vector(
            vector, self._k(k), filter, diversify=False, cancel_token=cancel_token
        )

    def max_marginal_relevance_search(
        self,
        query: str,
        k: int | None = None,
        filter: FilterLike | None = None,
        *,
        fetch_k: int | None = None,
        lambda_mult: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[Document]:
        """Return ``k`` documents balancing relevance and diversity.

        Args:
            query: Natural-language query.
            k: Number of documents to return.
            filter: Optional metadata predicate or operator mapping.
            fetch_k: Candidates fetched before re-ranking.
            lambda_mult: 1 for pure relevance, 0 for maximum diversity.
        """
        results = self.max_marginal_relevance_search_with_score(
            query, k, filter, fetch_k=fetch_k, lambda_mult=lambda_mult, cancel_token=cancel_token
        )
        return [r.document for r in results]

    def max_marginal_relevance_search_with_score(
        self,
        query: str,
        k: int | None = None,
        filter: FilterLike | None = None,
        *,
        fetch_k: int | None = None,
        lambda_mult: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """MMR search keeping each selected document's index score."""
        return self.retriever.retrieve_with_scores(
            query,
            self._k(k),
            filter,
            diversify=True,
            lambda_mult=lambda_mult,
            fetch_k=fetch_k,
            cancel_token=cancel_token,
        )

    def get_stats(self) -> dict[str, Any]:
        """Index size and configuration."""
        return {
            "count": self.index.count(),
            "dimension": self.index.dimension,
            "metric": self.index.metric.value,
            "filter_strategy": self.index.filter_strategy.value,
            "embedder": type(self.embedder).__name__,
        }
