"""embedstore: an embedding-indexed document store.

Documents are embedded on the way in, kept in an in-memory vector index with
their metadata, and retrieved by similarity with optional metadata filters
and maximal-marginal-relevance diversification.

    from embedstore import DocumentStoreService, HashEmbeddingAdapter, InMemoryVectorIndex

    store = DocumentStoreService(HashEmbeddingAdapter(64), InMemoryVectorIndex(64))
    store.add_texts(["red apples", "green pears"], metadatas=[{"kind": "fruit"}] * 2)
    store.similarity_search("apple", k=1, filter={"kind": "fruit"})
"""

__version__ = "0.1.0"

from .adapters.outbound.embedding import (  # noqa: E402
    GeminiEmbeddingAdapter,
    HashEmbeddingAdapter,
    SentenceTransformerEmbeddingAdapter,
)
from .adapters.outbound.persistence import SQLiteIndexRepository  # noqa: E402
from .adapters.outbound.vector_index import InMemoryVectorIndex  # noqa: E402
from .core.domain import (  # noqa: E402
    And,
    CancellationToken,
    Document,
    Eq,
    In,
    Not,
    Or,
    Range,
    ScoredResult,
    SimilarityMetric,
    parse_filter,
)
from .core.ports.vector_index_port import FilterStrategy  # noqa: E402
from .core.services import DocumentStoreService, RetrievalService  # noqa: E402

__all__ = [
    "__version__",
    "And",
    "CancellationToken",
    "Document",
    "DocumentStoreService",
    "Eq",
    "FilterStrategy",
    "GeminiEmbeddingAdapter",
    "HashEmbeddingAdapter",
    "In",
    "InMemoryVectorIndex",
    "Not",
    "Or",
    "Range",
    "RetrievalService",
    "SQLiteIndexRepository",
    "ScoredResult",
    "SentenceTransformerEmbeddingAdapter",
    "SimilarityMetric",
    "parse_filter",
]
