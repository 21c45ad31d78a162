"""Document, query and search result models for the vector index."""

import copy
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .filters import FilterLike


@dataclass
class Document:
    """A piece of content with metadata and, once embedded, a vector.

    This represents the unit stored by the vector index. A document enters
    the index only once it carries a vector of the index's dimension.

    Attributes:
        content: The text content (opaque to the index).
        metadata: Key-value pairs of scalars or lists of scalars.
        doc_id: Unique identifier. Assigned by the index when left empty.
        vector: Embedding of ``content``.
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    doc_id: str | None = None
    vector: list[float] | None = None

    def copy(self) -> "Document":
        """Return a copy that shares no mutable state with this document."""
        return replace(
            self,
            metadata=copy.deepcopy(self.metadata),
            vector=list(self.vector) if self.vector is not None else None,
        )


@dataclass
class ScoredResult:
    """A search result with document and score.

    Attributes:
        document: The matched Document.
        score: Metric value. Higher is better for cosine and dot product,
            lower is better for euclidean distance.
    """

    document: Document
    score: float


@dataclass
class Query:
    """A nearest-neighbour request against the vector index.

    Attributes:
        vector: Query embedding.
        k: Number of results requested.
        filter: Optional metadata predicate or filter mapping.
    """

    vector: list[float]
    k: int
    filter: "FilterLike | None" = None
