"""Vector Index Port Interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from enum import Enum

from ..domain import CancellationToken, Document, FilterLike, ScoredResult, SimilarityMetric


class FilterStrategy(str, Enum):
    """When metadata filters are applied relative to scoring."""

    PRE = "pre"
    POST = "post"


class VectorIndexPort(ABC):
    """Abstract interface for vector indexes.

    Contract:
    - ``insert`` is all-or-nothing and upserts on duplicate ids.
    - ``delete`` ignores unknown ids.
    - ``search`` returns at most ``k`` results, best first, ties by id.
    - The metric cannot change while the index holds documents.
    """

    @property
    @abstractmethod
    def dimension(self) -> int: ...

    @property
    @abstractmethod
    def metric(self) -> SimilarityMetric: ...

    @property
    @abstractmethod
    def filter_strategy(self) -> FilterStrategy: ...

    @abstractmethod
    def set_metric(self, metric: SimilarityMetric | str) -> None:
        """Change the metric of an empty index."""
        ...

    @abstractmethod
    def insert(self, documents: list[Document]) -> list[str]:
        """Store documents with precomputed vectors and return their ids."""
        ...

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Remove documents by id and return how many existed."""
        ...

    @abstractmethod
    def search(
        self,
        query_vector: list[float],
        k: int,
        filter: FilterLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Return the ``k`` best matches for ``query_vector``."""
        ...

    @abstractmethod
    def get(self, ids: list[str]) -> list[Document]:
        """Fetch stored documents, skipping unknown ids."""
        ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every document."""
        ...

    @abstractmethod
    def documents(self) -> Iterator[Document]:
        """Iterate over a consistent snapshot of stored documents."""
        ...
