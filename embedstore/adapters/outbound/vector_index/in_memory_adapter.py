"""In-memory exact nearest-neighbour index backed by numpy.

The index keeps an immutable snapshot (id array, float64 vector matrix,
row norms, documents). Mutations build a new snapshot from the latest one
outside any global lock, then swap the reference under a short commit lock
if no other writer committed in between (otherwise they rebuild on the newer
state). Writers touching the same id are serialised by per-id locks. Searches
read the reference once and work on that snapshot only. A search therefore sees
either the state before a concurrent mutation or the state after it.
"""

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

import numpy as np

from ....core.domain import (
    CancellationToken,
    Document,
    FilterLike,
    Query,
    ScoredResult,
    SimilarityMetric,
    coerce_filter,
)
from ....core.domain.exceptions import (
    DimensionMismatchError,
    ImmutableSettingError,
    InvalidConfigurationError,
    InvalidDocumentError,
    InvalidParameterError,
)
from ....core.domain.metric import compute_scores, rank, row_norms
from ....core.ports.vector_index_port import FilterStrategy, VectorIndexPort
from .locks import KeyedLock

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_CHUNK_SIZE = 4096

METADATA_SCALARS = (str, int, float, bool, type(None))


@dataclass(frozen=True, eq=False)
class _Snapshot:
    """Immutable view of the index contents. Row i of every field belongs together.

    The metric travels with the rows so a search scores with the metric the
    snapshot was built under.
    """

    metric: SimilarityMetric
    ids: np.ndarray
    matrix: np.ndarray
    norms: np.ndarray
    documents: tuple[Document, ...]
    positions: dict[str, int]

    @classmethod
    def empty(cls, dimension: int, metric: SimilarityMetric) -> "_Snapshot":
        return cls(
            metric=metric,
            ids=np.array([], dtype=str),
            matrix=np.empty((0, dimension), dtype=np.float64),
            norms=np.empty(0, dtype=np.float64),
            documents=(),
            positions={},
        )

    @classmethod
    def build(
        cls, documents: list[Document], dimension: int, metric: SimilarityMetric
    ) -> "_Snapshot":
        if not documents:
            return cls.empty(dimension, metric)
        matrix = np.array([doc.vector for doc in documents], dtype=np.float64)
        ids = [doc.doc_id for doc in documents]
        return cls(
            metric=metric,
            ids=np.array(ids, dtype=str),
            matrix=matrix,
            norms=row_norms(matrix),
            documents=tuple(documents),
            positions={doc_id: i for i, doc_id in enumerate(ids)},
        )

    def __len__(self) -> int:
        return len(self.documents)

    def upsert(self, incoming: dict[str, Document], dimension: int) -> "_Snapshot":
        kept = [doc for doc in self.documents if doc.doc_id not in incoming]
        return _Snapshot.build(kept + list(incoming.values()), dimension, self.metric)

    def remove(self, ids: set[str], dimension: int) -> "_Snapshot":
        if ids.isdisjoint(self.positions):
            return self
        return _Snapshot.build(
            [doc for doc in self.documents if doc.doc_id not in ids], dimension, self.metric
        )


class InMemoryVectorIndex(VectorIndexPort):
    """Exact (brute force) vector index with metadata filtering.

    Scores are float64 and ties are broken by id ascending, so identical
    inputs always produce identical, identically ordered results.
    """

    def __init__(
        self,
        dimension: int,
        metric: SimilarityMetric | str = SimilarityMetric.COSINE,
        filter_strategy: FilterStrategy | str = FilterStrategy.PRE,
        search_chunk_size: int = DEFAULT_SEARCH_CHUNK_SIZE,
    ) -> None:
        """Initialize an empty index.

        Args:
            dimension: Length every stored and query vector must have.
            metric: Similarity metric, fixed while the index holds documents.
            filter_strategy: Apply filters before scoring (PRE) or after
                ranking (POST). Results are identical either way.
            search_chunk_size: Rows scored between cancellation checks.

        Raises:
            InvalidConfigurationError: On a non-positive dimension or chunk
                size, or an unknown metric or strategy.
        """
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension <= 0:
            raise InvalidConfigurationError(
                f"Index dimension must be a positive integer, got {dimension!r}",
                context={"dimension": repr(dimension)},
            )
        if search_chunk_size <= 0:
            raise InvalidConfigurationError(
                "search_chunk_size must be positive",
                context={"search_chunk_size": search_chunk_size},
            )
        try:
            strategy = FilterStrategy(filter_strategy)
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Unsupported filter strategy: {filter_strategy!r}",
                cause=e,
                context={"supported": [s.value for s in FilterStrategy]},
            ) from e

        self._dimension = dimension
        self._filter_strategy = strategy
        self._search_chunk_size = search_chunk_size
        self._snapshot = _Snapshot.empty(dimension, SimilarityMetric.parse(metric))
        self._commit_lock = threading.Lock()
        self._keyed = KeyedLock()

        logger.info(
            "Created in-memory index (dimension=%d, metric=%s, filter=%s)",
            dimension,
            self.metric.value,
            strategy.value,
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def metric(self) -> SimilarityMetric:
        return self._snapshot.metric

    @property
    def filter_strategy(self) -> FilterStrategy:
        return self._filter_strategy

    def set_metric(self, metric: SimilarityMetric | str) -> None:
        """Change the metric of an empty index.

        Raises:
            ImmutableSettingError: If the index holds documents.
            InvalidConfigurationError: If the metric is unknown.
        """
        resolved = SimilarityMetric.parse(metric)
        with self._commit_lock:
            current = self._snapshot
            if resolved is current.metric:
                return
            if len(current):
                raise ImmutableSettingError(
                    "Cannot change the similarity metric of a populated index",
                    context={
                        "current": current.metric.value,
                        "requested": resolved.value,
                        "documents": len(current),
                    },
                )
            self._snapshot = _Snapshot.empty(self._dimension, resolved)
        logger.info("Similarity metric set to %s", resolved.value)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _prepare(self, document: Document) -> Document:
        """Validate a document and return the copy that will be stored."""
        doc_id = document.doc_id or uuid.uuid4().hex
        if not isinstance(doc_id, str):
            raise InvalidDocumentError(
                f"Document id must be a string, got {type(doc_id).__name__}",
                context={"doc_id": repr(doc_id)},
            )
        metadata = self._check_metadata(document.metadata, doc_id)
        if document.vector is None:
            raise InvalidDocumentError(
                "Document has no vector; embed it before inserting",
                context={"doc_id": doc_id},
            )
        vector = self._to_array(document.vector, doc_id=doc_id)
        if not np.all(np.isfinite(vector)):
            raise InvalidDocumentError(
                "Document vector contains NaN or infinite values",
                context={"doc_id": doc_id},
            )

        return Document(
            content=document.content,
            metadata=metadata,
            doc_id=doc_id,
            vector=vector.tolist(),
        )

    @staticmethod
    def _check_metadata(metadata: object, doc_id: str) -> dict[str, Any]:
        """Return a private copy of ``metadata`` after checking its shape.

        Keys must be strings; values scalars or lists of scalars. Tuples are
        stored as lists.
        """
        if not isinstance(metadata, dict):
            raise InvalidDocumentError(
                f"Metadata must be a mapping, got {type(metadata).__name__}",
                context={"doc_id": doc_id},
            )

        checked: dict[str, Any] = {}
        for key, value in metadata.items():
            if not isinstance(key, str):
                raise InvalidDocumentError(
                    f"Metadata keys must be strings, got {type(key).__name__}",
                    context={"doc_id": doc_id, "key": repr(key)},
                )
            if isinstance(value, list | tuple):
                bad = [item for item in value if not isinstance(item, METADATA_SCALARS)]
            else:
                bad = [] if isinstance(value, METADATA_SCALARS) else [value]
            if bad:
                raise InvalidDocumentError(
                    f"Metadata field '{key}' holds {type(bad[0]).__name__}; "
                    "values must be scalars or lists of scalars",
                    context={"doc_id": doc_id, "key": key},
                )
            checked[key] = list(value) if isinstance(value, list | tuple) else value
        return checked

    def _to_array(self, values: list[float], doc_id: str | None = None) -> np.ndarray:
        context = {"doc_id": doc_id} if doc_id else {}
        try:
            vector = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidDocumentError(
                "Vector must be a sequence of numbers", cause=e, context=context
            ) from e
        if vector.ndim != 1:
            raise InvalidDocumentError(
                f"Vector must be one-dimensional, got shape {vector.shape}", context=context
            )
        if vector.shape[0] != self._dimension:
            raise DimensionMismatchError(
                f"Vector dimension {vector.shape[0]} does not match index dimension "
                f"{self._dimension}",
                context={**context, "expected": self._dimension, "actual": int(vector.shape[0])},
            )
        return vector

    def _commit(self, build: Callable[[_Snapshot], _Snapshot]) -> tuple[_Snapshot, _Snapshot]:
        """Swap in ``build(base)`` for the latest snapshot ``base``.

        The new snapshot is built without holding the commit lock. If another
        writer committed meanwhile, the build is repeated on the newer state.
        Callers hold the keyed locks of every id they touch.

        Returns:
            The snapshot the change was applied to and the one committed.
        """
        while True:
            base = self._snapshot
            candidate = build(base)
            with self._commit_lock:
                if self._snapshot is base:
                    self._snapshot = candidate
                    return base, candidate
            logger.debug("Index changed during rebuild; retrying on the newer snapshot")

    def insert(self, documents: list[Document]) -> list[str]:
        """Store documents, replacing any existing document with the same id.

        Every document is validated before anything is written; one bad
        document rejects the whole call. When an id repeats within the call
        the last occurrence wins.

        Args:
            documents: Documents with vectors of the index dimension.

        Returns:
            Ids in input order, including generated ones.

        Raises:
            DimensionMismatchError: If a vector has the wrong length.
            InvalidDocumentError: If a vector is missing or not finite, or the
                metadata holds anything but scalars and lists of scalars.
        """
        if not documents:
            return []

        prepared = [self._prepare(doc) for doc in documents]
        incoming = {doc.doc_id: doc for doc in prepared}

        with self._keyed.acquire(incoming.keys()):
            _, committed = self._commit(lambda base: base.upsert(incoming, self._dimension))
        total = len(committed)

        logger.debug("Upserted %d documents (index size %d)", len(incoming), total)
        return [doc.doc_id for doc in prepared]

    def delete(self, ids: list[str]) -> int:
        """Remove documents by id. Unknown ids are ignored.

        Returns:
            Number of documents that existed and were removed.
        """
        targets = set(ids)
        if not targets:
            return 0

        with self._keyed.acquire(targets):
            base, committed = self._commit(lambda snap: snap.remove(targets, self._dimension))

        removed = len(base) - len(committed)
        logger.debug("Deleted %d of %d requested ids", removed, len(targets))
        return removed

    def clear(self) -> None:
        with self._commit_lock:
            removed = len(self._snapshot)
            self._snapshot = _Snapshot.empty(self._dimension, self._snapshot.metric)
        logger.info("Cleared index (%d documents removed)", removed)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def count(self) -> int:
        return len(self._snapshot)

    def get(self, ids: list[str]) -> list[Document]:
        snapshot = self._snapshot
        return [
            snapshot.documents[snapshot.positions[doc_id]].copy()
            for doc_id in ids
            if doc_id in snapshot.positions
        ]

    def documents(self) -> Iterator[Document]:
        snapshot = self._snapshot
        for doc in snapshot.documents:
            yield doc.copy()

    def search_by_query(
        self, query: Query, *, cancel_token: CancellationToken | None = None
    ) -> list[ScoredResult]:
        """Run a search described by a ``Query``."""
        return self.search(query.vector, query.k, query.filter, cancel_token=cancel_token)

    def search(
        self,
        query_vector: list[float],
        k: int,
        filter: FilterLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[ScoredResult]:
        """Return the ``k`` best matches, best first.

        Fewer than ``k`` results come back only when fewer documents exist
        or satisfy the filter.

        Args:
            query_vector: Vector of the index dimension.
            k: Maximum number of results. Zero returns an empty list.
            filter: Optional predicate or operator mapping over metadata.
            cancel_token: Checked between scan chunks.

        Raises:
            InvalidParameterError: If ``k`` is negative or not an integer.
            DimensionMismatchError: If the query vector has the wrong length.
            SearchCancelledError: If the token fires during the scan.
        """
        if isinstance(k, bool) or not isinstance(k, int | np.integer):
            raise InvalidParameterError(f"k must be an integer, got {k!r}", context={"k": repr(k)})
        if k < 0:
            raise InvalidParameterError(f"k must be non-negative, got {k}", context={"k": k})

        query = self._to_array(query_vector)
        if not np.all(np.isfinite(query)):
            raise InvalidParameterError("Query vector contains NaN or infinite values")
        predicate = coerce_filter(filter)

        snapshot = self._snapshot
        metric = snapshot.metric
        if k == 0 or not len(snapshot):
            return []

        if cancel_token:
            cancel_token.raise_if_cancelled()

        prefilter = predicate is not None and self._filter_strategy is FilterStrategy.PRE
        if prefilter:
            rows = np.array(
                [i for i, doc in enumerate(snapshot.documents) if predicate.matches(doc.metadata)],
                dtype=np.intp,
            )
            if rows.size == 0:
                return []
        else:
            rows = np.arange(len(snapshot), dtype=np.intp)

        scores = self._score_rows(snapshot, metric, query, rows, cancel_token)
        order = rank(metric, scores, snapshot.ids[rows])

        results: list[ScoredResult] = []
        for position in order:
            row = int(rows[position])
            document = snapshot.documents[row]
            if predicate is not None and not prefilter and not predicate.matches(document.metadata):
                continue
            results.append(ScoredResult(document=document.copy(), score=float(scores[position])))
            if len(results) == k:
                break

        logger.debug(
            "Search returned %d of k=%d (candidates=%d, metric=%s)",
            len(results),
            k,
            rows.size,
            metric.value,
        )
        return results

    def _score_rows(
        self,
        snapshot: _Snapshot,
        metric: SimilarityMetric,
        query: np.ndarray,
        rows: np.ndarray,
        cancel_token: CancellationToken | None,
    ) -> np.ndarray:
        scores = np.empty(rows.size, dtype=np.float64)
        for start in range(0, rows.size, self._search_chunk_size):
            if cancel_token:
                cancel_token.raise_if_cancelled()
            chunk = rows[start : start + self._search_chunk_size]
            scores[start : start + chunk.size] = compute_scores(
                metric, snapshot.matrix[chunk], query, snapshot.norms[chunk]
            )
        return scores

    def stats(self) -> dict[str, object]:
        """Summary of the index configuration and size."""
        return {
            "count": self.count(),
            "dimension": self._dimension,
            "metric": self.metric.value,
            "filter_strategy": self._filter_strategy.value,
        }
