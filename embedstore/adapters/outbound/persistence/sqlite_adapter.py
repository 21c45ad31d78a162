"""SQLite snapshots of vector index contents."""

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import numpy as np

from ....core.domain import Document, SimilarityMetric
from ....core.domain.exceptions import ImmutableSettingError, PersistenceError
from ....core.ports.persistence_port import IndexPersistencePort
from ....core.ports.vector_index_port import VectorIndexPort

logger = logging.getLogger(__name__)


class SQLiteIndexRepository(IndexPersistencePort):
    """Saves and restores an index as rows in a SQLite database.

    Vectors are stored as raw float64 blobs and metadata as JSON. ``save``
    replaces the whole snapshot inside one transaction, so a failed save
    leaves the previous snapshot intact.
    """

    def __init__(self, db_path: str | Path = "data/embedstore.db") -> None:
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS index_config (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS documents (
                        doc_id TEXT PRIMARY KEY,
                        content TEXT NOT NULL,
                        metadata TEXT NOT NULL,
                        vector BLOB NOT NULL
                    )
                """)

                conn.commit()

        except sqlite3.Error as e:
            raise PersistenceError(
                "Failed to initialize snapshot database",
                cause=e,
                context={"db_path": str(self.db_path)},
            ) from e

    def _read_config(self, conn: sqlite3.Connection) -> dict[str, str]:
        rows = conn.execute("SELECT key, value FROM index_config").fetchall()
        return {key: value for key, value in rows}

    def exists(self) -> bool:
        """True if a snapshot has been saved."""
        try:
            with self._connect() as conn:
                return "dimension" in self._read_config(conn)
        except sqlite3.Error as e:
            raise PersistenceError(
                "Failed to read snapshot config", cause=e, context={"db_path": str(self.db_path)}
            ) from e

    def save(self, index: VectorIndexPort) -> int:
        """Replace the stored snapshot with the current index contents.

        Returns:
            Number of documents written.
        """
        rows = [
            (
                doc.doc_id,
                doc.content,
                json.dumps(doc.metadata, sort_keys=True),
                np.asarray(doc.vector, dtype=np.float64).tobytes(),
            )
            for doc in index.documents()
        ]
        config = {
            "dimension": str(index.dimension),
            "metric": index.metric.value,
            "saved_at": datetime.now(UTC).isoformat(),
        }

        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM documents")
                conn.executemany(
                    "INSERT INTO documents (doc_id, content, metadata, vector) VALUES (?, ?, ?, ?)",
                    rows,
                )
                conn.executemany(
                    "INSERT OR REPLACE INTO index_config (key, value) VALUES (?, ?)",
                    list(config.items()),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceError(
                "Failed to save index snapshot",
                cause=e,
                context={"db_path": str(self.db_path), "documents": len(rows)},
            ) from e

        logger.info("Saved %d documents to %s", len(rows), self.db_path)
        return len(rows)

    def load_into(self, index: VectorIndexPort) -> int:
        """Insert the stored snapshot into ``index``.

        Returns:
            Number of documents loaded (0 when no snapshot exists).

        Raises:
            ImmutableSettingError: If the snapshot dimension or metric differs
                from the index configuration.
            PersistenceError: If the database cannot be read.
        """
        try:
            with self._connect() as conn:
                config = self._read_config(conn)
                rows = conn.execute(
                    "SELECT doc_id, content, metadata, vector FROM documents ORDER BY doc_id"
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(
                "Failed to load index snapshot", cause=e, context={"db_path": str(self.db_path)}
            ) from e

        if "dimension" not in config:
            return 0

        stored_dimension = int(config["dimension"])
        stored_metric = SimilarityMetric.parse(config["metric"])
        if stored_dimension != index.dimension or stored_metric is not index.metric:
            raise ImmutableSettingError(
                "Snapshot configuration does not match the target index",
                context={
                    "snapshot": {"dimension": stored_dimension, "metric": stored_metric.value},
                    "index": {"dimension": index.dimension, "metric": index.metric.value},
                },
            )

        documents = [
            Document(
                content=content,
                metadata=json.loads(metadata),
                doc_id=doc_id,
                vector=np.frombuffer(vector, dtype=np.float64).tolist(),
            )
            for doc_id, content, metadata, vector in rows
        ]
        index.insert(documents)
        logger.info("Loaded %d documents from %s", len(documents), self.db_path)
        return len(documents)

    def stored_config(self) -> dict[str, str]:
        """Configuration recorded with the last snapshot (empty if none)."""
        with self._connect() as conn:
            return self._read_config(conn)
