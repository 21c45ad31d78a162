"""Unit tests for SQLiteIndexRepository."""

import sqlite3

import pytest

from embedstore.adapters.outbound.persistence import SQLiteIndexRepository
from embedstore.adapters.outbound.vector_index import InMemoryVectorIndex
from embedstore.core.domain import Document
from embedstore.core.domain.exceptions import ImmutableSettingError

pytestmark = pytest.mark.unit


def test_init_db(tmp_path):
    """Test database initialization and schema creation."""
    db_file = tmp_path / "nested" / "snapshot.db"
    _repository = SQLiteIndexRepository(db_file)  # noqa: F841 - needed to create DB

    with sqlite3.connect(db_file) as conn:
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    assert {"documents", "index_config"} <= tables


def test_no_snapshot(tmp_path):
    repository = SQLiteIndexRepository(tmp_path / "empty.db")
    index = InMemoryVectorIndex(dimension=2)

    assert not repository.exists()
    assert repository.load_into(index) == 0
    assert index.count() == 0
    assert repository.stored_config() == {}


def test_save_and_load_round_trip(tmp_path, index):
    """A restored index returns the same documents and search results."""
    repository = SQLiteIndexRepository(tmp_path / "snapshot.db")
    assert repository.save(index) == 3
    assert repository.exists()

    restored = InMemoryVectorIndex(dimension=2)
    assert repository.load_into(restored) == 3

    original = sorted(index.documents(), key=lambda d: d.doc_id)
    loaded = sorted(restored.documents(), key=lambda d: d.doc_id)
    assert loaded == original

    query = [0.6, 0.4]
    assert [(r.document.doc_id, r.score) for r in restored.search(query, 3)] == [
        (r.document.doc_id, r.score) for r in index.search(query, 3)
    ]


def test_save_replaces_previous_snapshot(tmp_path, index):
    repository = SQLiteIndexRepository(tmp_path / "snapshot.db")
    repository.save(index)

    index.delete(["doc1", "doc2"])
    assert repository.save(index) == 1

    restored = InMemoryVectorIndex(dimension=2)
    repository.load_into(restored)
    assert [d.doc_id for d in restored.documents()] == ["doc3"]


def test_stored_config(tmp_path, index):
    repository = SQLiteIndexRepository(tmp_path / "snapshot.db")
    repository.save(index)

    config = repository.stored_config()
    assert config["dimension"] == "2"
    assert config["metric"] == "cosine"
    assert "saved_at" in config


def test_metadata_types_survive(tmp_path):
    index = InMemoryVectorIndex(dimension=2)
    metadata = {"tags": ["a", "b"], "year": 2024, "score": 0.5, "draft": True, "note": None}
    index.insert([Document("x", metadata=metadata, doc_id="x", vector=[0.1, 0.2])])

    repository = SQLiteIndexRepository(tmp_path / "snapshot.db")
    repository.save(index)
    restored = InMemoryVectorIndex(dimension=2)
    repository.load_into(restored)

    stored = restored.get(["x"])[0]
    assert stored.metadata == metadata
    assert stored.vector == [0.1, 0.2]


@pytest.mark.parametrize(
    "target",
    [
        lambda: InMemoryVectorIndex(dimension=3),
        lambda: InMemoryVectorIndex(dimension=2, metric="euclidean"),
    ],
    ids=["dimension", "metric"],
)
def test_load_into_mismatched_index(tmp_path, index, target):
    repository = SQLiteIndexRepository(tmp_path / "snapshot.db")
    repository.save(index)

    other = target()
    with pytest.raises(ImmutableSettingError):
        repository.load_into(other)
    assert other.count() == 0
