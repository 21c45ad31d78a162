"""
Pytest configuration and shared fixtures.
"""

import pytest

from embedstore.adapters.outbound.embedding import HashEmbeddingAdapter
from embedstore.adapters.outbound.vector_index import InMemoryVectorIndex
from embedstore.config.settings import Settings
from embedstore.core.domain import Document
from embedstore.core.ports.embedding_port import EmbeddingPort
from embedstore.core.services import DocumentStoreService


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API and CLI)")


class FakeEmbedder(EmbeddingPort):
    """Embedder returning canned vectors keyed by text, for exact-score tests."""

    def __init__(self, vectors: dict[str, list[float]], dimension: int = 2):
        self.vectors = vectors
        self._dimension = dimension
        self.calls: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [list(self.vectors[text]) for text in texts]


@pytest.fixture
def sample_documents():
    """The three two-dimensional documents used throughout the index tests."""
    return [
        Document(content="east", metadata={"tag": "a", "year": 2021}, doc_id="doc1", vector=[1.0, 0.0]),
        Document(content="north", metadata={"tag": "b", "year": 2022}, doc_id="doc2", vector=[0.0, 1.0]),
        Document(
            content="mostly east",
            metadata={"tag": "a", "year": 2023},
            doc_id="doc3",
            vector=[0.9, 0.1],
        ),
    ]


@pytest.fixture
def index(sample_documents):
    """Cosine index holding the sample documents."""
    idx = InMemoryVectorIndex(dimension=2, metric="cosine")
    idx.insert(sample_documents)
    return idx


@pytest.fixture
def fake_embedder():
    """Embedder mapping a few words onto the sample document directions."""
    return FakeEmbedder(
        {
            "east": [1.0, 0.0],
            "north": [0.0, 1.0],
            "mostly east": [0.9, 0.1],
            "query east": [1.0, 0.0],
        }
    )


@pytest.fixture
def hash_embedder():
    return HashEmbeddingAdapter(dimension=256)


@pytest.fixture
def store(hash_embedder):
    """Empty document store on the hash embedder."""
    return DocumentStoreService(hash_embedder, InMemoryVectorIndex(dimension=256))


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the environment and writing under tmp_path."""
    return Settings(
        _env_file=None,
        embedding_provider="hash",
        embedding_dimension=64,
        data_dir=tmp_path / "data",
    )
