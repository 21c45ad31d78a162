"""Integration tests for FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

from embedstore.adapters.inbound.api.deps import get_store
from embedstore.adapters.inbound.api.main import app
from embedstore.adapters.outbound.vector_index import InMemoryVectorIndex
from embedstore.core.services import DocumentStoreService

pytestmark = pytest.mark.integration


@pytest.fixture
def example_store(fake_embedder, index):
    """Store over the three two-dimensional sample documents."""
    return DocumentStoreService(fake_embedder, index)


def _client_for(store):
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def client(example_store):
    """Create test client with the example store injected."""
    yield _client_for(example_store)
    app.dependency_overrides.clear()


@pytest.fixture
def text_client(store):
    """Client over an empty hash-embedding store."""
    yield _client_for(store)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check returns 200."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_readiness_check(self, client):
        """Test readiness probe reports the index size."""
        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert "3 docs" in data["index"]


class TestSearchEndpoints:
    """Tests for search endpoints."""

    def test_search_example(self, client):
        response = client.post("/api/v1/search", json={"query": "query east", "k": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "query east"
        assert [hit["document"]["id"] for hit in data["results"]] == ["doc1", "doc3"]
        assert data["results"][0]["score"] == pytest.approx(1.0)
        assert "vector" not in data["results"][0]["document"]

    def test_search_with_filter(self, client):
        response = client.post(
            "/api/v1/search",
            json={"query": "query east", "k": 5, "filter": {"year": {"$gte": 2022}}},
        )

        assert response.status_code == 200
        assert [hit["document"]["id"] for hit in response.json()["results"]] == ["doc3", "doc2"]

    def test_mmr_search(self, client):
        response = client.post(
            "/api/v1/search/mmr",
            json={"query": "query east", "k": 2, "lambda_mult": 0.0},
        )

        assert response.status_code == 200
        assert [hit["document"]["id"] for hit in response.json()["results"]] == ["doc1", "doc2"]

    def test_empty_query_returns_structured_400(self, client):
        response = client.post("/api/v1/search", json={"query": "   ", "k": 2})

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "ES_VAL_002"
        assert data["error"]["type"] == "EmptyQueryError"
        assert "location" in data

    def test_invalid_filter_returns_400(self, client):
        response = client.post(
            "/api/v1/search", json={"query": "query east", "filter": {"year": {"$regex": "x"}}}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ES_VAL_005"

    def test_negative_k_rejected_by_schema(self, client):
        response = client.post("/api/v1/search", json={"query": "query east", "k": -1})
        assert response.status_code == 422

    def test_lambda_out_of_range_rejected_by_schema(self, client):
        response = client.post(
            "/api/v1/search/mmr", json={"query": "query east", "lambda_mult": 2}
        )
        assert response.status_code == 422

    def test_empty_index_returns_404(self, fake_embedder):
        empty = DocumentStoreService(fake_embedder, InMemoryVectorIndex(dimension=2))
        client = _client_for(empty)
        try:
            response = client.post("/api/v1/search", json={"query": "query east", "k": 1})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ES_RET_002"


class TestDocumentEndpoints:
    """Tests for document ingestion endpoints."""

    def test_add_get_delete(self, text_client):
        response = text_client.post(
            "/api/v1/documents",
            json={
                "documents": [
                    {"content": "Rotate credentials quarterly", "metadata": {"team": "security"}, "id": "rot"},
                    {"content": "Coffee machine is broken"},
                ]
            },
        )
        assert response.status_code == 201
        ids = response.json()["ids"]
        assert ids[0] == "rot"
        assert len(ids) == 2

        response = text_client.get("/api/v1/documents/rot")
        assert response.status_code == 200
        assert response.json() == {
            "id": "rot",
            "content": "Rotate credentials quarterly",
            "metadata": {"team": "security"},
        }

        response = text_client.post(
            "/api/v1/search", json={"query": "credentials", "k": 5, "filter": {"team": "security"}}
        )
        assert [hit["document"]["id"] for hit in response.json()["results"]] == ["rot"]

        response = text_client.request("DELETE", "/api/v1/documents", json={"ids": ["rot", "nope"]})
        assert response.status_code == 200
        assert response.json() == {"deleted": 1}

        assert text_client.get("/api/v1/documents/rot").status_code == 404

    def test_add_requires_documents(self, text_client):
        response = text_client.post("/api/v1/documents", json={"documents": []})
        assert response.status_code == 422

    def test_add_rejects_empty_content(self, text_client):
        response = text_client.post("/api/v1/documents", json={"documents": [{"content": ""}]})
        assert response.status_code == 422

    def test_add_rejects_nested_metadata(self, text_client):
        response = text_client.post(
            "/api/v1/documents",
            json={"documents": [{"content": "Rotate keys", "metadata": {"owner": {"team": "sec"}}}]},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "ES_IDX_003"
        assert text_client.get("/api/v1/stats").json()["count"] == 0

    def test_stats(self, client):
        response = client.get("/api/v1/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert data["dimension"] == 2
        assert data["metric"] == "cosine"
