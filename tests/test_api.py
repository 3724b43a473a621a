import pytest
from fastapi.testclient import TestClient

from service.api import app
from tests.conftest import make_paragraph


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def document_body():
    return {
        "id": "kb-42",
        "content": "\n\n".join(make_paragraph(i) for i in range(10)),
        "metadata": {"title": "Weekly reports", "language": "en"},
    }


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert set(body["default_config"]) == {
        "chunk_size", "overlap", "separator", "preserve_paragraphs", "min_chunk_size",
    }


def test_chunk_document(client, document_body):
    response = client.post("/chunk", json={"document": document_body, "config": {"chunk_size": 500, "overlap": 100}})

    assert response.status_code == 200
    body = response.json()
    assert [c["id"] for c in body["chunks"]] == ["kb-42_chunk_0", "kb-42_chunk_1"]
    assert body["chunks"][0]["metadata"]["title"] == "Weekly reports"
    assert body["stats"]["total_chunks"] == 2
    assert body["stats"]["unique_documents"] == 1


def test_chunk_document_without_content(client):
    response = client.post("/chunk", json={"document": {"id": "kb-empty", "content": ""}})

    assert response.status_code == 200
    assert response.json() == {
        "chunks": [],
        "stats": {
            "total_chunks": 0,
            "unique_documents": 0,
            "average_chunk_size": 0,
            "total_content_length": 0,
        },
    }


def test_chunk_batch_skips_bad_documents(client, document_body):
    documents = [dict(document_body, id=f"kb-{i}") for i in range(4)] + [dict(document_body, id=None)]

    response = client.post("/chunk/batch", json={"documents": documents, "config": {"chunk_size": 1000}})

    assert response.status_code == 200
    body = response.json()
    assert len(body["chunks"]) == 4
    assert body["stats"]["unique_documents"] == 4


def test_reconstruct(client, document_body):
    chunks = client.post("/chunk", json={"document": document_body}).json()["chunks"]

    response = client.post("/reconstruct", json={"chunks": chunks})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "kb-42"
    assert body["metadata"] == {"title": "Weekly reports", "language": "en"}
    assert len(body["content"]) >= len(document_body["content"])


def test_reconstruct_nothing(client):
    response = client.post("/reconstruct", json={"chunks": []})

    assert response.status_code == 404


def test_stats(client):
    chunks = [
        {"id": "a_chunk_0", "content": "x" * 120, "metadata": {"original_id": "a"}},
        {"id": "b_chunk_0", "content": "y" * 380, "metadata": {"original_id": "b"}},
    ]

    response = client.post("/stats", json={"chunks": chunks})

    assert response.status_code == 200
    body = response.json()
    assert body["total_chunks"] == 2
    assert body["average_chunk_size"] == 250
    assert body["chunk_size_distribution"] == {"small": 1, "medium": 1, "large": 0}


def test_stats_reports_errors(client):
    response = client.post("/stats", json={"chunks": [{"id": "a_chunk_0"}]})

    assert response.status_code == 200
    assert "error" in response.json()
