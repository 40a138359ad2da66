"""Integration tests for the FastAPI endpoints using TestClient.

The app is assembled by hand: the real router and middleware, a real
IngestionOrchestrator and AnswerService, and mocked store / embedder.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware
from src.api.routes import router as api_router
from src.api.websocket import websocket_job_progress
from src.pipeline.job_registry import JobRegistry
from src.pipeline.orchestrator import IngestionOrchestrator
from src.providers.extractor import ExtractorRegistry, TextExtractor
from src.services.answer_service import AnswerService
from src.utils.errors import StorageError
from tests.conftest import make_candidate, make_words


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(mock_store, mock_embedder, embedding_ok: bool = True) -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.include_router(api_router)
    app.add_api_websocket_route("/ws/jobs/{job_id}", websocket_job_progress)

    app.state.store = mock_store
    app.state.orchestrator = IngestionOrchestrator(
        store=mock_store,
        embedder=mock_embedder,
        extractors=ExtractorRegistry([TextExtractor()]),
        registry=JobRegistry(),
        max_batch_size=5,
    )
    app.state.answer_service = AnswerService(store=mock_store, embedder=mock_embedder)
    app.state.provider_registry = {"embedding": embedding_ok, "llm": False}
    return app


def _text_body(words: int = 80) -> dict:
    return {"type": "text", "content": "Pricing strategy for offers. " + make_words(words)}


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class TestIngestion:
    def test_ingest_text_returns_completed_job(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content", json=_text_body())

        assert response.status_code == 200
        job = response.json()
        assert job["status"] == "completed"
        assert job["id"].startswith("text_")
        assert job["progress"] == 100

    def test_stage_failure_is_reported_in_job(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content", json={"type": "text", "content": "too short"})

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert "too short" in response.json()["error"].lower()

    def test_unknown_type_is_rejected(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content", json={"type": "podcast", "source": "x"})

        assert response.status_code == 422

    def test_batch(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))
        items = [_text_body(), {"type": "text", "content": "tiny"}, _text_body(120)]

        response = client.post("/api/v1/content/batch", json={"items": items, "max_concurrent": 2})

        assert response.status_code == 200
        body = response.json()
        assert [j["status"] for j in body["jobs"]] == ["completed", "failed", "completed"]
        assert (body["succeeded"], body["failed"]) == (2, 1)

    def test_empty_batch_maps_to_422(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content/batch", json={"items": []})

        assert response.status_code == 422
        assert response.json()["error"] == "InputValidationError"

    def test_oversized_batch_maps_to_422(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content/batch", json={"items": [_text_body()] * 6})

        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobs:
    def test_get_job_after_ingest(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))
        job_id = client.post("/api/v1/content", json=_text_body()).json()["id"]

        response = client.get(f"/api/v1/jobs/{job_id}")

        assert response.status_code == 200
        assert response.json()["id"] == job_id

    def test_unknown_job_is_404(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        assert client.get("/api/v1/jobs/nope").status_code == 404

    def test_list_jobs_by_status(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))
        client.post("/api/v1/content", json=_text_body())
        client.post("/api/v1/content", json={"type": "text", "content": "tiny"})

        everything = client.get("/api/v1/jobs").json()
        failed = client.get("/api/v1/jobs", params={"status": "failed"}).json()

        assert everything["total"] == 2
        assert failed["total"] == 1

    def test_websocket_sends_current_snapshot(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))
        job_id = client.post("/api/v1/content", json=_text_body()).json()["id"]

        with client.websocket_connect(f"/ws/jobs/{job_id}") as ws:
            snapshot = ws.receive_json()

        assert snapshot["id"] == job_id
        assert snapshot["status"] == "completed"

    def test_websocket_unknown_job(self, mock_store, mock_embedder) -> None:
        app = _create_test_app(mock_store, mock_embedder)
        client = TestClient(app)

        with client.websocket_connect("/ws/jobs/missing") as ws:
            message = ws.receive_json()

        assert message == {"job_id": "missing", "error": "Job not found"}
        assert app.state.orchestrator.registry._listeners == {}


# ---------------------------------------------------------------------------
# Content library
# ---------------------------------------------------------------------------


class TestContentLibrary:
    def test_list_content(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.get("/api/v1/content", params={"limit": 5})

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0, "limit": 5, "offset": 0}

    def test_archive(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/content/item-1/archive")

        assert response.json() == {"content_id": "item-1", "archived": True}
        mock_store.archive_content_item.assert_awaited_once_with("item-1")

    def test_archive_unknown_is_404(self, mock_store, mock_embedder) -> None:
        mock_store.archive_content_item.return_value = False
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        assert client.post("/api/v1/content/ghost/archive").status_code == 404


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


class TestQuery:
    def test_query_returns_assembled_answer(self, mock_store, mock_embedder) -> None:
        mock_store.search_chunks.return_value = [
            make_candidate("c1", "Offer a guarantee on every package you sell."),
        ]
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/query", json={"query": "How to build a better offer?"})

        assert response.status_code == 200
        body = response.json()
        assert body["query_context"]["intent"] == "implementation"
        assert body["response"]["metadata"]["source_count"] == 1
        assert "total_ms" in body["timings"]

    def test_empty_query_is_422(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        assert client.post("/api/v1/query", json={"query": ""}).status_code == 422

    def test_store_failure_maps_to_500(self, mock_store, mock_embedder) -> None:
        mock_store.search_chunks.side_effect = StorageError("disk I/O error", "sqlite_store")
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        response = client.post("/api/v1/query", json={"query": "How do I scale?"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "StorageError",
            "detail": "disk I/O error",
            "provider": "sqlite_store",
        }


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_healthy(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["providers"]["store"] is True
        assert body["store"]["total_items"] == 0

    def test_degraded_without_embeddings(self, mock_store, mock_embedder) -> None:
        client = TestClient(_create_test_app(mock_store, mock_embedder, embedding_ok=False))

        assert client.get("/api/v1/health").json()["status"] == "degraded"

    def test_unhealthy_when_store_fails(self, mock_store, mock_embedder) -> None:
        mock_store.get_stats.side_effect = StorageError("locked")
        client = TestClient(_create_test_app(mock_store, mock_embedder))

        assert client.get("/api/v1/health").json()["status"] == "unhealthy"
