"""FastAPI API routes for oracle-rag.

Provides REST endpoints for content ingestion, job status, the content
library, business queries and health.  Service dependencies are resolved
from ``app.state`` via FastAPI's ``Depends`` using the ``Annotated``
pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/content                   POST    Ingest one item -> job
# /api/v1/content/batch             POST    Ingest items in windows -> jobs
# /api/v1/content                   GET     Library listing
# /api/v1/content/{id}/archive      POST    Archive an item
# /api/v1/jobs                      GET     Registry listing (?status=)
# /api/v1/jobs/{id}                 GET     One job (404 unknown/evicted)
# /api/v1/query                     POST    Ask a business question
# /api/v1/health                    GET     Health check + store stats
#
# DEPENDENCY INJECTION PATTERN:
# Each route declares its dependencies as type-annotated params; the
# helpers below read them from app.state (populated in main._lifespan).
# Domain errors raised by services are turned into JSON bodies by
# ErrorHandlingMiddleware.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.schemas import (
    ArchiveResponse,
    BatchIngestRequest,
    BatchIngestResponse,
    ContentListResponse,
    ErrorResponse,
    HealthResponse,
    IngestContentRequest,
    JobListResponse,
    QueryRequest,
)
from src.interfaces.content_store import IContentStore
from src.models.assembly import QueryAnswer
from src.models.content import ContentStatus
from src.models.pipeline import JobStatus, ProcessingJob
from src.pipeline.orchestrator import IngestionOrchestrator
from src.services.answer_service import AnswerService
from src.utils.errors import StorageError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> IngestionOrchestrator:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.orchestrator


def _get_answer_service(request: Request) -> AnswerService:
    """Return the query-time answer service from application state."""
    return request.app.state.answer_service


def _get_store(request: Request) -> IContentStore:
    """Return the content store from application state."""
    return request.app.state.store


OrchestratorDep = Annotated[IngestionOrchestrator, Depends(_get_orchestrator)]
AnswerServiceDep = Annotated[AnswerService, Depends(_get_answer_service)]
StoreDep = Annotated[IContentStore, Depends(_get_store)]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post(
    "/content",
    response_model=ProcessingJob,
    responses={422: {"model": ErrorResponse}},
    summary="Ingest one piece of content",
)
async def ingest_content(
    body: IngestContentRequest, orchestrator: OrchestratorDep
) -> ProcessingJob:
    """Run the five ingestion stages and return the final job snapshot.

    A stage failure is reported in the job (status ``failed`` plus an
    error message), not as an HTTP error.
    """
    return await orchestrator.process_content(
        body.type, body.source, content=body.content, options=body.options
    )


@router.post(
    "/content/batch",
    response_model=BatchIngestResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Ingest several items in bounded windows",
)
async def ingest_batch(
    body: BatchIngestRequest, orchestrator: OrchestratorDep
) -> BatchIngestResponse:
    jobs = await orchestrator.process_batch(
        body.items, options=body.options, max_concurrent=body.max_concurrent
    )
    failed = sum(1 for job in jobs if job.status == JobStatus.FAILED)
    return BatchIngestResponse(jobs=jobs, succeeded=len(jobs) - failed, failed=failed)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@router.get(
    "/jobs/{job_id}",
    response_model=ProcessingJob,
    responses={404: {"model": ErrorResponse}},
    summary="Get one ingestion job",
)
async def get_job(job_id: str, orchestrator: OrchestratorDep) -> ProcessingJob:
    job = orchestrator.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return job


@router.get(
    "/jobs",
    response_model=JobListResponse,
    summary="List ingestion jobs still held by the registry",
)
async def list_jobs(
    orchestrator: OrchestratorDep,
    status: Annotated[JobStatus | None, Query()] = None,
) -> JobListResponse:
    if status is None:
        jobs = orchestrator.registry.all()
    else:
        jobs = orchestrator.get_jobs_by_status(status)
    return JobListResponse(jobs=jobs, total=len(jobs))


# ---------------------------------------------------------------------------
# Content library
# ---------------------------------------------------------------------------


@router.get(
    "/content",
    response_model=ContentListResponse,
    summary="List knowledge-base content items",
)
async def list_content(
    store: StoreDep,
    status: Annotated[ContentStatus | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ContentListResponse:
    items = await store.list_content_items(status=status, limit=limit, offset=offset)
    return ContentListResponse(items=items, total=len(items), limit=limit, offset=offset)


@router.post(
    "/content/{content_id}/archive",
    response_model=ArchiveResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Archive a content item so it no longer appears in search",
)
async def archive_content(content_id: str, store: StoreDep) -> ArchiveResponse:
    archived = await store.archive_content_item(content_id)
    if not archived:
        raise HTTPException(status_code=404, detail=f"Content not found: {content_id}")
    _logger.info("content_archived", content_id=content_id)
    return ArchiveResponse(content_id=content_id, archived=True)


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@router.post(
    "/query",
    response_model=QueryAnswer,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Ask a business question",
)
async def query(body: QueryRequest, answer_service: AnswerServiceDep) -> QueryAnswer:
    return await answer_service.answer(
        body.query,
        options=body.options,
        known_context=body.known_context,
        user_profile=body.user_profile,
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, provider availability and store stats."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    store_stats: dict[str, Any] = {}
    store_ok = False
    store = getattr(request.app.state, "store", None)
    if store is not None:
        try:
            store_stats = await store.get_stats()
            store_ok = True
        except StorageError as exc:
            _logger.warning("health_store_unavailable", error=exc.message)
    providers["store"] = store_ok

    if store_ok and providers.get("embedding", False):
        status = "healthy"
    elif store_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status, version=_VERSION, providers=providers, store=store_stats
    )
