"""Pydantic request/response schemas for the oracle-rag API.

Domain models (ProcessingJob, ContentItem, QueryAnswer) are frozen
pydantic models already, so most responses return them directly; the
schemas here wrap them with request envelopes and list totals.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI validates every request body against its schema (422 on
# mismatch), serializes responses through ``response_model=...`` and
# publishes both in the OpenAPI docs at /docs.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.content import ContentItem, ContentType, ProcessingOptions
from src.models.pipeline import BatchItem, ProcessingJob
from src.models.query import KnownContext, QueryOptions, UserProfile


class IngestContentRequest(BaseModel):
    """One piece of content to ingest."""

    type: ContentType
    source: str = Field(default="", description="File path, URL or video URL.")
    content: str | None = Field(
        default=None, description="Literal text (required for type=text)."
    )
    options: ProcessingOptions | None = None


class BatchIngestRequest(BaseModel):
    """Several items ingested in windows of ``max_concurrent``."""

    items: list[BatchItem]
    options: ProcessingOptions | None = None
    max_concurrent: int | None = Field(default=None, ge=1)


class BatchIngestResponse(BaseModel):
    jobs: list[ProcessingJob]
    succeeded: int
    failed: int


class JobListResponse(BaseModel):
    jobs: list[ProcessingJob]
    total: int


class ContentListResponse(BaseModel):
    items: list[ContentItem]
    total: int
    limit: int
    offset: int


class ArchiveResponse(BaseModel):
    content_id: str
    archived: bool


class QueryRequest(BaseModel):
    """A business question plus optional retrieval and context hints."""

    query: str = Field(..., min_length=1, max_length=2000)
    options: QueryOptions | None = None
    known_context: KnownContext | None = None
    user_profile: UserProfile | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
    store: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    provider: str | None = None
