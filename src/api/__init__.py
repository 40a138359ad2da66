"""oracle-rag API layer -- routes, schemas, WebSocket, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
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
from src.api.websocket import websocket_job_progress

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_job_progress",
    "ArchiveResponse",
    "BatchIngestRequest",
    "BatchIngestResponse",
    "ContentListResponse",
    "ErrorResponse",
    "HealthResponse",
    "IngestContentRequest",
    "JobListResponse",
    "QueryRequest",
]
