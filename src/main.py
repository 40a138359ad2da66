"""oracle-rag FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and initializes the content store on startup.

``build_components`` is shared with the CLI so both surfaces run the same
object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.api.websocket import websocket_job_progress
from src.config.loader import default_scoring_tables, load_config, load_scoring_tables
from src.config.scoring_tables import ScoringTables
from src.config.settings import Settings
from src.models.content import ProcessingOptions
from src.pipeline.job_registry import JobRegistry
from src.pipeline.orchestrator import IngestionOrchestrator
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.extractor import (
    ExtractorRegistry,
    FileExtractor,
    TextExtractor,
    UrlExtractor,
    VideoExtractor,
)
from src.providers.extractor.url_extractor import USER_AGENT
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.store.sqlite_content_store import SQLiteContentStore
from src.services.answer_service import AnswerService
from src.services.assembly import ContextAssemblyEngine
from src.services.ingestion import DocumentScorer, FrameworkDetector
from src.services.query_analyzer import BusinessQueryAnalyzer
from src.services.ranker import BusinessSearchRanker
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _load_tables(app_settings: Settings) -> ScoringTables:
    if app_settings.scoring_tables_path:
        return load_scoring_tables(app_settings.scoring_tables_path)
    return default_scoring_tables()


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components to be stored on ``app.state``
    (or used directly by the CLI).  Nothing here performs I/O; call
    ``store.initialize()`` before first use.
    """
    tables = _load_tables(app_settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.http_timeout_seconds),
        follow_redirects=True,
    )

    # -- Providers --
    store = SQLiteContentStore(db_path=app_settings.store_db_path)
    embedder = OpenAIEmbeddingProvider(settings=app_settings)
    llm = OpenAILLMProvider(settings=app_settings)
    extractors = ExtractorRegistry(
        [
            TextExtractor(),
            FileExtractor(),
            UrlExtractor(
                settings=app_settings,
                http_client=http_client,
                user_agent=config.get("extraction", {}).get("user_agent", USER_AGENT),
            ),
            VideoExtractor(settings=app_settings, http_client=http_client, tables=tables.video),
        ]
    )

    # -- Ingestion --
    registry = JobRegistry(
        retention_seconds=app_settings.job_retention_seconds,
        max_size=app_settings.job_registry_max_size,
    )
    orchestrator = IngestionOrchestrator(
        store=store,
        embedder=embedder,
        extractors=extractors,
        registry=registry,
        detector=FrameworkDetector(tables.frameworks),
        scorer=DocumentScorer(tables.document),
        chunking_tables=tables.chunking,
        embed_batch_size=app_settings.embed_batch_size,
        max_batch_size=app_settings.ingestion_max_batch_size,
        default_max_concurrent=app_settings.ingestion_max_concurrent,
        default_options=ProcessingOptions(
            max_chunk_size=app_settings.chunk_max_words,
            chunk_overlap=app_settings.chunk_overlap_words,
        ),
    )

    # -- Query --
    answer_service = AnswerService(
        store=store,
        embedder=embedder,
        analyzer=BusinessQueryAnalyzer(tables.query),
        ranker=BusinessSearchRanker(tables.ranking),
        engine=ContextAssemblyEngine(tables.assembly),
        llm=llm,
        response_length_chars=dict(tables.assembly.response_length_chars),
    )

    provider_registry = {
        "embedding": embedder.is_available(),
        "llm": llm.is_available(),
        "youtube_data_api": bool(app_settings.youtube_api_key),
    }

    return {
        "settings": app_settings,
        "tables": tables,
        "http_client": http_client,
        "store": store,
        "embedder": embedder,
        "llm": llm,
        "extractors": extractors,
        "orchestrator": orchestrator,
        "answer_service": answer_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["store"].initialize()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        store=settings.store_db_path,
        providers=components["provider_registry"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="oracle-rag API",
        version=_VERSION,
        description=(
            "Ingest business content from files, text, web pages and videos into "
            "a searchable knowledge base, then answer business questions with "
            "ranked, cited and structured guidance."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/jobs/{job_id}")
    async def ws_job_progress(websocket: WebSocket, job_id: str) -> None:
        await websocket_job_progress(websocket, job_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
