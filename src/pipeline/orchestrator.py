"""Ingestion job orchestrator.

Drives one content item through five ordered stages and records every
transition in the :class:`~src.pipeline.job_registry.JobRegistry`:

    validation → extraction → analysis → processing → storage

ARCHITECTURE NOTE:
    Each stage follows the same pattern:
        1. Mark the stage ``processing`` and save a new job snapshot
        2. Run the stage body (extractor, scorer, chunker, embedder, store)
        3. Mark the stage ``completed`` -- or ``failed``, which fails the job
           immediately; later stages are never attempted

    Jobs are frozen pydantic models; every transition produces a new
    snapshot via ``model_copy(update={...})`` with progress recomputed from
    the stage list.

    Stage failures never propagate to the caller: every ``OracleError`` or
    unexpected exception raised inside a stage is recorded on the job.
    When the failure happens after the ContentItem was created, the item is
    marked ``failed`` too, and a storage failure removes any chunks already
    written for it.

    Batches run in windows of ``max_concurrent`` jobs; a window must fully
    settle before the next one starts, and one failure never cancels its
    siblings.
"""

from __future__ import annotations

import secrets
import string
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import ChunkingTables
from src.interfaces.content_extractor import ExtractedContent
from src.interfaces.content_store import IContentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.content import (
    ContentChunk,
    ContentItem,
    ContentStatus,
    ContentType,
    FrameworkDetection,
    ProcessingOptions,
)
from src.models.pipeline import (
    BatchItem,
    JobStatus,
    ProcessingJob,
    StageName,
    StageStatus,
    compute_progress,
)
from src.pipeline.job_registry import JobListener, JobRegistry
from src.providers.extractor.registry import ExtractorRegistry
from src.services.ingestion.chunker import ContentChunker
from src.services.ingestion.document_scorer import DocumentScorer
from src.services.ingestion.framework_detector import FrameworkDetector
from src.utils.concurrency import windowed_gather
from src.utils.errors import (
    AnalysisError,
    EmbeddingError,
    ExtractionError,
    IngestionError,
    InputValidationError,
    OracleError,
)
from src.utils.logging import bound_context, get_logger

MIN_LITERAL_CONTENT_CHARS = 50
_SUMMARY_CHARS = 500
_JOB_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_job_id(content_type: ContentType) -> str:
    """``{type}_{epoch_ms}_{rand6}``."""
    suffix = "".join(secrets.choice(_JOB_ID_ALPHABET) for _ in range(6))
    return f"{content_type.value}_{int(time.time() * 1000)}_{suffix}"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


@dataclass
class _RunState:
    """Per-job working data threaded through the stages."""

    item: ContentItem | None = None
    extracted: ExtractedContent | None = None
    detections: list[FrameworkDetection] = field(default_factory=list)
    chunks: list[ContentChunk] = field(default_factory=list)

    def require_item(self) -> ContentItem:
        if self.item is None:
            raise IngestionError(message="No content item: validation has not run")
        return self.item

    def require_extracted(self) -> ExtractedContent:
        if self.extracted is None:
            raise IngestionError(message="No extracted content: extraction has not run")
        return self.extracted


class _StageFailed(Exception):
    def __init__(self, job: ProcessingJob) -> None:
        super().__init__(job.error)
        self.job = job


class IngestionOrchestrator:
    """Runs ingestion jobs and owns the job registry.

    All collaborators are injected at construction time, so tests can
    substitute mocks for the store, embedder or any extractor.
    """

    def __init__(
        self,
        store: IContentStore,
        embedder: IEmbeddingProvider | None,
        extractors: ExtractorRegistry,
        registry: JobRegistry | None = None,
        detector: FrameworkDetector | None = None,
        scorer: DocumentScorer | None = None,
        chunking_tables: ChunkingTables | None = None,
        embed_batch_size: int = 10,
        max_batch_size: int = 50,
        default_max_concurrent: int = 3,
        default_options: ProcessingOptions | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._extractors = extractors
        self._registry = registry if registry is not None else JobRegistry()
        self._detector = detector or FrameworkDetector()
        self._scorer = scorer or DocumentScorer()
        self._chunking_tables = chunking_tables or default_scoring_tables().chunking
        self._embed_batch_size = max(1, embed_batch_size)
        self._max_batch_size = max_batch_size
        self._default_max_concurrent = default_max_concurrent
        self._default_options = default_options or ProcessingOptions()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_content(
        self,
        content_type: ContentType,
        source: str,
        content: str | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessingJob:
        """Ingest one item and return its terminal job record.

        Never raises for stage failures; inspect ``job.status`` and
        ``job.error`` instead.
        """
        options = options or self._default_options
        job = ProcessingJob(id=new_job_id(content_type), content_type=content_type, source=source)
        await self._registry.save(job)

        with bound_context(job_id=job.id, content_type=content_type.value):
            self._logger.info("job_started", source=source[:200])
            state = _RunState()
            try:
                job = await self._run_stage(
                    job, StageName.VALIDATION, state,
                    lambda: self._validate(job, content_type, source, content, options, state),
                )
                job = await self._run_stage(
                    job, StageName.EXTRACTION, state,
                    lambda: self._extract(content_type, source, content, options, state),
                )
                job = await self._run_stage(
                    job, StageName.ANALYSIS, state,
                    lambda: self._analyze(options, state),
                )
                job = await self._run_stage(
                    job, StageName.PROCESSING, state,
                    lambda: self._process(options, state),
                )
                job = await self._run_stage(
                    job, StageName.STORAGE, state,
                    lambda: self._persist(state),
                )
            except _StageFailed as failed:
                return failed.job

            job = job.model_copy(
                update={
                    "status": JobStatus.COMPLETED,
                    "chunk_count": len(state.chunks),
                    "completed_at": _utcnow(),
                }
            )
            await self._registry.save(job)
            self._logger.info("job_completed", content_id=job.content_id, chunks=job.chunk_count)
            return job

    async def process_batch(
        self,
        items: list[BatchItem],
        options: ProcessingOptions | None = None,
        max_concurrent: int | None = None,
    ) -> list[ProcessingJob]:
        """Ingest *items* in windows of *max_concurrent* jobs.

        Returns
        -------
        list[ProcessingJob]
            One terminal job per item, in input order.

        Raises
        ------
        InputValidationError
            If the batch is empty, larger than the configured maximum, or
            *max_concurrent* is below 1.  No job is created in that case.
        """
        window = self._default_max_concurrent if max_concurrent is None else max_concurrent
        if not items:
            raise InputValidationError(message="Batch must contain at least one item")
        if len(items) > self._max_batch_size:
            raise InputValidationError(
                message=f"Batch of {len(items)} items exceeds the maximum of {self._max_batch_size}"
            )
        if window < 1:
            raise InputValidationError(message="max_concurrent must be at least 1")

        self._logger.info("batch_started", items=len(items), max_concurrent=window)
        factories: list[Callable[[], Awaitable[ProcessingJob]]] = [
            (lambda item=item: self.process_content(item.type, item.source, item.content, options))
            for item in items
        ]
        settled = await windowed_gather(factories, window)

        jobs: list[ProcessingJob] = []
        for item, result in zip(items, settled, strict=True):
            if isinstance(result, BaseException):
                jobs.append(await self._rejected_job(item, result))
            else:
                jobs.append(result)

        self._logger.info(
            "batch_completed",
            items=len(items),
            completed=sum(1 for j in jobs if j.status == JobStatus.COMPLETED),
            failed=sum(1 for j in jobs if j.status == JobStatus.FAILED),
        )
        return jobs

    def get_job(self, job_id: str) -> ProcessingJob | None:
        return self._registry.get(job_id)

    def get_active_jobs(self) -> list[ProcessingJob]:
        return self._registry.active()

    def get_jobs_by_status(self, status: JobStatus) -> list[ProcessingJob]:
        return self._registry.by_status(status)

    def register_listener(self, job_id: str, callback: JobListener) -> None:
        self._registry.register_listener(job_id, callback)

    # ------------------------------------------------------------------
    # Stage driver
    # ------------------------------------------------------------------

    async def _run_stage(
        self,
        job: ProcessingJob,
        name: StageName,
        state: _RunState,
        body: Callable[[], Awaitable[Any]],
    ) -> ProcessingJob:
        job = await self._transition(job, name, StageStatus.PROCESSING)
        try:
            await body()
        except Exception as exc:
            if not isinstance(exc, OracleError):
                self._logger.exception("job_stage_crashed", stage=name.value)
            error = _error_text(exc)
            self._logger.warning("job_stage_failed", stage=name.value, error=error)
            job = await self._transition(job, name, StageStatus.FAILED, error=error)
            await self._mark_item_failed(state, error)
            raise _StageFailed(job) from exc

        if state.item is not None and job.content_id is None:
            job = job.model_copy(update={"content_id": state.item.id})
        return await self._transition(job, name, StageStatus.COMPLETED)

    async def _transition(
        self,
        job: ProcessingJob,
        name: StageName,
        status: StageStatus,
        error: str | None = None,
    ) -> ProcessingJob:
        stages = [s.transition(status, error) if s.name == name else s for s in job.stages]
        update: dict[str, Any] = {"stages": stages, "progress": compute_progress(stages)}
        if job.status == JobStatus.QUEUED and status == StageStatus.PROCESSING:
            update["status"] = JobStatus.PROCESSING
            update["started_at"] = _utcnow()
        if status == StageStatus.FAILED:
            update["status"] = JobStatus.FAILED
            update["error"] = error
            update["completed_at"] = _utcnow()
        job = job.model_copy(update=update)
        await self._registry.save(job)
        return job

    async def _mark_item_failed(self, state: _RunState, error: str) -> None:
        if state.item is None:
            return
        failed = state.item.model_copy(
            update={"status": ContentStatus.FAILED, "error_message": error}
        )
        try:
            await self._store.update_content_item(failed)
        except OracleError as exc:
            self._logger.error("content_item_fail_mark_failed", error=str(exc))
        state.item = failed

    async def _rejected_job(self, item: BatchItem, exc: BaseException) -> ProcessingJob:
        """A failed job for a batch entry whose run raised instead of settling."""
        job = ProcessingJob(
            id=new_job_id(item.type),
            content_type=item.type,
            source=item.source,
            status=JobStatus.FAILED,
            error=_error_text(exc),
            completed_at=_utcnow(),
        )
        await self._registry.save(job)
        return job

    # ------------------------------------------------------------------
    # Stage bodies
    # ------------------------------------------------------------------

    async def _validate(
        self,
        job: ProcessingJob,
        content_type: ContentType,
        source: str,
        content: str | None,
        options: ProcessingOptions,
        state: _RunState,
    ) -> None:
        extractor = self._extractors.get(content_type)

        if content_type == ContentType.TEXT and (content is None or not content.strip()):
            raise InputValidationError(message="Text content is required")
        if content_type in (ContentType.TEXT, ContentType.FILE) and content is not None:
            if len(content.strip()) < MIN_LITERAL_CONTENT_CHARS:
                raise InputValidationError(
                    message=(
                        f"Content too short (minimum {MIN_LITERAL_CONTENT_CHARS} characters)"
                    )
                )
        if content_type != ContentType.TEXT:
            reason = extractor.validate(source)
            if reason:
                raise InputValidationError(message=reason)
        if options.chunk_overlap >= options.max_chunk_size:
            raise InputValidationError(
                message="chunk_overlap must be smaller than max_chunk_size"
            )

        now = _utcnow()
        item = ContentItem(
            id=str(uuid.uuid4()),
            type=content_type,
            title=source if content_type != ContentType.TEXT else "",
            source=source or content_type.value,
            status=ContentStatus.PROCESSING,
            metadata={"job_id": job.id},
            created_at=now,
            updated_at=now,
        )
        await self._store.create_content_item(item)
        state.item = item

    async def _extract(
        self,
        content_type: ContentType,
        source: str,
        content: str | None,
        options: ProcessingOptions,
        state: _RunState,
    ) -> None:
        extractor = self._extractors.get(content_type)
        extracted = await extractor.extract(source, content, options)
        if not extracted.text.strip():
            raise ExtractionError(
                message="No text could be extracted",
                provider_name=extractor.get_provider_name(),
            )
        state.extracted = extracted

        item = state.require_item()
        text = extracted.text
        state.item = item.model_copy(
            update={
                "title": extracted.title or item.title,
                "author": extracted.author,
                "published_date": extracted.published_date,
                "metadata": {**item.metadata, **extracted.metadata},
                "word_count": len(text.split()),
                "character_count": len(text),
                "summary": text[:_SUMMARY_CHARS],
            }
        )
        self._logger.info(
            "content_extracted",
            words=state.item.word_count,
            title=state.item.title[:120],
        )

    async def _analyze(self, options: ProcessingOptions, state: _RunState) -> None:
        item = state.require_item()
        text = state.require_extracted().text
        scores = self._scorer.score(text)

        if scores.quality < options.min_quality_score:
            raise AnalysisError(
                message=(
                    f"Quality score {scores.quality:.2f} is below the minimum "
                    f"of {options.min_quality_score:.2f}"
                )
            )
        if scores.business_relevance < options.business_relevance_threshold:
            raise AnalysisError(
                message=(
                    f"Business relevance {scores.business_relevance:.2f} is below the "
                    f"threshold of {options.business_relevance_threshold:.2f}"
                )
            )

        detections: list[FrameworkDetection] = []
        if options.detect_frameworks:
            try:
                detections = self._detector.detect(text, item.title)
            except Exception as exc:
                self._logger.warning("framework_detection_degraded", error=str(exc))
                detections = []
        state.detections = detections

        state.item = item.model_copy(
            update={
                "quality_score": scores.quality,
                "business_relevance_score": scores.business_relevance,
                "quality_tier": scores.quality_tier,
                "detected_frameworks": [d.framework_name for d in detections],
            }
        )
        self._logger.info(
            "content_analyzed",
            quality=scores.quality,
            business_relevance=scores.business_relevance,
            frameworks=len(detections),
        )

    async def _process(self, options: ProcessingOptions, state: _RunState) -> None:
        item = state.require_item()
        extracted = state.require_extracted()
        chunker = ContentChunker(
            max_words=options.max_chunk_size,
            overlap_words=options.chunk_overlap,
            tables=self._chunking_tables,
        )
        chunks = chunker.chunk(extracted.text, content_id=item.id)

        if options.detect_frameworks:
            chunks = [self._tag_chunk(chunk) for chunk in chunks]

        if options.generate_embeddings and chunks:
            chunks = await self._embed_chunks(chunks)

        state.chunks = chunks
        self._logger.info("content_chunked", chunks=len(chunks))

    def _tag_chunk(self, chunk: ContentChunk) -> ContentChunk:
        try:
            frameworks = self._detector.quick_detect(chunk.text)
        except Exception as exc:
            self._logger.warning(
                "chunk_framework_detection_degraded", chunk_index=chunk.chunk_index, error=str(exc)
            )
            frameworks = []
        return chunk.model_copy(update={"detected_frameworks": frameworks})

    async def _embed_chunks(self, chunks: list[ContentChunk]) -> list[ContentChunk]:
        if self._embedder is None:
            raise EmbeddingError(message="No embedding provider configured")

        embedded: list[ContentChunk] = []
        for start in range(0, len(chunks), self._embed_batch_size):
            batch = chunks[start : start + self._embed_batch_size]
            vectors = await self._embedder.embed([c.text for c in batch])
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    message=f"expected {len(batch)} vectors, received {len(vectors)}",
                    provider_name=self._embedder.get_provider_name(),
                )
            embedded.extend(
                chunk.model_copy(update={"embedding": list(vector)})
                for chunk, vector in zip(batch, vectors, strict=True)
            )
        return embedded

    async def _persist(self, state: _RunState) -> None:
        item = state.require_item()
        try:
            await self._store.update_content_item(item)
            await self._store.store_chunks(item.id, state.chunks)
            await self._store.store_framework_detections(item.id, state.detections)
            completed = item.model_copy(
                update={"status": ContentStatus.COMPLETED, "updated_at": _utcnow()}
            )
            await self._store.update_content_item(completed)
        except Exception:
            await self._discard_chunks(item.id)
            raise
        state.item = completed

    async def _discard_chunks(self, content_id: str) -> None:
        try:
            removed = await self._store.delete_chunks_by_content(content_id)
        except OracleError as exc:
            self._logger.error("chunk_cleanup_failed", content_id=content_id, error=str(exc))
            return
        self._logger.info("chunks_rolled_back", content_id=content_id, removed=removed)


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, OracleError):
        return exc.message
    return str(exc) or exc.__class__.__name__
