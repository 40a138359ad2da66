"""Ingestion job state models.

Defines Pydantic v2 models for processing stages and jobs.  All models use
frozen config -- state transitions produce new instances via
``model_copy(update={...})`` and the JobRegistry swaps the stored snapshot.

Architecture note:
    ProcessingJob is the live tracking record for one ingestion run.  The
    orchestrator (src/pipeline/orchestrator.py) advances it through five
    ordered stages; every transition recomputes the overall progress as
    ``completed_stages / total_stages * 100`` so the reported progress can
    never drift from the stage list.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.content import ContentType


# ---------------------------------------------------------------------------
# StageName -- the fixed, ordered stage list of every job.
# ---------------------------------------------------------------------------
class StageName(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Stages of an ingestion job, in execution order.

        VALIDATION → EXTRACTION → ANALYSIS → PROCESSING → STORAGE
    """

    VALIDATION = "validation"
    EXTRACTION = "extraction"
    ANALYSIS = "analysis"
    PROCESSING = "processing"
    STORAGE = "storage"


STAGE_DESCRIPTIONS: dict[StageName, str] = {
    StageName.VALIDATION: "Validating content and permissions",
    StageName.EXTRACTION: "Extracting text and metadata",
    StageName.ANALYSIS: "Analyzing business frameworks and relevance",
    StageName.PROCESSING: "Creating content chunks and embeddings",
    StageName.STORAGE: "Saving to knowledge base",
}


class StageStatus(str, Enum):  # noqa: UP042
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStatus(str, Enum):  # noqa: UP042
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_JOB_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Stage progress is derived from status, never set independently.
_STAGE_PROGRESS: dict[StageStatus, int] = {
    StageStatus.PENDING: 0,
    StageStatus.PROCESSING: 50,
    StageStatus.COMPLETED: 100,
    StageStatus.FAILED: 0,
}


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# ProcessingStage
# ---------------------------------------------------------------------------
class ProcessingStage(BaseModel):
    """One stage of a job and its timing."""

    model_config = ConfigDict(frozen=True)

    name: StageName
    description: str
    status: StageStatus = StageStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    error: str | None = None

    @classmethod
    def pending(cls, name: StageName) -> ProcessingStage:
        return cls(name=name, description=STAGE_DESCRIPTIONS[name])

    def transition(self, status: StageStatus, error: str | None = None) -> ProcessingStage:
        """Return a copy moved to *status* with timing and progress updated."""
        now = _utcnow()
        update: dict[str, object] = {
            "status": status,
            "progress": _STAGE_PROGRESS[status],
        }
        if status == StageStatus.PROCESSING:
            update["started_at"] = now
        elif status in (StageStatus.COMPLETED, StageStatus.FAILED):
            started = self.started_at or now
            update["started_at"] = started
            update["completed_at"] = now
            update["duration_ms"] = int((now - started).total_seconds() * 1000)
        if error is not None:
            update["error"] = error
        return self.model_copy(update=update)


def compute_progress(stages: list[ProcessingStage]) -> int:
    """Overall job progress: percentage of stages marked completed."""
    if not stages:
        return 0
    completed = sum(1 for s in stages if s.status == StageStatus.COMPLETED)
    return round(completed / len(stages) * 100)


# ---------------------------------------------------------------------------
# ProcessingJob -- the live tracking record of one ingestion run.
# ---------------------------------------------------------------------------
class ProcessingJob(BaseModel):
    """Tracking record for one ingestion run.

    Immutable -- produce new snapshots with ``model_copy(update={...})``.
    ``progress`` always equals :func:`compute_progress` over ``stages``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content_type: ContentType
    source: str = ""
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    stages: list[ProcessingStage] = Field(
        default_factory=lambda: [ProcessingStage.pending(name) for name in StageName]
    )
    content_id: str | None = None
    chunk_count: int = Field(default=0, ge=0)
    error: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    def get_stage(self, name: StageName) -> ProcessingStage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)


class BatchItem(BaseModel):
    """One entry of a batch ingestion request."""

    model_config = ConfigDict(frozen=True)

    type: ContentType
    source: str = ""
    content: str | None = None
