"""Knowledge-base content models: items, chunks and framework detections.

Defines Pydantic v2 models for the persistent side of the system.  A
:class:`ContentItem` is one ingested source (a file, a web page, a video
transcript or raw text); a :class:`ContentChunk` is one overlapping window
of that source's words, tagged with structural and business signals and
(once embedded) a vector.

Models are frozen; the orchestrator advances a ContentItem through its
lifecycle with ``model_copy(update={...})``.

Lifecycle overview:
    1. CREATE: the orchestrator writes a ``queued`` ContentItem when a job starts.
    2. PROCESS: status moves to ``processing`` and scores/frameworks are
       filled in after the analysis stage.
    3. STORE: chunks are written in a single transaction, then the item is
       marked ``completed`` -- or ``failed`` with its chunks removed.
    4. ARCHIVE: items are archived rather than hard-deleted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class ContentType(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Kinds of source the ingestion pipeline accepts."""

    FILE = "file"
    URL = "url"
    VIDEO = "video"
    TEXT = "text"


class ContentStatus(str, Enum):  # noqa: UP042
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    ARCHIVED = "archived"


class ChunkType(str, Enum):  # noqa: UP042
    """Structural classification of a chunk, checked in declaration order."""

    TABLE = "table"
    LIST = "list"
    CODE = "code"
    HEADING = "heading"
    TEXT = "text"


class QualityTier(str, Enum):  # noqa: UP042
    PREMIUM = "premium"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# FrameworkDetection -- one business framework recognised in a text.
# ---------------------------------------------------------------------------
class FrameworkDetection(BaseModel):
    """A named business framework detected in a document, with its evidence."""

    model_config = ConfigDict(frozen=True)

    framework_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    matched_keywords: list[str] = Field(default_factory=list)
    matched_phrases: list[str] = Field(default_factory=list)
    context: str = Field(default="", description="Short snippets around matched phrases.")
    explanation: str = ""


# ---------------------------------------------------------------------------
# ContentChunk -- the unit of retrieval.
# ---------------------------------------------------------------------------
class ContentChunk(BaseModel):
    """One overlapping window of a ContentItem's words.

    Word spans are half-open (``start_word`` inclusive, ``end_word``
    exclusive) over the parent's whitespace-split word sequence.  Ordinals
    are contiguous per parent and consecutive chunks share exactly the
    configured overlap of words.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for this chunk.")
    content_id: str = Field(default="", description="Parent ContentItem id.")
    chunk_index: int = Field(ge=0)
    text: str
    start_word: int = Field(ge=0)
    end_word: int = Field(ge=0)
    start_char: int = Field(ge=0)
    end_char: int = Field(ge=0)
    word_count: int = Field(ge=0)
    chunk_type: ChunkType = ChunkType.TEXT
    importance_score: float = Field(default=0.5, ge=0.0, le=1.0)
    business_concepts: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    detected_frameworks: list[str] = Field(default_factory=list)
    embedding: list[float] | None = Field(
        default=None,
        description="Embedding vector; populated by the processing stage.",
    )


# ---------------------------------------------------------------------------
# ContentItem -- one ingested source.
# ---------------------------------------------------------------------------
class ContentItem(BaseModel):
    """One ingested source and its document-level scores."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ContentType
    title: str = ""
    source: str = Field(default="", description="Locator: path, URL, video URL or 'text'.")
    status: ContentStatus = ContentStatus.QUEUED
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    business_relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    quality_tier: QualityTier = QualityTier.LOW
    detected_frameworks: list[str] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)
    summary: str = ""
    author: str | None = None
    published_date: str | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific metadata (domain, channel, duration, chapters...).",
    )
    error_message: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# ProcessingOptions -- per-call ingestion configuration.
# ---------------------------------------------------------------------------
class ProcessingOptions(BaseModel):
    """Flags controlling one ingestion run.

    Not every flag applies to every content type: ``respect_robots`` and
    ``follow_redirects`` only affect URLs, ``include_transcript`` and
    ``chapter_detection`` only affect videos.
    """

    model_config = ConfigDict(frozen=True)

    extract_images: bool = False
    follow_redirects: bool = True
    respect_robots: bool = True
    include_transcript: bool = True
    include_comments: bool = False
    chapter_detection: bool = True
    max_chunk_size: int = Field(default=1000, ge=1)
    chunk_overlap: int = Field(default=100, ge=0)
    generate_embeddings: bool = True
    detect_frameworks: bool = True
    min_quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    business_relevance_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
