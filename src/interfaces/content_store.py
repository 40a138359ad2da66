"""Abstract base class for the knowledge-base datastore.

Defines the contract for persisting content items, their chunks and
framework detections, and for vector similarity search over chunks.
The ingestion orchestrator is the only writer; the query path only calls
:meth:`IContentStore.search_chunks`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.content import ContentChunk, ContentItem, ContentStatus, FrameworkDetection
from src.models.ranking import SearchCandidate


# Concrete implementation: SQLiteContentStore (src/providers/store/)
class IContentStore(ABC):
    """Contract for the content datastore.

    All methods are async.  Chunk writes for one content item are atomic:
    either the full chunk set is visible or none of it is.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indexes if they do not exist."""

    @abstractmethod
    async def create_content_item(self, item: ContentItem) -> None:
        """Insert a new content item.

        Raises
        ------
        src.utils.errors.StorageError
            If the write fails or the id already exists.
        """

    @abstractmethod
    async def update_content_item(self, item: ContentItem) -> None:
        """Overwrite every mutable field of an existing content item."""

    @abstractmethod
    async def archive_content_item(self, content_id: str) -> bool:
        """Mark an item ``archived``.  Returns ``False`` when the id is unknown."""

    @abstractmethod
    async def get_content_item(self, content_id: str) -> ContentItem | None:
        """Return the item with *content_id*, or ``None``."""

    @abstractmethod
    async def list_content_items(
        self,
        status: ContentStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContentItem]:
        """Return items newest first, optionally filtered by status."""

    @abstractmethod
    async def store_chunks(self, content_id: str, chunks: list[ContentChunk]) -> int:
        """Persist all *chunks* of one item in a single transaction.

        Returns
        -------
        int
            Number of chunks written.

        Raises
        ------
        src.utils.errors.StorageError
            If any write fails; nothing from this call remains stored.
        """

    @abstractmethod
    async def delete_chunks_by_content(self, content_id: str) -> int:
        """Remove every chunk belonging to *content_id*.  Returns the count."""

    @abstractmethod
    async def store_framework_detections(
        self,
        content_id: str,
        detections: list[FrameworkDetection],
    ) -> None:
        """Replace the framework detections recorded for *content_id*."""

    @abstractmethod
    async def search_chunks(
        self,
        query_vector: list[float],
        threshold: float,
        limit: int,
        content_types: list[str] | None = None,
        frameworks: list[str] | None = None,
    ) -> list[SearchCandidate]:
        """Vector similarity search over chunks of completed items.

        Parameters
        ----------
        query_vector:
            The embedded question.
        threshold:
            Only candidates with similarity strictly greater than this are
            returned.
        limit:
            Maximum number of candidates.
        content_types:
            Restrict to parents of these content types.
        frameworks:
            Restrict to chunks (or parents) tagged with any of these frameworks.

        Returns
        -------
        list[SearchCandidate]
            Ordered by similarity, descending.
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Return item counts per status, chunk count and framework counts."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in errors and logs, e.g. ``"sqlite_store"``."""
