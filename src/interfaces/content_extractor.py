"""Abstract base class for source-content extractors.

An extractor turns a source locator (a file path, a web URL, a video URL,
or a literal text) into plain text plus metadata.  One extractor exists
per :class:`~src.models.content.ContentType`; the ingestion orchestrator
looks them up through an ExtractorRegistry, so supporting a new content
type is an additive change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from src.models.content import ContentType, ProcessingOptions


@dataclass(frozen=True)
class ExtractedContent:
    """Text and metadata pulled from one source.

    Attributes
    ----------
    text:
        The main body text with markup stripped.
    title:
        Page title, file stem or video title.
    author:
        The author or channel if identifiable.
    published_date:
        ISO date string if identifiable.
    metadata:
        Type-specific extras (domain, description, duration, chapters...).
    """

    text: str
    title: str = ""
    author: str | None = None
    published_date: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class IContentExtractor(ABC):
    """Contract for per-type extraction of source content."""

    content_type: ContentType

    @abstractmethod
    def validate(self, source: str) -> str | None:
        """Check *source* before any I/O.

        Returns
        -------
        str or None
            ``None`` when the source is acceptable, otherwise a short
            human-readable reason it was rejected.
        """

    @abstractmethod
    async def extract(
        self,
        source: str,
        content: str | None,
        options: ProcessingOptions,
    ) -> ExtractedContent:
        """Extract text and metadata from *source*.

        Parameters
        ----------
        source:
            The locator for this content type.
        content:
            Caller-supplied literal content (raw text, file body or a
            transcript).  When given, extractors use it instead of fetching.
        options:
            Per-run processing flags.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the source cannot be read or yields no text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"url_extractor"``."""
