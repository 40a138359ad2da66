"""Local file extractor for plain text, Markdown and PDF documents.

PDFs are read page by page with PyMuPDF (fitz).  When the caller already
supplies the file body (e.g. an upload), that text is used as-is and the
path only provides the title.
"""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.interfaces.content_extractor import ExtractedContent, IContentExtractor
from src.models.content import ContentType, ProcessingOptions
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_SUFFIXES = frozenset({".txt", ".md", ".markdown"})
_PDF_SUFFIXES = frozenset({".pdf"})
SUPPORTED_SUFFIXES = _TEXT_SUFFIXES | _PDF_SUFFIXES


class FileExtractor(IContentExtractor):
    """Reads ``.txt``/``.md`` files as UTF-8 and ``.pdf`` files via PyMuPDF."""

    content_type = ContentType.FILE

    def validate(self, source: str) -> str | None:
        if not source or not source.strip():
            return "File name is required"
        suffix = Path(source).suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            return f"Unsupported file type: {suffix or 'none'}"
        return None

    async def extract(
        self,
        source: str,
        content: str | None,
        options: ProcessingOptions,
    ) -> ExtractedContent:
        path = Path(source)
        metadata: dict = {"file_name": path.name, "file_type": path.suffix.lower().lstrip(".")}

        if content is not None:
            return ExtractedContent(text=content, title=path.stem, metadata=metadata)

        reason = self.validate(source)
        if reason:
            raise ExtractionError(message=reason, provider_name=self.get_provider_name())
        if not path.is_file():
            raise ExtractionError(
                message=f"File not found: {source}",
                provider_name=self.get_provider_name(),
            )

        suffix = path.suffix.lower()
        if suffix in _PDF_SUFFIXES:
            text, page_count = self._read_pdf(path)
            metadata["page_count"] = page_count
        else:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ExtractionError(
                    message=f"Could not read {path.name}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

        if not text.strip():
            raise ExtractionError(
                message=f"No text could be extracted from {path.name}",
                provider_name=self.get_provider_name(),
            )
        metadata["file_size"] = path.stat().st_size
        logger.info("file_extracted", path=str(path), text_length=len(text))
        return ExtractedContent(text=text, title=path.stem, metadata=metadata)

    def get_provider_name(self) -> str:
        return "file_extractor"

    def _read_pdf(self, path: Path) -> tuple[str, int]:
        try:
            doc = fitz.open(str(path))
        except (fitz.FileDataError, RuntimeError) as exc:
            raise ExtractionError(
                message=f"Could not open PDF {path.name}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[str] = []
        try:
            page_count = len(doc)
            for page in doc:
                page_text = page.get_text("text").strip()
                if page_text:
                    pages.append(page_text)
        finally:
            doc.close()
        return "\n\n".join(pages), page_count
