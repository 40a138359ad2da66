"""Pass-through extractor for raw text submissions."""

from __future__ import annotations

from src.interfaces.content_extractor import ExtractedContent, IContentExtractor
from src.models.content import ContentType, ProcessingOptions
from src.utils.errors import ExtractionError

_TITLE_WORDS = 8


class TextExtractor(IContentExtractor):
    """Returns the caller-supplied text unchanged.

    The title is taken from the first words of the text.
    """

    content_type = ContentType.TEXT

    def validate(self, source: str) -> str | None:
        return None

    async def extract(
        self,
        source: str,
        content: str | None,
        options: ProcessingOptions,
    ) -> ExtractedContent:
        if not content or not content.strip():
            raise ExtractionError(
                message="Text content is required",
                provider_name=self.get_provider_name(),
            )
        words = content.split()
        title = " ".join(words[:_TITLE_WORDS])
        if len(words) > _TITLE_WORDS:
            title += "..."
        return ExtractedContent(text=content, title=title, metadata={"source": source or "text"})

    def get_provider_name(self) -> str:
        return "text_extractor"
