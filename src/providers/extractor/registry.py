"""ExtractorRegistry: looks up the extractor for a content type."""

from __future__ import annotations

from src.interfaces.content_extractor import IContentExtractor
from src.models.content import ContentType
from src.utils.errors import InputValidationError


class ExtractorRegistry:
    """Maps each :class:`ContentType` to its extractor.

    Registering an extractor for an already-registered type replaces it.
    """

    def __init__(self, extractors: list[IContentExtractor] | None = None) -> None:
        self._extractors: dict[ContentType, IContentExtractor] = {}
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: IContentExtractor) -> None:
        self._extractors[extractor.content_type] = extractor

    def get(self, content_type: ContentType) -> IContentExtractor:
        try:
            return self._extractors[content_type]
        except KeyError:
            raise InputValidationError(
                message=f"Unsupported content type: {content_type.value}"
            ) from None

    def supported_types(self) -> list[ContentType]:
        return list(self._extractors)
