"""Content extractors, one per content type.

    - TextExtractor  -- raw text submitted by the caller
    - FileExtractor  -- .txt / .md as UTF-8, .pdf via PyMuPDF
    - UrlExtractor   -- web pages via httpx + trafilatura + BeautifulSoup,
                       honouring robots.txt
    - VideoExtractor -- YouTube transcripts and metadata

The ingestion orchestrator looks extractors up through an ExtractorRegistry.
"""

from src.providers.extractor.file_extractor import FileExtractor
from src.providers.extractor.registry import ExtractorRegistry
from src.providers.extractor.text_extractor import TextExtractor
from src.providers.extractor.url_extractor import UrlExtractor
from src.providers.extractor.video_extractor import VideoExtractor

__all__ = [
    "ExtractorRegistry",
    "FileExtractor",
    "TextExtractor",
    "UrlExtractor",
    "VideoExtractor",
]
