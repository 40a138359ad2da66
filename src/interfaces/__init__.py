"""Public interface definitions for all external collaborators.

Every external service or datastore in oracle-rag is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement these interfaces and are injected at runtime by the
composition root in ``src/main.py``, so unit tests can substitute mocks
and backends can be swapped without touching pipeline code.

CONCRETE PROVIDER MAP:
    Interface             →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IEmbeddingProvider    →  OpenAIEmbeddingProvider
    ILLMProvider          →  OpenAILLMProvider
    IContentStore         →  SQLiteContentStore
    IContentExtractor     →  TextExtractor, FileExtractor, UrlExtractor,
                             VideoExtractor
"""

from src.interfaces.content_extractor import ExtractedContent, IContentExtractor
from src.interfaces.content_store import IContentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider

__all__ = [
    "ExtractedContent",
    "IContentExtractor",
    "IContentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
]
