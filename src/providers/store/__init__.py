"""Content datastore implementations.

    - SQLiteContentStore -- aiosqlite tables for items, chunks and framework
      detections, with numpy cosine similarity over stored embeddings.
"""

from src.providers.store.sqlite_content_store import SQLiteContentStore

__all__ = ["SQLiteContentStore"]
