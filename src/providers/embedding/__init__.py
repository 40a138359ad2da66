"""Embedding provider implementations.

Embeddings convert chunk texts and user questions into numeric vectors
that capture semantic meaning.  Chunk vectors are stored alongside the
chunk in the content store and compared with cosine similarity at query
time.

    - OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims), or any
      OpenAI-compatible endpoint via ``OPENAI_BASE_URL``.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
