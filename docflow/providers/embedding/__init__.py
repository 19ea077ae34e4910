"""Embedding provider implementations.

Embeddings convert chunk text into fixed-length numeric vectors.  The
pipeline's embedding stage calls one of these once per chunk.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims).
       Requires an API key; also works against OpenAI-compatible hosts.
    2. HashEmbeddingProvider   -- SHA-256 derived unit vectors.
       Offline and deterministic; used when no API key is configured.
"""

from docflow.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from docflow.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["HashEmbeddingProvider", "OpenAIEmbeddingProvider"]
