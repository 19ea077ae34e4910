"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from chunk text.
Implementations may wrap the OpenAI embeddings API, a local model, or a
deterministic offline hasher.  The pipeline only depends on this
interface, so embedding backends are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-3-small (requires API key)
#   HashEmbeddingProvider   -- deterministic, offline; development and tests
# Located in: docflow/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the pipeline's embedding stage."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        docflow.utils.errors.EmbeddingError
            If the embedding call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        The orchestrator calls this once per chunk, in order, awaiting each
        call before starting the next.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the fixed dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and usable."""
