"""Chunk embedder backed by the OpenAI embeddings API.

Also serves OpenAI-compatible servers (Ollama, vLLM, LM Studio) when
``openai_base_url`` is set.  ``text-embedding-3-*`` models are asked for
vectors of ``embedding_dimension`` length when that is smaller than their
native size, so stored vectors always match the configured dimension.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from docflow.config.settings import Settings
from docflow.interfaces.embedding_provider import IEmbeddingProvider
from docflow.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "text-embedding-3-small"
# Inputs per embeddings.create call accepted by the OpenAI API.
_MAX_INPUTS_PER_REQUEST = 2048

_NATIVE_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
# Models that accept the ``dimensions`` request parameter.
_SHORTENABLE_MODELS = frozenset({"text-embedding-3-small", "text-embedding-3-large"})


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """:class:`IEmbeddingProvider` over ``openai.AsyncOpenAI``."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._name = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

        native = _NATIVE_DIMENSIONS.get(self._model)
        self._requested_dimensions: int | None = None
        if native is None:
            self._dimension = settings.embedding_dimension
        elif self._model in _SHORTENABLE_MODELS and settings.embedding_dimension < native:
            self._dimension = settings.embedding_dimension
            self._requested_dimensions = settings.embedding_dimension
        else:
            self._dimension = native

        client_kwargs: dict[str, Any] = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = openai.AsyncOpenAI(**client_kwargs)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in request-sized batches, preserving input order."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), _MAX_INPUTS_PER_REQUEST):
            vectors.extend(await self._request(texts[start : start + _MAX_INPUTS_PER_REQUEST]))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        vectors = await self._request([text])
        if not vectors:
            raise EmbeddingError(
                message="Embedding API returned no vectors",
                provider_name=self._name,
            )
        return vectors[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        """An API key is all the client needs; reachability is checked per call."""
        return bool(self._api_key)

    async def _request(self, batch: list[str]) -> list[list[float]]:
        params: dict[str, Any] = {"input": batch, "model": self._model}
        if self._requested_dimensions is not None:
            params["dimensions"] = self._requested_dimensions
        try:
            response = await self._client.embeddings.create(**params)
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"Embedding request failed ({self._model}): {exc}",
                provider_name=self._name,
            ) from exc

        logger.debug(
            "embedding_batch",
            provider=self._name,
            model=self._model,
            inputs=len(batch),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return [item.embedding for item in response.data]
