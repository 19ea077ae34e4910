"""Deterministic, offline embedding provider.

Hashes text with SHA-256 into a fixed-length unit vector.  The same text
always yields the same vector and no network or model download is needed,
which makes it the default when no API key is configured (development, the
CLI, and tests).  The vectors carry no semantic meaning.
"""

from __future__ import annotations

import hashlib
import struct

from docflow.interfaces.embedding_provider import IEmbeddingProvider

_DEFAULT_DIMENSION = 384


def hash_to_vector(text: str, dimension: int = _DEFAULT_DIMENSION) -> list[float]:
    """Generate a deterministic fixed-length vector by hashing *text*.

    Uses SHA-256 to hash the text, then unpacks bytes into floats and
    normalises to unit length.
    """
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    # Extend the digest to cover `dimension` floats (4 bytes each)
    raw = digest
    while len(raw) < dimension * 4:
        raw += hashlib.sha256(raw).digest()
    raw = raw[: dimension * 4]
    # Unsigned ints avoid NaN/inf bit patterns that raw floats could produce.
    values = [v / 0xFFFFFFFF - 0.5 for v in struct.unpack(f"<{dimension}I", raw)]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class HashEmbeddingProvider(IEmbeddingProvider):
    """In-process deterministic embedding provider."""

    def __init__(self, dimension: int = _DEFAULT_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [hash_to_vector(t, self._dimension) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return hash_to_vector(text, self._dimension)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hash_embedding"

    def is_available(self) -> bool:
        return True
