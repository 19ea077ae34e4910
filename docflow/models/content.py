"""Extraction output models: chunks, file metadata, images, tables.

Defines Pydantic v2 models for everything a source processor produces for
one file.  All models use frozen config; the orchestrator attaches
embeddings by building new chunk copies rather than mutating in place.

Content flow overview:
    1. EXTRACT: a source processor turns raw bytes into full text plus
       :class:`FileMetadata`, and optionally :class:`ExtractedTable` and
       :class:`ExtractedImage` records.
    2. CHUNK: the shared TextChunker splits the text into
       :class:`ContentChunk` windows.
    3. EMBED: each chunk receives a vector from the embedding provider.
    4. PERSIST: the full :class:`ProcessedContent` is handed to the
       document store.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChunkType(str, Enum):  # noqa: UP042
    """What kind of source content a chunk represents."""

    TEXT = "text"
    TABLE = "table"
    IMAGE = "image"
    HEADER = "header"


# ---------------------------------------------------------------------------
# ContentChunk -- the unit handed to the embedding provider.
# ---------------------------------------------------------------------------
class ChunkMetadata(BaseModel):
    """Per-chunk provenance and trust information."""

    model_config = ConfigDict(frozen=True)

    type: ChunkType = ChunkType.TEXT
    # 1.0 for text-bearing formats; lower for placeholder content (images).
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    page: int | None = Field(default=None, ge=1)
    section: str | None = None
    language: str | None = None


class ContentChunk(BaseModel):
    """A contiguous, possibly overlapping, span of extracted text.

    ``start_index`` and ``end_index`` are offsets into the source's word
    sequence (line sequence for spreadsheet chunks), not character offsets.
    ``tokens`` is the approximate word-based token count of the window.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    tokens: int = Field(ge=0)
    embedding: list[float] | None = None
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


# ---------------------------------------------------------------------------
# File-level metadata and side-channel extractions.
# ---------------------------------------------------------------------------
class FileMetadata(BaseModel):
    """Descriptive metadata about the source file."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    file_size: int = Field(ge=0)
    mime_type: str
    pages: int | None = Field(default=None, ge=0)
    language: str | None = None
    author: str | None = None
    created_at: str | None = None
    modified_at: str | None = None
    title: str | None = None
    subject: str | None = None
    keywords: list[str] | None = None


class ExtractedImage(BaseModel):
    """An image found in (or constituting) the source file."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    base64: str
    mime_type: str
    width: int | None = None
    height: int | None = None
    page: int | None = None


class ExtractedTable(BaseModel):
    """A table found in the source file (one per spreadsheet sheet)."""

    model_config = ConfigDict(frozen=True)

    id: str
    headers: list[str]
    rows: list[list[str]]
    page: int | None = None
    caption: str | None = None


# ---------------------------------------------------------------------------
# ProcessedContent -- the result of one successful extraction.
# ---------------------------------------------------------------------------
class ProcessedContent(BaseModel):
    """Everything extracted from one file, ready for embedding and storage."""

    model_config = ConfigDict(frozen=True)

    text: str
    chunks: list[ContentChunk] = Field(default_factory=list)
    metadata: FileMetadata
    images: list[ExtractedImage] | None = None
    tables: list[ExtractedTable] | None = None
