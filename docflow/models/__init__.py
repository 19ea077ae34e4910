"""Pydantic data models for the docflow ingestion pipeline.

- **content** -- ContentChunk, FileMetadata, ExtractedImage, ExtractedTable,
  ProcessedContent: what a source processor produces for one file.
- **pipeline** -- ProcessingStage, ProcessingStatus, ProcessingError: the
  per-document state machine snapshot.
- **options** -- ProcessingOptions: per-call tuning and callbacks.
"""

from docflow.models.content import (
    ChunkMetadata,
    ChunkType,
    ContentChunk,
    ExtractedImage,
    ExtractedTable,
    FileMetadata,
    ProcessedContent,
)
from docflow.models.options import ProcessingOptions
from docflow.models.pipeline import (
    STAGE_LABELS,
    STAGE_PROGRESS,
    TOTAL_STEPS,
    ProcessingError,
    ProcessingStage,
    ProcessingStatus,
)

__all__ = [
    "STAGE_LABELS",
    "STAGE_PROGRESS",
    "TOTAL_STEPS",
    "ChunkMetadata",
    "ChunkType",
    "ContentChunk",
    "ExtractedImage",
    "ExtractedTable",
    "FileMetadata",
    "ProcessedContent",
    "ProcessingError",
    "ProcessingOptions",
    "ProcessingStage",
    "ProcessingStatus",
]
