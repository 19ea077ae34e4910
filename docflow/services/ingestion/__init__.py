"""Document ingestion: format dispatch, extraction, and chunking.

Ingestion stages overview:

1. **Dispatch** (registry.py / ProcessorRegistry) -- Resolves a file name
   (or, failing that, a MIME type) to exactly one format processor.

2. **Extract** (source_processors/) -- Format-specific readers turn raw
   bytes (PDF, DOCX, workbooks, images, plain text) into full text,
   file metadata, and optional tables/images.

3. **Chunk** (chunker.py / TextChunker) -- Splits the text into
   ~1000-token overlapping word windows (line groups for spreadsheets).

Embedding and persistence are driven by
:class:`~docflow.pipeline.orchestrator.DocumentProcessingPipeline`.
"""

from docflow.services.ingestion.chunker import TextChunker
from docflow.services.ingestion.registry import (
    ProcessorRegistry,
    build_default_registry,
    normalize_extension,
)

__all__ = [
    "ProcessorRegistry",
    "TextChunker",
    "build_default_registry",
    "normalize_extension",
]
