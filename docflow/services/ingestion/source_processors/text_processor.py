"""Source processor for plain text, Markdown, and CSV files."""

from __future__ import annotations

import structlog

from docflow.models.content import ChunkType, FileMetadata, ProcessedContent
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import TextChunker
from docflow.services.ingestion.source_processors.base import BaseFileProcessor

logger = structlog.get_logger(logger_name=__name__)


class TextProcessor(BaseFileProcessor):
    """Decodes UTF-8 text and chunks it with word windows.

    Decoding is strict: bytes that are not valid UTF-8 fail extraction
    instead of being silently replaced.
    """

    type = "text"
    extensions = (".txt", ".md", ".csv")
    mime_types = ("text/plain", "text/markdown", "text/csv")
    icon = "📄"

    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        chunker, options = self._resolve(chunker, options)

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            logger.error("text_decode_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc

        chunks = chunker.chunk(
            text, source_id=file_name, chunk_type=ChunkType.TEXT, language=options.language
        )
        logger.info("text_processed", file_name=file_name, chunks=len(chunks))
        return ProcessedContent(
            text=text,
            chunks=chunks,
            metadata=FileMetadata(
                file_name=file_name,
                file_size=len(data),
                mime_type=self._mime_type(options),
                language=options.language,
            ),
        )
