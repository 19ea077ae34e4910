"""Source processor for Office (.docx) documents.

python-docx reads the XML inside the DOCX zip archive.  Paragraph text is
joined with blank lines and chunked with word windows; each table becomes
an :class:`~docflow.models.content.ExtractedTable` (first row as headers)
when table extraction is enabled.  Core properties supply the author,
title, subject, keywords, and dates.
"""

from __future__ import annotations

import io
import uuid

import structlog
from docx import Document

from docflow.models.content import (
    ChunkType,
    ExtractedTable,
    FileMetadata,
    ProcessedContent,
)
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import TextChunker
from docflow.services.ingestion.source_processors.base import BaseFileProcessor, split_keywords

logger = structlog.get_logger(logger_name=__name__)


class DOCXProcessor(BaseFileProcessor):
    """Processes Word documents into text chunks and tables."""

    type = "docx"
    extensions = (".docx",)
    mime_types = ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)
    icon = "📝"
    library = "python-docx"

    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        chunker, options = self._resolve(chunker, options)

        try:
            doc = Document(io.BytesIO(data))
            paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
            tables = (
                [self._table(t, index) for index, t in enumerate(doc.tables, start=1)]
                if options.enable_table_extraction
                else []
            )
            props = doc.core_properties
        except Exception as exc:
            logger.error("docx_read_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc

        text = "\n\n".join(paragraphs)
        chunks = chunker.chunk(
            text, source_id=file_name, chunk_type=ChunkType.TEXT, language=options.language
        )

        metadata = FileMetadata(
            file_name=file_name,
            file_size=len(data),
            mime_type=self._mime_type(options),
            language=options.language or props.language or None,
            author=props.author or None,
            title=props.title or None,
            subject=props.subject or None,
            keywords=split_keywords(props.keywords),
            created_at=props.created.isoformat() if props.created else None,
            modified_at=props.modified.isoformat() if props.modified else None,
        )

        logger.info(
            "docx_processed",
            file_name=file_name,
            paragraphs=len(paragraphs),
            tables=len(tables),
            chunks=len(chunks),
        )
        return ProcessedContent(
            text=text,
            chunks=chunks,
            metadata=metadata,
            tables=tables or None,
        )

    @staticmethod
    def _table(table, index: int) -> ExtractedTable:  # noqa: ANN001 -- python-docx Table
        rows = [[cell.text.strip() for cell in row.cells] for row in table.rows]
        headers = rows[0] if rows else []
        return ExtractedTable(
            id=str(uuid.uuid4()),
            headers=headers,
            rows=rows[1:],
            caption=f"Table {index}",
        )
