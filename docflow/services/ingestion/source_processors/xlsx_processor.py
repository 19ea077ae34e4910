"""Source processor for spreadsheet workbooks.

Reads workbooks with openpyxl in read-only, values-only mode.  Each sheet
contributes a ``--- Sheet: <name> ---`` header followed by its rows as
tab-separated lines, and (when table extraction is enabled) one
:class:`~docflow.models.content.ExtractedTable` whose first row is the
header.

Chunking is line-based (50 non-empty lines per chunk by default) rather
than word-window based, because row semantics matter more than token
density.

openpyxl only reads the OOXML (.xlsx) format.  Legacy binary ``.xls``
files still resolve to this processor but fail with
:class:`~docflow.utils.errors.ExtractionFailedError`.
"""

from __future__ import annotations

import io
import uuid

import structlog
from openpyxl import load_workbook

from docflow.models.content import (
    ChunkType,
    ExtractedTable,
    FileMetadata,
    ProcessedContent,
)
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import DEFAULT_LINES_PER_CHUNK, TextChunker
from docflow.services.ingestion.source_processors.base import BaseFileProcessor

logger = structlog.get_logger(logger_name=__name__)


class XLSXProcessor(BaseFileProcessor):
    """Processes workbooks into line-group chunks and one table per sheet."""

    type = "xlsx"
    extensions = (".xlsx", ".xls")
    mime_types = (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
    )
    icon = "📊"
    library = "openpyxl"

    def __init__(self, lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK) -> None:
        self._lines_per_chunk = lines_per_chunk

    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        chunker, options = self._resolve(chunker, options)

        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as exc:
            logger.error("workbook_open_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc

        parts: list[str] = []
        tables: list[ExtractedTable] = []
        try:
            for sheet in workbook.worksheets:
                rows = [
                    ["" if value is None else str(value) for value in row]
                    for row in sheet.iter_rows(values_only=True)
                ]
                if not any(any(row) for row in rows):
                    logger.debug("empty_sheet_skipped", file_name=file_name, sheet=sheet.title)
                    continue
                parts.append(f"\n--- Sheet: {sheet.title} ---\n")
                parts.extend("\t".join(row) for row in rows)
                if options.enable_table_extraction:
                    tables.append(
                        ExtractedTable(
                            id=str(uuid.uuid4()),
                            headers=rows[0],
                            rows=rows[1:],
                            caption=f"Sheet: {sheet.title}",
                        )
                    )
            sheet_count = len(workbook.worksheets)
            props = workbook.properties
        except Exception as exc:
            logger.error("workbook_read_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc
        finally:
            workbook.close()

        text = "\n".join(parts)
        chunks = chunker.chunk_lines(
            text,
            source_id=file_name,
            lines_per_chunk=self._lines_per_chunk,
            chunk_type=ChunkType.TABLE,
            language=options.language,
        )

        metadata = FileMetadata(
            file_name=file_name,
            file_size=len(data),
            mime_type=self._mime_type(options),
            pages=sheet_count,
            language=options.language,
            author=props.creator or None,
            title=props.title or None,
            subject=props.subject or None,
            created_at=props.created.isoformat() if props.created else None,
            modified_at=props.modified.isoformat() if props.modified else None,
        )

        logger.info(
            "workbook_processed",
            file_name=file_name,
            sheets=sheet_count,
            tables=len(tables),
            chunks=len(chunks),
        )
        return ProcessedContent(
            text=text,
            chunks=chunks,
            metadata=metadata,
            tables=tables or None,
        )
