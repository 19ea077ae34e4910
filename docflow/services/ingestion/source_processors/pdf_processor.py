"""Source processor for PDF documents.

Reads PDF bytes using PyMuPDF (fitz), extracts text page-by-page, and
prefixes each page with a ``--- Page N ---`` marker before word-window
chunking.  The markers let the chunker recover ``metadata.page`` for every
chunk.  Document properties (author, title, subject, keywords, dates) are
copied into :class:`~docflow.models.content.FileMetadata`, and embedded
raster images are returned as :class:`~docflow.models.content.ExtractedImage`
records when image extraction is enabled.
"""

from __future__ import annotations

import base64
import uuid

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docflow.models.content import (
    ChunkType,
    ExtractedImage,
    FileMetadata,
    ProcessedContent,
)
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import TextChunker, page_marker
from docflow.services.ingestion.source_processors.base import BaseFileProcessor, split_keywords

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor(BaseFileProcessor):
    """Processes PDF files into page-aware text chunks."""

    type = "pdf"
    extensions = (".pdf",)
    mime_types = ("application/pdf",)
    icon = "📄"
    library = "pymupdf"

    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        chunker, options = self._resolve(chunker, options)

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.error("pdf_open_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc

        try:
            parts: list[str] = []
            images: list[ExtractedImage] = []
            for page_index in range(len(doc)):
                page = doc[page_index]
                parts.append(page_marker(page_index + 1))
                parts.append(page.get_text("text"))
                if options.enable_image_extraction:
                    images.extend(self._extract_images(doc, page, page_index + 1))
            page_count = len(doc)
            properties = doc.metadata or {}
        except Exception as exc:
            logger.error("pdf_read_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc
        finally:
            doc.close()

        text = "".join(parts)
        chunks = chunker.chunk(
            text,
            source_id=file_name,
            chunk_type=ChunkType.TEXT,
            language=options.language,
            track_pages=True,
        )

        metadata = FileMetadata(
            file_name=file_name,
            file_size=len(data),
            mime_type=self._mime_type(options),
            pages=page_count,
            language=options.language,
            author=properties.get("author") or None,
            title=properties.get("title") or None,
            subject=properties.get("subject") or None,
            keywords=split_keywords(properties.get("keywords")),
            created_at=properties.get("creationDate") or None,
            modified_at=properties.get("modDate") or None,
        )

        logger.info(
            "pdf_processed",
            file_name=file_name,
            pages=page_count,
            chunks=len(chunks),
            images=len(images),
        )
        return ProcessedContent(
            text=text,
            chunks=chunks,
            metadata=metadata,
            images=images or None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_images(
        doc: fitz.Document, page: fitz.Page, page_number: int
    ) -> list[ExtractedImage]:
        """Return the raster images referenced by *page*."""
        images: list[ExtractedImage] = []
        for info in page.get_images(full=True):
            xref = info[0]
            try:
                extracted = doc.extract_image(xref)
            except Exception as exc:  # noqa: BLE001
                # A broken image stream must not sink the text extraction.
                logger.warning(
                    "pdf_image_extract_failed", xref=xref, page=page_number, error=str(exc)
                )
                continue
            if not extracted or not extracted.get("image"):
                continue
            images.append(
                ExtractedImage(
                    id=str(uuid.uuid4()),
                    description=f"Image on page {page_number}",
                    base64=base64.b64encode(extracted["image"]).decode("ascii"),
                    mime_type=f"image/{extracted.get('ext', 'png')}",
                    width=extracted.get("width"),
                    height=extracted.get("height"),
                    page=page_number,
                )
            )
        return images

