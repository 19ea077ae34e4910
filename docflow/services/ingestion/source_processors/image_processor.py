"""Source processor for raster images.

No OCR or layout analysis is performed.  The processor emits a single
placeholder chunk describing the image, tagged with a lower confidence
(0.8 by default) than text-bearing formats, and returns the image itself
base64-encoded as an :class:`~docflow.models.content.ExtractedImage`.
Pillow is used only to read the pixel dimensions and format.
"""

from __future__ import annotations

import base64
import io
import uuid

import structlog
from PIL import Image, UnidentifiedImageError

from docflow.models.content import (
    ChunkType,
    ExtractedImage,
    FileMetadata,
    ProcessedContent,
)
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import TextChunker
from docflow.services.ingestion.source_processors.base import BaseFileProcessor

logger = structlog.get_logger(logger_name=__name__)

IMAGE_CONFIDENCE = 0.8


class ImageProcessor(BaseFileProcessor):
    """Wraps an image in a placeholder description chunk."""

    type = "image"
    extensions = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp")
    mime_types = ("image/jpeg", "image/png", "image/gif", "image/bmp", "image/webp")
    icon = "🖼️"
    library = "pillow"

    def __init__(self, confidence: float = IMAGE_CONFIDENCE) -> None:
        self._confidence = confidence

    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        chunker, options = self._resolve(chunker, options)

        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                image_format = (img.format or "").lower()
        except (UnidentifiedImageError, OSError) as exc:
            logger.error("image_open_failed", file_name=file_name, error=str(exc))
            raise self._failure(file_name, exc) from exc

        mime_type = Image.MIME.get(image_format.upper()) or self._mime_type(options)
        text = (
            f"Image: {file_name}\n"
            "This image contains visual content that may include text, "
            "diagrams, or other visual elements."
        )
        chunks = chunker.single(
            text,
            source_id=file_name,
            chunk_type=ChunkType.IMAGE,
            confidence=self._confidence,
            language=options.language,
        )

        images = None
        if options.enable_image_extraction:
            images = [
                ExtractedImage(
                    id=str(uuid.uuid4()),
                    description="Main image content",
                    base64=base64.b64encode(data).decode("ascii"),
                    mime_type=mime_type,
                    width=width,
                    height=height,
                )
            ]

        metadata = FileMetadata(
            file_name=file_name,
            file_size=len(data),
            mime_type=mime_type,
            language=options.language,
        )

        logger.info(
            "image_processed",
            file_name=file_name,
            width=width,
            height=height,
            format=image_format,
        )
        return ProcessedContent(text=text, chunks=chunks, metadata=metadata, images=images)
