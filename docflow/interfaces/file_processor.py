"""Abstract base class for format-specific source processors.

Defines the extraction contract shared by the PDF, Office-document,
spreadsheet, image, and plain-text processors.  Each concrete processor
turns raw bytes into ``(full_text, metadata, tables?, images?)`` and then
delegates chunking to the shared
:class:`~docflow.services.ingestion.chunker.TextChunker`.

Processors are registered once with the
:class:`~docflow.services.ingestion.registry.ProcessorRegistry` at startup
and are immutable thereafter, so their descriptor fields are class-level
constants.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from docflow.models.content import ProcessedContent
    from docflow.models.options import ProcessingOptions
    from docflow.services.ingestion.chunker import TextChunker


class ProcessorDescriptor(BaseModel):
    """Public description of one supported file type."""

    model_config = ConfigDict(frozen=True)

    type: str
    extensions: list[str]
    mime_types: list[str]
    icon: str


# Concrete implementations (docflow/services/ingestion/source_processors/):
#   PDFProcessor, DOCXProcessor, XLSXProcessor, ImageProcessor, TextProcessor
class IFileProcessor(ABC):
    """Contract for turning one file format's bytes into :class:`ProcessedContent`.

    Subclasses declare ``type``, ``extensions`` (lower-case, with leading
    dot), ``mime_types`` (lower-case) and ``icon`` as class attributes.
    """

    type: ClassVar[str]
    extensions: ClassVar[tuple[str, ...]]
    mime_types: ClassVar[tuple[str, ...]]
    icon: ClassVar[str] = "📄"

    @abstractmethod
    def extract(
        self,
        data: bytes,
        file_name: str,
        chunker: TextChunker | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        """Extract text, metadata, tables, and images from *data*.

        Parameters
        ----------
        data:
            Raw file bytes.
        file_name:
            Original file name; used for metadata.
        chunker:
            Chunker configured with the run's chunk size and overlap.
            ``None`` means the default 1000/200-token chunker.
        options:
            Per-run flags (image/table extraction, language).

        Returns
        -------
        ProcessedContent
            Full text, chunks, metadata, and any tables/images.

        Raises
        ------
        docflow.utils.errors.ExtractionFailedError
            If the bytes are malformed or unreadable for this format.
        """

    def describe(self) -> ProcessorDescriptor:
        """Return this processor's public descriptor."""
        return ProcessorDescriptor(
            type=self.type,
            extensions=list(self.extensions),
            mime_types=list(self.mime_types),
            icon=self.icon,
        )
