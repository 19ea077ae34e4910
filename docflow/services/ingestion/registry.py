"""Maps file extensions and MIME types to format-specific processors.

The registry is populated once at startup (see
:func:`build_default_registry`) and is read-only afterwards.  Lookup checks
the normalized extension first and falls back to the MIME type; there is no
wildcard or prefix matching.
"""

from __future__ import annotations

import structlog

from docflow.interfaces.file_processor import IFileProcessor, ProcessorDescriptor

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ICON = "📄"


def normalize_extension(file_name: str) -> str:
    """Return the lower-cased extension of *file_name* with its leading dot.

    The extension is the substring after the last ``.``; a name with no dot
    has no extension and yields ``""``.
    """
    _, dot, suffix = file_name.rpartition(".")
    if not dot or not suffix:
        return ""
    return f".{suffix.lower()}"


class ProcessorRegistry:
    """Extension- and MIME-keyed index of :class:`IFileProcessor` instances."""

    def __init__(self) -> None:
        self._processors: list[IFileProcessor] = []
        self._by_extension: dict[str, IFileProcessor] = {}
        self._by_mime_type: dict[str, IFileProcessor] = {}

    def register(self, processor: IFileProcessor) -> None:
        """Add *processor* under each of its extensions and MIME types.

        Later registrations win on a key collision; the clash is logged.
        """
        for ext in processor.extensions:
            key = ext.lower()
            previous = self._by_extension.get(key)
            if previous is not None and previous is not processor:
                logger.warning(
                    "processor_extension_overridden",
                    extension=key,
                    previous=previous.type,
                    replacement=processor.type,
                )
            self._by_extension[key] = processor
        for mime in processor.mime_types:
            self._by_mime_type[mime.lower()] = processor
        if processor not in self._processors:
            self._processors.append(processor)
        logger.debug(
            "processor_registered",
            type=processor.type,
            extensions=list(processor.extensions),
        )

    def lookup(self, file_name: str, mime_type: str | None = None) -> IFileProcessor | None:
        """Resolve the processor for *file_name*, falling back to *mime_type*."""
        processor = self._by_extension.get(normalize_extension(file_name))
        if processor is None and mime_type:
            processor = self._by_mime_type.get(mime_type.strip().lower())
        return processor

    def is_supported(self, file_name: str, mime_type: str | None = None) -> bool:
        return self.lookup(file_name, mime_type) is not None

    def icon_for(self, file_name: str, mime_type: str | None = None) -> str:
        processor = self.lookup(file_name, mime_type)
        return processor.icon if processor is not None else DEFAULT_ICON

    def supported_types(self) -> list[ProcessorDescriptor]:
        """Return one descriptor per registered processor, in registration order."""
        return [processor.describe() for processor in self._processors]

    def __len__(self) -> int:
        return len(self._processors)


def build_default_registry(
    lines_per_chunk: int = 50,
    image_confidence: float = 0.8,
) -> ProcessorRegistry:
    """Return a registry holding the five built-in processors.

    Registration order is pdf, docx, xlsx, image, text.  *lines_per_chunk*
    tunes the spreadsheet processor; *image_confidence* the image one.
    """
    # Deferred: format libraries load on first registry build.
    from docflow.services.ingestion.source_processors import (
        DOCXProcessor,
        ImageProcessor,
        PDFProcessor,
        TextProcessor,
        XLSXProcessor,
    )

    registry = ProcessorRegistry()
    for processor in (
        PDFProcessor(),
        DOCXProcessor(),
        XLSXProcessor(lines_per_chunk=lines_per_chunk),
        ImageProcessor(confidence=image_confidence),
        TextProcessor(),
    ):
        registry.register(processor)
    return registry
