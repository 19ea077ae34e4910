"""Shared plumbing for the built-in format processors."""

from __future__ import annotations

from docflow.interfaces.file_processor import IFileProcessor
from docflow.models.options import ProcessingOptions
from docflow.services.ingestion.chunker import TextChunker
from docflow.utils.errors import ExtractionFailedError


class BaseFileProcessor(IFileProcessor):
    """Adds option/chunker defaulting and error wrapping to :class:`IFileProcessor`."""

    # Library name reported as ``provider_name`` on extraction errors.
    library: str = ""

    @staticmethod
    def _resolve(
        chunker: TextChunker | None,
        options: ProcessingOptions | None,
    ) -> tuple[TextChunker, ProcessingOptions]:
        return chunker or TextChunker(), options or ProcessingOptions()

    def _mime_type(self, options: ProcessingOptions) -> str:
        return options.mime_type or self.mime_types[0]

    def _failure(self, file_name: str, exc: Exception) -> ExtractionFailedError:
        return ExtractionFailedError(
            message=f"Could not read {self.type} file {file_name!r}: {exc}",
            provider_name=self.library or None,
            details={"file_name": file_name, "type": self.type},
        )


def split_keywords(raw: str | None) -> list[str] | None:
    """Split a comma- or semicolon-separated keyword property."""
    if not raw:
        return None
    keywords = [kw.strip() for kw in raw.replace(";", ",").split(",") if kw.strip()]
    return keywords or None
