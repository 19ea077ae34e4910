"""Custom exception hierarchy for docflow.

All application exceptions inherit from :class:`DocflowError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "openai", "sqlite", "pymupdf") caused the failure.

The hierarchy is organized by pipeline concern:

    DocflowError  (base -- catch-all for any docflow error)
    +-- ConfigurationError        (startup / invalid chunker or settings)
    +-- EmbeddingError            (embedding adapter failure)
    +-- IngestionError            (typed pipeline failures with a code)
        +-- UnsupportedFileTypeError  (no processor matched; not retryable)
        +-- ExtractionFailedError     (malformed or unreadable source bytes)
        +-- ProcessingFailedError     (catch-all mid-pipeline failure)
        +-- PersistenceFailureError   (document store rejected the write)
        +-- StageTimeoutError         (a stage exceeded its time budget)
        +-- ProcessingCancelledError  (cancel requested before a transition)

Every :class:`IngestionError` knows how to render itself as the
:class:`~docflow.models.pipeline.ProcessingError` record that is attached
to a document's terminal ``error`` status.
"""

from __future__ import annotations

from typing import Any

from docflow.models.pipeline import ProcessingError


class DocflowError(Exception):
    """Base exception for all docflow errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[sqlite] database is locked``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration / collaborator errors
# ---------------------------------------------------------------------------

class ConfigurationError(DocflowError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(DocflowError):
    """Raised when an embedding provider fails to produce a vector."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Pipeline errors
# ---------------------------------------------------------------------------

class IngestionError(DocflowError):
    """Base class for failures that terminate a document's pipeline run.

    Subclasses pin ``code`` and ``retryable``; ``details`` is free-form
    context (stage name, cause code, file name) copied into the status
    record.
    """

    code: str = "PROCESSING_FAILED"
    retryable: bool = True

    def __init__(
        self,
        message: str = "Document processing failed",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.details: dict[str, Any] = dict(details or {})

    def to_model(self, retry_count: int | None = None) -> ProcessingError:
        """Render this exception as the immutable status error record."""
        return ProcessingError(
            code=self.code,
            message=str(self),
            details=self.details or None,
            retryable=self.retryable,
            retry_count=retry_count,
        )


class UnsupportedFileTypeError(IngestionError):
    """Raised when neither the extension nor the MIME type matches a processor."""

    code = "UNSUPPORTED_FILE_TYPE"
    retryable = False

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)


class ExtractionFailedError(IngestionError):
    """Raised by a source processor when the input bytes cannot be parsed."""

    code = "EXTRACTION_FAILED"

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)


class ProcessingFailedError(IngestionError):
    """Catch-all for extractor, chunker, or embedding failures mid-pipeline."""

    code = "PROCESSING_FAILED"

    def __init__(
        self,
        message: str = "Document processing failed",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)


class PersistenceFailureError(IngestionError):
    """Raised when the document store rejects the chunk insert or metadata upsert."""

    code = "PERSISTENCE_FAILURE"

    def __init__(
        self,
        message: str = "Failed to persist processed content",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)


class StageTimeoutError(IngestionError):
    """Raised when a single pipeline stage exceeds its configured time budget."""

    code = "STAGE_TIMEOUT"

    def __init__(
        self,
        message: str = "Pipeline stage timed out",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)


class ProcessingCancelledError(IngestionError):
    """Raised at the next stage boundary after :meth:`cancel` was requested."""

    code = "CANCELLED"

    def __init__(
        self,
        message: str = "Processing was cancelled",
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, details=details)
