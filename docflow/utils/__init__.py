"""Utility modules for docflow.

- **errors** -- Domain-specific exception hierarchy rooted at DocflowError;
  pipeline failures carry a code and a retryable flag and render themselves
  as the ProcessingError record attached to a failed status.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **timing** -- elapsed-time formatting and up-front processing estimates.
"""

from docflow.utils.errors import (
    ConfigurationError,
    DocflowError,
    EmbeddingError,
    ExtractionFailedError,
    IngestionError,
    PersistenceFailureError,
    ProcessingCancelledError,
    ProcessingFailedError,
    StageTimeoutError,
    UnsupportedFileTypeError,
)
from docflow.utils.logging import configure_logging, document_log_context, get_logger
from docflow.utils.timing import estimate_processing_time, format_processing_time

__all__ = [
    "ConfigurationError",
    "DocflowError",
    "EmbeddingError",
    "ExtractionFailedError",
    "IngestionError",
    "PersistenceFailureError",
    "ProcessingCancelledError",
    "ProcessingFailedError",
    "StageTimeoutError",
    "UnsupportedFileTypeError",
    "configure_logging",
    "document_log_context",
    "estimate_processing_time",
    "format_processing_time",
    "get_logger",
]
