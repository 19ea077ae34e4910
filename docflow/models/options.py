"""Per-call options for :meth:`DocumentProcessingPipeline.process_file`.

A plain dataclass rather than a Pydantic model: it carries caller
callbacks and is never serialized.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Union

from docflow.models.content import ProcessedContent
from docflow.models.pipeline import ProcessingError, ProcessingStatus

# Callbacks may be plain functions or coroutine functions.
ProgressCallback = Callable[[ProcessingStatus], Union[None, Awaitable[None]]]
CompleteCallback = Callable[[ProcessedContent], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[ProcessingError], Union[None, Awaitable[None]]]


@dataclass
class ProcessingOptions:
    """Tuning knobs and callbacks for a single pipeline run.

    ``chunk_size`` / ``chunk_overlap`` of ``None`` fall back to the
    configured defaults (1000 / 200 tokens).
    """

    chunk_size: int | None = None
    chunk_overlap: int | None = None
    enable_image_extraction: bool = True
    enable_table_extraction: bool = True
    language: str | None = None
    mime_type: str | None = None
    # Caller-owned retry counter, copied into the error record on failure.
    retry_count: int | None = None
    on_progress: ProgressCallback | None = None
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None

