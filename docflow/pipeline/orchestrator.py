"""Central orchestrator for the five-stage document processing pipeline.

Drives one document at a time through the fixed stage sequence

    pending(0) -> extracting(20) -> chunking(40) -> embedding(60)
               -> indexing(80) -> completed(100)

with a single absorbing ``error`` state reachable from any non-terminal
stage.  Every transition goes through the injected
:class:`~docflow.pipeline.status_tracker.StatusTracker`, which merges the
change into a new frozen snapshot and broadcasts it to subscribers.

ARCHITECTURE NOTE:
    Each stage follows the same pattern:
        1. Check for a pending cancel request
        2. Ask the tracker to move the status to the stage's progress mark
        3. Await the stage's collaborator (extractor, embedder, or store),
           bounded by the optional per-stage timeout
        4. On failure, attach a typed ProcessingError to the status *before*
           re-raising, so the outcome is always observable via get_status()

    Suspension points are the extractor call (run in a worker thread), each
    embedding call, and the persistence call.  Chunk windowing and status
    merging are synchronous in-memory work.

    The orchestrator is not a retry loop.  ``retry_count`` is supplied by
    the caller on an explicit retry and copied into the error record as-is.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import structlog

from docflow.interfaces.document_store import IDocumentStore
from docflow.interfaces.embedding_provider import IEmbeddingProvider
from docflow.models.content import ContentChunk, ProcessedContent
from docflow.models.options import ProcessingOptions
from docflow.models.pipeline import (
    STAGE_LABELS,
    STAGE_PROGRESS,
    ProcessingError,
    ProcessingStage,
    ProcessingStatus,
)
from docflow.pipeline.status_tracker import StatusTracker
from docflow.services.ingestion.chunker import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    TextChunker,
)
from docflow.services.ingestion.registry import ProcessorRegistry
from docflow.utils.errors import (
    ConfigurationError,
    ExtractionFailedError,
    IngestionError,
    PersistenceFailureError,
    ProcessingCancelledError,
    ProcessingFailedError,
    StageTimeoutError,
    UnsupportedFileTypeError,
)
from docflow.utils.logging import document_log_context, get_logger

T = TypeVar("T")


class DocumentProcessingPipeline:
    """Runs documents through extract -> chunk -> embed -> index.

    All collaborators are injected at construction time; the pipeline
    never creates them, so tests can pass mocks for any of them.

    Parameters
    ----------
    registry:
        Resolves a file name / MIME type to a format processor.
    tracker:
        Owns every document's status and its subscribers.
    embedding_provider:
        Called once per chunk, sequentially.
    store:
        Receives the finished :class:`ProcessedContent`.
    chunk_size, chunk_overlap:
        Defaults used when a call's options leave them unset.
    stage_timeout:
        Seconds allowed per stage; ``None`` or ``0`` disables the limit.
    """

    def __init__(
        self,
        registry: ProcessorRegistry,
        tracker: StatusTracker,
        embedding_provider: IEmbeddingProvider,
        store: IDocumentStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        stage_timeout: float | None = None,
    ) -> None:
        self._registry = registry
        self._tracker = tracker
        self._embedding_provider = embedding_provider
        self._store = store
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._stage_timeout = stage_timeout or None
        self._cancel_requested: set[str] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def tracker(self) -> StatusTracker:
        return self._tracker

    @property
    def registry(self) -> ProcessorRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_file(
        self,
        document_id: str,
        data: bytes,
        file_name: str,
        options: ProcessingOptions | None = None,
    ) -> ProcessedContent:
        """Run *data* through every stage and return the embedded content.

        ``options.on_progress`` receives every status snapshot of this run
        and has been fully drained by the time this coroutine returns or
        raises.

        Raises
        ------
        ConfigurationError
            If the effective chunk size/overlap is invalid.  The status
            record carries a non-retryable ``CONFIGURATION_ERROR``.
        UnsupportedFileTypeError
            No processor matches the file name or MIME type.
        ExtractionFailedError
            The extractor could not read the bytes.  The status record
            carries a retryable ``PROCESSING_FAILED`` error.
        ProcessingFailedError, PersistenceFailureError, StageTimeoutError,
        ProcessingCancelledError
            See :mod:`docflow.utils.errors`.
        """
        options = options or ProcessingOptions()

        subscription = (
            self._tracker.subscribe(document_id, options.on_progress)
            if options.on_progress is not None
            else None
        )
        try:
            with document_log_context(document_id, file_name=file_name):
                return await self._run(document_id, data, file_name, options)
        finally:
            self._cancel_requested.discard(document_id)
            if subscription is not None:
                subscription.unsubscribe()
                await subscription.drain()

    def chunker_for(self, options: ProcessingOptions) -> TextChunker:
        """Build the chunker for *options*, falling back to the pipeline defaults.

        Raises :class:`~docflow.utils.errors.ConfigurationError` for an
        invalid size/overlap pair.
        """
        return TextChunker(
            chunk_size=(
                options.chunk_size if options.chunk_size is not None else self._chunk_size
            ),
            overlap=(
                options.chunk_overlap
                if options.chunk_overlap is not None
                else self._chunk_overlap
            ),
        )

    def get_status(self, document_id: str) -> ProcessingStatus | None:
        return self._tracker.get_status(document_id)

    def cancel(self, document_id: str) -> bool:
        """Request that *document_id* stop at its next stage boundary.

        Best-effort: an extractor that is already parsing runs to completion
        and its result is discarded.  Returns ``False`` if the document is
        unknown or already finished.
        """
        status = self._tracker.get_status(document_id)
        if status is None or status.is_terminal:
            return False
        self._cancel_requested.add(document_id)
        self._logger.info("cancel_requested", document_id=document_id, stage=status.status.value)
        return True

    def pause(self, document_id: str) -> bool:
        """Pausing is not supported; always returns ``False``."""
        self._logger.info("pause_not_supported", document_id=document_id)
        return False

    def resume(self, document_id: str) -> bool:
        """Resuming is not supported; always returns ``False``."""
        self._logger.info("resume_not_supported", document_id=document_id)
        return False

    # ------------------------------------------------------------------
    # Stage sequence
    # ------------------------------------------------------------------

    async def _run(
        self,
        document_id: str,
        data: bytes,
        file_name: str,
        options: ProcessingOptions,
    ) -> ProcessedContent:
        processor = self._registry.lookup(file_name, options.mime_type)
        await self._tracker.create(document_id, file_name)

        try:
            chunker = self.chunker_for(options)
        except ConfigurationError as exc:
            self._logger.warning("invalid_chunk_options", error=exc.message)
            record = ProcessingError(
                code="CONFIGURATION_ERROR",
                message=exc.message,
                details={
                    "chunk_size": options.chunk_size,
                    "chunk_overlap": options.chunk_overlap,
                },
                retryable=False,
                retry_count=options.retry_count,
            )
            await self._fail(document_id, record, options)
            raise

        if processor is None:
            exc = UnsupportedFileTypeError(
                message=f"Unsupported file type: {file_name}",
                details={"file_name": file_name, "mime_type": options.mime_type},
            )
            self._logger.warning("unsupported_file_type", mime_type=options.mime_type)
            await self._fail(document_id, exc.to_model(options.retry_count), options)
            raise exc

        self._logger.info("pipeline_started", processor=processor.type, size=len(data))
        started = time.monotonic()
        stage = ProcessingStage.PENDING

        try:
            # --- Extract ---
            stage = ProcessingStage.EXTRACTING
            await self._advance(document_id, stage)
            content = await self._bounded(
                stage,
                asyncio.to_thread(processor.extract, data, file_name, chunker, options),
            )

            # --- Chunk (accounting only; the extractor already chunked) ---
            stage = ProcessingStage.CHUNKING
            await self._advance(document_id, stage, total_chunks=len(content.chunks))

            # --- Embed ---
            stage = ProcessingStage.EMBEDDING
            await self._advance(document_id, stage, processed_chunks=0)
            chunks = await self._bounded(stage, self._embed_chunks(document_id, content.chunks))
            content = content.model_copy(update={"chunks": chunks})

            # --- Index ---
            stage = ProcessingStage.INDEXING
            await self._advance(document_id, stage)
            await self._bounded(stage, self._persist(document_id, content))
            self._check_cancelled(document_id, ProcessingStage.COMPLETED)
        except ExtractionFailedError as exc:
            self._logger.error("extraction_failed", stage=stage.value, error=str(exc))
            record = ProcessingFailedError(
                message=str(exc),
                details={"stage": stage.value, "cause": exc.code, **exc.details},
            ).to_model(options.retry_count)
            await self._fail(document_id, record, options)
            raise
        except IngestionError as exc:
            self._logger.error("pipeline_failed", stage=stage.value, code=exc.code, error=str(exc))
            exc.details.setdefault("stage", stage.value)
            await self._fail(document_id, exc.to_model(options.retry_count), options)
            raise
        except asyncio.CancelledError:
            self._logger.warning("pipeline_task_cancelled", stage=stage.value)
            record = ProcessingCancelledError(
                message="Processing task was cancelled", details={"stage": stage.value}
            ).to_model(options.retry_count)
            await self._fail(document_id, record, options)
            raise
        except Exception as exc:
            self._logger.error("pipeline_failed", stage=stage.value, error=str(exc), exc_info=True)
            wrapped = ProcessingFailedError(
                message=f"Processing failed during {stage.value}: {exc}",
                details={"stage": stage.value, "exception": type(exc).__name__},
            )
            await self._fail(document_id, wrapped.to_model(options.retry_count), options)
            raise wrapped from exc

        await self._tracker.update(
            document_id,
            status=ProcessingStage.COMPLETED,
            progress=STAGE_PROGRESS[ProcessingStage.COMPLETED],
            current_step=STAGE_LABELS[ProcessingStage.COMPLETED],
            completed_at=datetime.now(tz=timezone.utc),  # noqa: UP017
            estimated_time_remaining=None,
        )
        self._logger.info(
            "pipeline_completed",
            chunks=len(content.chunks),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        await self._invoke(options.on_complete, content, "on_complete", document_id)
        return content

    async def _embed_chunks(
        self, document_id: str, chunks: list[ContentChunk]
    ) -> list[ContentChunk]:
        """Embed *chunks* one at a time, in order, reporting per-chunk progress."""
        embedded: list[ContentChunk] = []
        started = time.monotonic()
        total = len(chunks)
        for index, chunk in enumerate(chunks, start=1):
            self._check_cancelled(document_id, ProcessingStage.EMBEDDING)
            vector = await self._embedding_provider.embed_single(chunk.content)
            embedded.append(chunk.model_copy(update={"embedding": list(vector)}))

            per_chunk = (time.monotonic() - started) / index
            await self._tracker.update(
                document_id,
                processed_chunks=index,
                estimated_time_remaining=round(per_chunk * (total - index), 3),
            )
        return embedded

    async def _persist(self, document_id: str, content: ProcessedContent) -> None:
        try:
            await self._store.save(document_id, content)
        except Exception as exc:
            raise PersistenceFailureError(
                message=f"Failed to persist document {document_id}: {exc}",
                provider_name=type(self._store).__name__,
                details={"exception": type(exc).__name__},
            ) from exc

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _advance(self, document_id: str, stage: ProcessingStage, **changes: Any) -> None:
        self._check_cancelled(document_id, stage)
        await self._tracker.update(
            document_id,
            status=stage,
            progress=STAGE_PROGRESS[stage],
            current_step=STAGE_LABELS[stage],
            **changes,
        )
        self._logger.debug("stage_entered", document_id=document_id, stage=stage.value)

    def _check_cancelled(self, document_id: str, next_stage: ProcessingStage) -> None:
        if document_id in self._cancel_requested:
            raise ProcessingCancelledError(
                message=f"Processing of {document_id} was cancelled",
                details={"next_stage": next_stage.value},
            )

    async def _bounded(self, stage: ProcessingStage, awaitable: Awaitable[T]) -> T:
        if self._stage_timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self._stage_timeout)
        except asyncio.TimeoutError as exc:
            raise StageTimeoutError(
                message=f"Stage {stage.value} exceeded {self._stage_timeout}s",
                details={"stage": stage.value, "timeout_seconds": self._stage_timeout},
            ) from exc

    async def _fail(
        self,
        document_id: str,
        record: ProcessingError,
        options: ProcessingOptions,
    ) -> None:
        await self._tracker.update(
            document_id,
            status=ProcessingStage.ERROR,
            current_step=STAGE_LABELS[ProcessingStage.ERROR],
            error=record,
            completed_at=datetime.now(tz=timezone.utc),  # noqa: UP017
            estimated_time_remaining=None,
        )
        await self._invoke(options.on_error, record, "on_error", document_id)

    async def _invoke(
        self,
        callback: Callable[[Any], Any] | None,
        payload: Any,
        name: str,
        document_id: str,
    ) -> None:
        """Call a caller-supplied callback; its errors are logged, never raised."""
        if callback is None:
            return
        try:
            result = callback(payload)
            if asyncio.iscoroutine(result):
                await result
        except Exception as exc:
            self._logger.warning(
                "callback_error",
                callback=name,
                document_id=document_id,
                error=str(exc),
            )
