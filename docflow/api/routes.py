"""FastAPI API routes for docflow.

Provides REST endpoints for document upload, status polling,
cancellation, supported file types, processing statistics, and health.
Service dependencies are resolved from ``app.state.context`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/documents                     POST    Upload a file and process it
# /api/v1/documents/{id}/status         GET     Poll a document's status
# /api/v1/documents/{id}/cancel         POST    Request best-effort cancel
# /api/v1/file-types                    GET     Supported file types
# /api/v1/processing/stats              GET     Counts by outcome
# /api/v1/health                        GET     Health check
#
# Live status updates are served by the WebSocket at /ws/documents/{id}
# (see websocket.py).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any

import structlog
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from fastapi.responses import JSONResponse

from docflow import __version__
from docflow.api.schemas import (
    CancelResponse,
    DocumentAcceptedResponse,
    DocumentProcessedResponse,
    HealthResponse,
    ProcessingStatsResponse,
)
from docflow.interfaces.file_processor import ProcessorDescriptor
from docflow.models.options import ProcessingOptions
from docflow.models.pipeline import ProcessingStatus
from docflow.pipeline.orchestrator import DocumentProcessingPipeline
from docflow.utils.errors import DocflowError
from docflow.utils.logging import get_logger
from docflow.utils.timing import estimate_processing_time, format_processing_time

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve the context from app.state
# ---------------------------------------------------------------------------


def _get_context(request: Request) -> Any:
    """Return the ProcessingContext built during startup."""
    return request.app.state.context


def _get_pipeline(request: Request) -> DocumentProcessingPipeline:
    return request.app.state.context.pipeline


# The context type lives in docflow.main, which imports this module.
ContextDep = Annotated[Any, Depends(_get_context)]
PipelineDep = Annotated[DocumentProcessingPipeline, Depends(_get_pipeline)]


# ---------------------------------------------------------------------------
# Upload / processing
# ---------------------------------------------------------------------------


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read *file* in chunks, rejecting it as soon as it exceeds *max_bytes*."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {max_bytes} bytes.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def _process_in_background(
    pipeline: DocumentProcessingPipeline,
    document_id: str,
    data: bytes,
    file_name: str,
    options: ProcessingOptions,
) -> None:
    """Run the pipeline after the response was sent; failures live in the status record."""
    try:
        await pipeline.process_file(document_id, data, file_name, options)
    except DocflowError as exc:
        _logger.warning(
            "background_processing_failed",
            document_id=document_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )


@router.post(
    "/documents",
    response_model=DocumentProcessedResponse,
    responses={202: {"model": DocumentAcceptedResponse}},
)
async def upload_document(
    file: UploadFile,
    context: ContextDep,
    background_tasks: BackgroundTasks,
    document_id: Annotated[str | None, Form()] = None,
    chunk_size: Annotated[int | None, Form(gt=0)] = None,
    chunk_overlap: Annotated[int | None, Form(ge=0)] = None,
    language: Annotated[str | None, Form()] = None,
    wait: Annotated[bool, Query()] = True,
) -> DocumentProcessedResponse | JSONResponse:
    """Accept a file and run it through the pipeline.

    With ``wait=true`` (default) the response is sent once processing has
    finished.  With ``wait=false`` processing continues in the background
    and a 202 with polling/WebSocket URLs is returned immediately.
    """
    pipeline = context.pipeline
    file_name = file.filename or "upload"
    doc_id = document_id or uuid.uuid4().hex
    data = await _read_upload(file, context.settings.max_upload_bytes)

    options = ProcessingOptions(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        language=language,
        mime_type=file.content_type or None,
    )
    # Surface invalid chunk settings as a 400 before anything is scheduled.
    pipeline.chunker_for(options)

    processor = context.registry.lookup(file_name, options.mime_type)
    if not wait and processor is not None:
        # The status URL must resolve as soon as the 202 is sent.
        await context.tracker.create(doc_id, file_name)
        background_tasks.add_task(
            _process_in_background, pipeline, doc_id, data, file_name, options
        )
        _logger.info("document_scheduled", document_id=doc_id, file_name=file_name)
        accepted = DocumentAcceptedResponse(
            document_id=doc_id,
            file_name=file_name,
            estimated_seconds=estimate_processing_time(len(data), processor.type),
            status_url=f"/api/v1/documents/{doc_id}/status",
            websocket_url=f"/ws/documents/{doc_id}",
        )
        return JSONResponse(status_code=202, content=accepted.model_dump())

    content = await pipeline.process_file(doc_id, data, file_name, options)
    status = pipeline.get_status(doc_id)
    return DocumentProcessedResponse(
        document_id=doc_id,
        file_name=file_name,
        status=status.status,
        chunk_count=len(content.chunks),
        total_tokens=sum(chunk.tokens for chunk in content.chunks),
        text_length=len(content.text),
        image_count=len(content.images or []),
        table_count=len(content.tables or []),
        metadata=content.metadata,
        processing_time=format_processing_time(status.started_at, status.completed_at),
    )


# ---------------------------------------------------------------------------
# Status / control
# ---------------------------------------------------------------------------


@router.get("/documents/{document_id}/status", response_model=ProcessingStatus)
async def get_document_status(document_id: str, pipeline: PipelineDep) -> ProcessingStatus:
    status = pipeline.get_status(document_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Unknown document: {document_id}")
    return status


@router.post("/documents/{document_id}/cancel", response_model=CancelResponse)
async def cancel_document(document_id: str, pipeline: PipelineDep) -> CancelResponse:
    if pipeline.get_status(document_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown document: {document_id}")
    return CancelResponse(document_id=document_id, cancelled=pipeline.cancel(document_id))


@router.get("/file-types", response_model=list[ProcessorDescriptor])
async def list_file_types(context: ContextDep) -> list[ProcessorDescriptor]:
    return context.registry.supported_types()


@router.get("/processing/stats", response_model=ProcessingStatsResponse)
async def processing_stats(context: ContextDep) -> ProcessingStatsResponse:
    return ProcessingStatsResponse(**context.tracker.stats())


@router.get("/health", response_model=HealthResponse)
async def health(context: ContextDep) -> HealthResponse:
    return HealthResponse(
        status="healthy" if context.embedding_provider.is_available() else "degraded",
        version=__version__,
        embedding_provider=context.embedding_provider.get_provider_name(),
        store=type(context.store).__name__,
        processors=len(context.registry),
    )
