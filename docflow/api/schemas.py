"""Pydantic response schemas for the docflow API.

Status snapshots and processor descriptors are returned as their domain
models directly; the schemas here cover the summaries and envelopes that
have no domain counterpart.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from docflow.models.content import FileMetadata
from docflow.models.pipeline import ProcessingStage


class DocumentProcessedResponse(BaseModel):
    """Summary returned after a document finished processing."""

    document_id: str
    file_name: str
    status: ProcessingStage
    chunk_count: int = Field(ge=0)
    total_tokens: int = Field(ge=0)
    text_length: int = Field(ge=0)
    image_count: int = Field(default=0, ge=0)
    table_count: int = Field(default=0, ge=0)
    metadata: FileMetadata
    processing_time: str = Field(description='Compact elapsed time, e.g. "3m 5s"')


class DocumentAcceptedResponse(BaseModel):
    """Returned when processing was scheduled in the background."""

    document_id: str
    file_name: str
    estimated_seconds: int = Field(ge=0)
    status_url: str
    websocket_url: str


class CancelResponse(BaseModel):
    document_id: str
    cancelled: bool


class ProcessingStatsResponse(BaseModel):
    """Counts of tracked documents by outcome."""

    processing: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0


class HealthResponse(BaseModel):
    status: str
    version: str
    embedding_provider: str
    store: str
    processors: int


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    code: str | None = None
    retryable: bool | None = None
