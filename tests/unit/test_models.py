"""Unit tests for the docflow Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docflow.models.content import ChunkMetadata, ChunkType, ContentChunk, FileMetadata
from docflow.models.pipeline import (
    STAGE_LABELS,
    STAGE_PROGRESS,
    ProcessingError,
    ProcessingStage,
    ProcessingStatus,
)


class TestProcessingStage:
    def test_terminal_stages(self) -> None:
        terminal = {stage for stage in ProcessingStage if stage.is_terminal}
        assert terminal == {ProcessingStage.COMPLETED, ProcessingStage.ERROR}

    def test_progress_targets_increase(self) -> None:
        order = [
            ProcessingStage.PENDING,
            ProcessingStage.EXTRACTING,
            ProcessingStage.CHUNKING,
            ProcessingStage.EMBEDDING,
            ProcessingStage.INDEXING,
            ProcessingStage.COMPLETED,
        ]
        assert [STAGE_PROGRESS[s] for s in order] == [0, 20, 40, 60, 80, 100]

    def test_every_stage_has_a_label(self) -> None:
        assert set(STAGE_LABELS) == set(ProcessingStage)


class TestProcessingStatus:
    def test_defaults(self) -> None:
        status = ProcessingStatus(document_id="d", file_name="a.txt")

        assert status.status == ProcessingStage.PENDING
        assert status.progress == 0
        assert status.current_step == "Initializing"
        assert status.total_steps == 5
        assert status.started_at.tzinfo is not None
        assert status.is_terminal is False

    def test_is_frozen(self) -> None:
        status = ProcessingStatus(document_id="d", file_name="a.txt")
        with pytest.raises(ValidationError):
            status.progress = 50

    def test_copy_with_update(self) -> None:
        status = ProcessingStatus(document_id="d", file_name="a.txt")
        done = status.model_copy(update={"status": ProcessingStage.COMPLETED, "progress": 100})

        assert done.is_terminal is True
        assert status.progress == 0

    def test_progress_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ProcessingStatus(document_id="d", file_name="a.txt", progress=101)

    def test_json_dump(self) -> None:
        error = ProcessingError(code="CANCELLED", message="stop", retryable=True)
        status = ProcessingStatus(
            document_id="d", file_name="a.txt", status=ProcessingStage.ERROR, error=error
        )

        payload = status.model_dump(mode="json")
        assert payload["status"] == "error"
        assert payload["error"]["code"] == "CANCELLED"
        assert isinstance(payload["started_at"], str)


class TestContentModels:
    def test_chunk_defaults(self) -> None:
        chunk = ContentChunk(id="c1", content="hi", start_index=0, end_index=1, tokens=1)

        assert chunk.embedding is None
        assert chunk.metadata == ChunkMetadata(type=ChunkType.TEXT, confidence=1.0)

    def test_chunk_rejects_negative_offsets(self) -> None:
        with pytest.raises(ValidationError):
            ContentChunk(id="c1", content="hi", start_index=-1, end_index=1, tokens=1)

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ChunkMetadata(confidence=1.2)

    def test_file_metadata_optional_fields(self) -> None:
        meta = FileMetadata(file_name="a.pdf", file_size=10, mime_type="application/pdf")
        assert meta.pages is None
        assert meta.keywords is None
