"""End-to-end tests for DocumentProcessingPipeline with real processors.

Every run goes through the default registry, a real chunker, the hash
embedder, and an in-memory or SQLite store; only failure collaborators
are faked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from docflow.models.content import ChunkType
from docflow.models.options import ProcessingOptions
from docflow.models.pipeline import ProcessingStage, ProcessingStatus
from docflow.pipeline.orchestrator import DocumentProcessingPipeline
from docflow.pipeline.status_tracker import StatusTracker
from docflow.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from docflow.providers.store.memory_store import MemoryDocumentStore
from docflow.providers.store.sqlite_store import SQLiteDocumentStore
from docflow.services.ingestion.registry import build_default_registry
from docflow.utils.errors import PersistenceFailureError, UnsupportedFileTypeError

SCENARIO_A_TEXT = "This is a test document with some content..."


class _FailingStore(MemoryDocumentStore):
    """Store whose chunk insert always fails."""

    async def insert_chunks(self, rows: list[dict[str, Any]]) -> int:
        raise OSError("disk full")


def _build(store: Any = None) -> tuple[DocumentProcessingPipeline, StatusTracker]:
    tracker = StatusTracker()
    pipeline = DocumentProcessingPipeline(
        registry=build_default_registry(),
        tracker=tracker,
        embedding_provider=HashEmbeddingProvider(dimension=8),
        store=store if store is not None else MemoryDocumentStore(),
    )
    return pipeline, tracker


def _dedupe(values: list[float]) -> list[float]:
    out: list[float] = []
    for value in values:
        if not out or out[-1] != value:
            out.append(value)
    return out


# ---------------------------------------------------------------------------
# Text documents
# ---------------------------------------------------------------------------


class TestTextDocuments:
    @pytest.mark.asyncio
    async def test_single_sentence_is_one_chunk(self) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file("doc-a", SCENARIO_A_TEXT.encode(), "a.txt")

        assert len(content.chunks) == 1
        assert content.chunks[0].content == SCENARIO_A_TEXT
        assert content.chunks[0].metadata.type == ChunkType.TEXT
        assert len(content.chunks[0].embedding) == 8
        assert pipeline.get_status("doc-a").status == ProcessingStage.COMPLETED

    @pytest.mark.asyncio
    async def test_long_text_is_bounded(self, long_text: str) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file("doc-b", long_text.encode(), "long.md")

        assert len(content.chunks) > 1
        assert all(chunk.tokens <= 1000 for chunk in content.chunks)
        starts = [chunk.start_index for chunk in content.chunks]
        assert starts == sorted(starts)
        assert all(chunk.content.strip() for chunk in content.chunks)

    @pytest.mark.asyncio
    async def test_progress_sequence(self, long_text: str) -> None:
        pipeline, _ = _build()
        seen: list[ProcessingStatus] = []

        await pipeline.process_file(
            "doc-p",
            long_text.encode(),
            "long.txt",
            ProcessingOptions(chunk_size=200, chunk_overlap=20, on_progress=seen.append),
        )

        progress = [s.progress for s in seen]
        assert progress == sorted(progress)
        assert _dedupe(progress) == [0, 20, 40, 60, 80, 100]
        assert seen[-1].status == ProcessingStage.COMPLETED
        assert seen[-1].processed_chunks == seen[-1].total_chunks


# ---------------------------------------------------------------------------
# Binary formats through the whole pipeline
# ---------------------------------------------------------------------------


class TestBinaryFormats:
    @pytest.mark.asyncio
    async def test_pdf(self, pdf_bytes: bytes) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file("doc-pdf", pdf_bytes, "landscapes.pdf")

        assert content.metadata.pages == 2
        assert content.metadata.author == "Ada Lovelace"
        assert "rivers" in content.text

    @pytest.mark.asyncio
    async def test_docx(self, docx_bytes: bytes) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file("doc-docx", docx_bytes, "report.docx")

        assert content.tables and content.tables[0].headers == ["Product", "Units"]
        assert content.metadata.title == "Q3 Report"

    @pytest.mark.asyncio
    async def test_xlsx(self, xlsx_bytes: bytes) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file("doc-xlsx", xlsx_bytes, "book.xlsx")

        assert len(content.tables) == 2
        assert all(chunk.embedding for chunk in content.chunks)

    @pytest.mark.asyncio
    async def test_image_by_mime_type(self, png_bytes: bytes) -> None:
        pipeline, _ = _build()

        content = await pipeline.process_file(
            "doc-img", png_bytes, "upload", ProcessingOptions(mime_type="image/png")
        )

        assert len(content.images) == 1
        assert content.chunks[0].metadata.type == ChunkType.IMAGE


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    @pytest.mark.asyncio
    async def test_unsupported_file_keeps_status(self) -> None:
        pipeline, _ = _build()

        with pytest.raises(UnsupportedFileTypeError):
            await pipeline.process_file("doc-c", b"???", "unsupported.xyz")

        status = pipeline.get_status("doc-c")
        assert status is not None
        assert status.status == ProcessingStage.ERROR
        assert status.error.code == "UNSUPPORTED_FILE_TYPE"
        assert status.error.retryable is False

    @pytest.mark.asyncio
    async def test_store_failure(self) -> None:
        pipeline, _ = _build(store=_FailingStore())

        with pytest.raises(PersistenceFailureError):
            await pipeline.process_file("doc-e", SCENARIO_A_TEXT.encode(), "a.txt")

        status = pipeline.get_status("doc-e")
        assert status.status == ProcessingStage.ERROR
        assert status.error.retryable is True
        assert status.error.message
        assert status.error.details["stage"] == "indexing"


# ---------------------------------------------------------------------------
# Subscriptions and persistence
# ---------------------------------------------------------------------------


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_subscribe_before_processing(self) -> None:
        pipeline, tracker = _build()
        events: list[ProcessingStatus] = []
        tracker.subscribe("doc-d", events.append)

        await pipeline.process_file("doc-d", SCENARIO_A_TEXT.encode(), "a.txt")
        await tracker.flush("doc-d")

        assert events
        assert events[-1].status == ProcessingStage.COMPLETED
        assert all(e.document_id == "doc-d" for e in events)

    @pytest.mark.asyncio
    async def test_other_documents_are_not_delivered(self) -> None:
        pipeline, tracker = _build()
        events: list[ProcessingStatus] = []
        tracker.subscribe("doc-1", events.append)

        await pipeline.process_file("doc-2", SCENARIO_A_TEXT.encode(), "a.txt")
        await tracker.flush()

        assert events == []


class TestSQLitePersistence:
    @pytest.mark.asyncio
    async def test_chunks_are_stored(self, tmp_path: Path, long_text: str) -> None:
        store = SQLiteDocumentStore(db_path=tmp_path / "docs.db")
        await store.initialize()
        pipeline, _ = _build(store=store)

        content = await pipeline.process_file("doc-s", long_text.encode(), "long.txt")

        rows = await store.get_chunks("doc-s")
        assert [r["id"] for r in rows] == [c.id for c in content.chunks]
        assert rows[0]["embedding"] == content.chunks[0].embedding
        meta = await store.get_metadata("doc-s")
        assert meta["metadata"]["file_name"] == "long.txt"
