"""Unit tests for the memory and SQLite document stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from docflow.interfaces.document_store import (
    IDocumentStore,
    build_chunk_rows,
    build_metadata_row,
)
from docflow.models.content import (
    ChunkMetadata,
    ChunkType,
    ContentChunk,
    ExtractedTable,
    FileMetadata,
    ProcessedContent,
)
from docflow.providers.store.memory_store import MemoryDocumentStore
from docflow.providers.store.sqlite_store import SQLiteDocumentStore


def _content(prefix: str = "c") -> ProcessedContent:
    chunks = [
        ContentChunk(
            id=f"{prefix}-{i}",
            content=f"chunk {i}",
            start_index=i * 10,
            end_index=i * 10 + 2,
            tokens=2,
            embedding=[0.5, float(i)],
            metadata=ChunkMetadata(type=ChunkType.TEXT, page=i + 1),
        )
        for i in range(3)
    ]
    return ProcessedContent(
        text="chunk 0 chunk 1 chunk 2",
        chunks=chunks,
        metadata=FileMetadata(file_name="a.xlsx", file_size=10, mime_type="text/plain", pages=1),
        tables=[ExtractedTable(id="t1", headers=["a"], rows=[["1"]], caption="Sheet: S")],
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> IDocumentStore:
    if request.param == "memory":
        return MemoryDocumentStore()
    return SQLiteDocumentStore(db_path=tmp_path / "nested" / "docflow.db")


class TestRowBuilders:
    def test_chunk_rows_shape(self) -> None:
        rows = build_chunk_rows("doc-1", _content())

        assert len(rows) == 3
        assert set(rows[0]) == {
            "id",
            "document_id",
            "content",
            "start_index",
            "end_index",
            "tokens",
            "embedding",
            "metadata",
            "created_at",
        }
        assert rows[1]["metadata"] == {"type": "text", "confidence": 1.0, "page": 2}
        assert rows[0]["document_id"] == "doc-1"

    def test_metadata_row_shape(self) -> None:
        row = build_metadata_row("doc-1", _content())

        assert set(row) == {"document_id", "metadata", "images", "tables", "updated_at"}
        assert row["metadata"]["file_name"] == "a.xlsx"
        assert row["images"] == []
        assert row["tables"][0]["caption"] == "Sheet: S"


class TestDocumentStores:
    @pytest.mark.asyncio
    async def test_save_and_read_back(self, store: IDocumentStore) -> None:
        await store.initialize()
        await store.save("doc-1", _content())

        chunks = await store.get_chunks("doc-1")
        assert [c["id"] for c in chunks] == ["c-0", "c-1", "c-2"]
        assert chunks[1]["embedding"] == [0.5, 1.0]
        assert chunks[2]["metadata"]["page"] == 3

        meta = await store.get_metadata("doc-1")
        assert meta["metadata"]["pages"] == 1
        assert meta["tables"][0]["headers"] == ["a"]
        await store.close()

    @pytest.mark.asyncio
    async def test_unknown_document(self, store: IDocumentStore) -> None:
        await store.initialize()
        assert await store.get_chunks("missing") == []
        assert await store.get_metadata("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_chunk_ids_are_rejected(self, store: IDocumentStore) -> None:
        await store.initialize()
        await store.save("doc-1", _content())
        with pytest.raises(Exception):
            await store.save("doc-2", _content())

    @pytest.mark.asyncio
    async def test_metadata_is_upserted(self, store: IDocumentStore) -> None:
        await store.initialize()
        await store.save("doc-1", _content("first"))
        updated = _content("second").model_copy(
            update={
                "metadata": FileMetadata(file_name="b.txt", file_size=1, mime_type="text/plain")
            }
        )
        await store.save("doc-1", updated)

        meta = await store.get_metadata("doc-1")
        assert meta["metadata"]["file_name"] == "b.txt"
        assert len(await store.get_chunks("doc-1")) == 6

    @pytest.mark.asyncio
    async def test_delete_document(self, store: IDocumentStore) -> None:
        await store.initialize()
        await store.save("doc-1", _content())

        assert await store.delete_document("doc-1") == 3
        assert await store.get_chunks("doc-1") == []
        assert await store.get_metadata("doc-1") is None
        # Ids are free again once deleted.
        await store.save("doc-1", _content())

    @pytest.mark.asyncio
    async def test_empty_insert(self, store: IDocumentStore) -> None:
        await store.initialize()
        assert await store.insert_chunks([]) == 0


class TestMemoryStoreIsolation:
    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self) -> None:
        store = MemoryDocumentStore()
        await store.save("doc-1", _content())

        rows = await store.get_chunks("doc-1")
        rows[0]["content"] = "tampered"
        assert (await store.get_chunks("doc-1"))[0]["content"] == "chunk 0"


class TestSQLiteStore:
    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "a" / "b" / "docs.db"
        await SQLiteDocumentStore(db_path=db_path).initialize()
        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_data_survives_new_instance(self, tmp_path: Path) -> None:
        db_path = tmp_path / "docs.db"
        first = SQLiteDocumentStore(db_path=db_path)
        await first.initialize()
        await first.save("doc-1", _content())

        second = SQLiteDocumentStore(db_path=db_path)
        await second.initialize()
        assert len(await second.get_chunks("doc-1")) == 3
