"""Abstract base class for document/chunk persistence.

Defines the narrow insert/upsert contract the pipeline's indexing stage
depends on:

* an insert of chunk rows
  ``{id, document_id, content, start_index, end_index, tokens, embedding,
  metadata, created_at}``
* an upsert of one metadata row per document
  ``{document_id, metadata, images, tables, updated_at}``

Implementations signal failure by raising; the orchestrator maps any
exception raised here to
:class:`~docflow.utils.errors.PersistenceFailureError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from docflow.models.content import ProcessedContent


def _utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def build_chunk_rows(document_id: str, content: ProcessedContent) -> list[dict[str, Any]]:
    """Flatten *content*'s chunks into insert rows for the chunk table."""
    created_at = _utc_now_iso()
    return [
        {
            "id": chunk.id,
            "document_id": document_id,
            "content": chunk.content,
            "start_index": chunk.start_index,
            "end_index": chunk.end_index,
            "tokens": chunk.tokens,
            "embedding": chunk.embedding,
            "metadata": chunk.metadata.model_dump(mode="json", exclude_none=True),
            "created_at": created_at,
        }
        for chunk in content.chunks
    ]


def build_metadata_row(document_id: str, content: ProcessedContent) -> dict[str, Any]:
    """Build the single upsert row for the document metadata table."""
    return {
        "document_id": document_id,
        "metadata": content.metadata.model_dump(mode="json", exclude_none=True),
        "images": [img.model_dump(mode="json") for img in content.images or []],
        "tables": [tbl.model_dump(mode="json") for tbl in content.tables or []],
        "updated_at": _utc_now_iso(),
    }


# Concrete implementations (docflow/providers/store/):
#   MemoryDocumentStore -- in-process dicts; tests and the CLI default
#   SQLiteDocumentStore -- aiosqlite-backed document_chunks/document_metadata
class IDocumentStore(ABC):
    """Contract for persisting processed documents."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open files).  Default: no-op."""

    async def close(self) -> None:
        """Release backend resources.  Default: no-op."""

    async def save(self, document_id: str, content: ProcessedContent) -> None:
        """Persist *content*: insert its chunk rows, then upsert its metadata row."""
        await self.insert_chunks(build_chunk_rows(document_id, content))
        await self.upsert_metadata(build_metadata_row(document_id, content))

    @abstractmethod
    async def insert_chunks(self, rows: list[dict[str, Any]]) -> int:
        """Insert chunk rows; returns the number inserted.

        Raises on duplicate ids or backend failure.
        """

    @abstractmethod
    async def upsert_metadata(self, row: dict[str, Any]) -> None:
        """Insert or replace the metadata row keyed by ``row["document_id"]``."""

    @abstractmethod
    async def get_chunks(self, document_id: str) -> list[dict[str, Any]]:
        """Return the stored chunk rows for *document_id* in index order."""

    @abstractmethod
    async def get_metadata(self, document_id: str) -> dict[str, Any] | None:
        """Return the stored metadata row for *document_id*, if any."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> int:
        """Delete all chunk and metadata rows for *document_id*; returns chunks removed."""
