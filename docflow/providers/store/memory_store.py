"""In-process document store backed by plain dicts.

Used by tests and as the default backend for the CLI and development
server.  Contents are lost when the process exits.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from docflow.interfaces.document_store import IDocumentStore

logger = structlog.get_logger(logger_name=__name__)


class MemoryDocumentStore(IDocumentStore):
    """Dict-backed :class:`IDocumentStore`."""

    def __init__(self) -> None:
        self._chunks: dict[str, list[dict[str, Any]]] = {}
        self._chunk_ids: set[str] = set()
        self._metadata: dict[str, dict[str, Any]] = {}

    async def insert_chunks(self, rows: list[dict[str, Any]]) -> int:
        duplicates = [row["id"] for row in rows if row["id"] in self._chunk_ids]
        if duplicates:
            raise ValueError(f"Duplicate chunk ids: {duplicates[:5]}")
        for row in rows:
            self._chunks.setdefault(row["document_id"], []).append(copy.deepcopy(row))
            self._chunk_ids.add(row["id"])
        logger.debug("chunks_inserted", count=len(rows))
        return len(rows)

    async def upsert_metadata(self, row: dict[str, Any]) -> None:
        self._metadata[row["document_id"]] = copy.deepcopy(row)
        logger.debug("metadata_upserted", document_id=row["document_id"])

    async def get_chunks(self, document_id: str) -> list[dict[str, Any]]:
        rows = self._chunks.get(document_id, [])
        return [copy.deepcopy(r) for r in sorted(rows, key=lambda r: r["start_index"])]

    async def get_metadata(self, document_id: str) -> dict[str, Any] | None:
        row = self._metadata.get(document_id)
        return copy.deepcopy(row) if row is not None else None

    async def delete_document(self, document_id: str) -> int:
        rows = self._chunks.pop(document_id, [])
        for row in rows:
            self._chunk_ids.discard(row["id"])
        self._metadata.pop(document_id, None)
        return len(rows)
