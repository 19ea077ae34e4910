"""SQLite-backed document store.

Persists chunk rows and per-document metadata rows to a local SQLite
database at ``data/docflow.db``.  Uses ``aiosqlite`` for async I/O.
Embeddings, metadata, images, and tables are stored as JSON text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from docflow.interfaces.document_store import IDocumentStore

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docflow.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL,
    content      TEXT    NOT NULL,
    start_index  INTEGER NOT NULL,
    end_index    INTEGER NOT NULL,
    tokens       INTEGER NOT NULL,
    embedding    TEXT,
    metadata     TEXT    NOT NULL,
    created_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS document_metadata (
    document_id  TEXT    PRIMARY KEY,
    metadata     TEXT    NOT NULL,
    images       TEXT    NOT NULL,
    tables       TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
]

_INSERT_CHUNK_SQL = """\
INSERT INTO document_chunks
    (id, document_id, content, start_index, end_index, tokens, embedding, metadata, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPSERT_METADATA_SQL = """\
INSERT INTO document_metadata (document_id, metadata, images, tables, updated_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(document_id)
DO UPDATE SET metadata   = excluded.metadata,
              images     = excluded.images,
              tables     = excluded.tables,
              updated_at = excluded.updated_at;
"""

_JSON_CHUNK_COLUMNS = ("embedding", "metadata")
_JSON_METADATA_COLUMNS = ("metadata", "images", "tables")


class SQLiteDocumentStore(IDocumentStore):
    """SQLite persistence for processed documents."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    async def insert_chunks(self, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0
        params = [
            (
                row["id"],
                row["document_id"],
                row["content"],
                row["start_index"],
                row["end_index"],
                row["tokens"],
                json.dumps(row["embedding"]) if row["embedding"] is not None else None,
                json.dumps(row["metadata"]),
                row["created_at"],
            )
            for row in rows
        ]
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(_INSERT_CHUNK_SQL, params)
            await db.commit()
        logger.info("chunks_inserted", document_id=rows[0]["document_id"], count=len(rows))
        return len(rows)

    async def upsert_metadata(self, row: dict[str, Any]) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_METADATA_SQL,
                (
                    row["document_id"],
                    json.dumps(row["metadata"]),
                    json.dumps(row["images"]),
                    json.dumps(row["tables"]),
                    row["updated_at"],
                ),
            )
            await db.commit()
        logger.debug("metadata_upserted", document_id=row["document_id"])

    async def get_chunks(self, document_id: str) -> list[dict[str, Any]]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, document_id, content, start_index, end_index, tokens, "
                "embedding, metadata, created_at "
                "FROM document_chunks WHERE document_id = ? ORDER BY start_index, rowid",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_decode(dict(r), _JSON_CHUNK_COLUMNS) for r in rows]

    async def get_metadata(self, document_id: str) -> dict[str, Any] | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT document_id, metadata, images, tables, updated_at "
                "FROM document_metadata WHERE document_id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return _decode(dict(row), _JSON_METADATA_COLUMNS)

    async def delete_document(self, document_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM document_chunks WHERE document_id = ?", (document_id,)
            )
            removed = cursor.rowcount
            await db.execute(
                "DELETE FROM document_metadata WHERE document_id = ?", (document_id,)
            )
            await db.commit()
        logger.info("document_deleted", document_id=document_id, chunks=removed)
        return removed


def _decode(row: dict[str, Any], columns: tuple[str, ...]) -> dict[str, Any]:
    for column in columns:
        if row.get(column) is not None:
            row[column] = json.loads(row[column])
    return row
