"""Document store implementations.

Two implementations of IDocumentStore:
    1. MemoryDocumentStore -- in-process dicts (tests, CLI, development).
    2. SQLiteDocumentStore -- aiosqlite; ``document_chunks`` and
       ``document_metadata`` tables.
"""

from docflow.providers.store.memory_store import MemoryDocumentStore
from docflow.providers.store.sqlite_store import SQLiteDocumentStore

__all__ = ["MemoryDocumentStore", "SQLiteDocumentStore"]
