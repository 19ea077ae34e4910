"""Public interface definitions for pipeline collaborators.

Every format processor and external collaborator is accessed through the
abstract base classes defined in this package.  Concrete adapters
implement these interfaces and are injected at startup
(``docflow/main.py``), so tests can substitute mocks or in-memory fakes.

CONCRETE IMPLEMENTATION MAP:
    Interface            ->  Concrete implementations
    ──────────────────────────────────────────────────────────────────
    IFileProcessor       ->  PDFProcessor, DOCXProcessor, XLSXProcessor,
                             ImageProcessor, TextProcessor
    IEmbeddingProvider   ->  OpenAIEmbeddingProvider, HashEmbeddingProvider
    IDocumentStore       ->  MemoryDocumentStore, SQLiteDocumentStore
"""

from docflow.interfaces.document_store import IDocumentStore
from docflow.interfaces.embedding_provider import IEmbeddingProvider
from docflow.interfaces.file_processor import IFileProcessor, ProcessorDescriptor

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "IFileProcessor",
    "ProcessorDescriptor",
]
