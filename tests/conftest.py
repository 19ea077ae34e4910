"""Shared pytest fixtures for the docflow test suite."""

from __future__ import annotations

import io
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
from docx import Document
from openpyxl import Workbook
from PIL import Image

from docflow.config.settings import Settings
from docflow.interfaces.embedding_provider import IEmbeddingProvider
from docflow.pipeline.orchestrator import DocumentProcessingPipeline
from docflow.pipeline.status_tracker import StatusTracker
from docflow.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from docflow.providers.store.memory_store import MemoryDocumentStore
from docflow.services.ingestion.registry import ProcessorRegistry, build_default_registry

# ---------------------------------------------------------------------------
# Text fixtures
# ---------------------------------------------------------------------------

SCENARIO_A_TEXT = "This is a test document with some content..."


@pytest.fixture
def short_text() -> str:
    return SCENARIO_A_TEXT


@pytest.fixture
def long_text() -> str:
    """2000 distinct words, so word offsets can be checked by value."""
    return " ".join(f"word{i}" for i in range(2000))


# ---------------------------------------------------------------------------
# Generated binary documents
# ---------------------------------------------------------------------------


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), color=(200, 40, 40)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    """Two-page PDF with document properties set."""
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), "First page talks about rivers and lakes.")
    doc.new_page().insert_text((72, 72), "Second page talks about mountains.")
    doc.set_metadata(
        {
            "author": "Ada Lovelace",
            "title": "Landscapes",
            "subject": "Geography",
            "keywords": "rivers, mountains; lakes",
        }
    )
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def docx_bytes() -> bytes:
    """Word document with two paragraphs, one table, and core properties."""
    doc = Document()
    doc.add_paragraph("Quarterly report for the northern region.")
    doc.add_paragraph("Revenue grew across every product line.")
    table = doc.add_table(rows=3, cols=2)
    for r, row in enumerate([("Product", "Units"), ("Widget", "10"), ("Gadget", "7")]):
        for c, value in enumerate(row):
            table.cell(r, c).text = value
    doc.core_properties.author = "Grace Hopper"
    doc.core_properties.title = "Q3 Report"
    doc.core_properties.keywords = "finance, quarterly"
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def xlsx_bytes() -> bytes:
    """Workbook with two sheets."""
    wb = Workbook()
    sales = wb.active
    sales.title = "Sales"
    sales.append(["Region", "Total"])
    sales.append(["North", 120])
    sales.append(["South", 95])
    staff = wb.create_sheet("Staff")
    staff.append(["Name", "Role"])
    staff.append(["Lin", "Engineer"])
    wb.properties.creator = "Finance Team"
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    """Embedding provider that returns a fixed 4-d vector per call."""
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_single = AsyncMock(return_value=[0.1, 0.2, 0.3, 0.4])
    provider.embed = AsyncMock(side_effect=lambda texts: [[0.1, 0.2, 0.3, 0.4] for _ in texts])
    provider.get_dimension.return_value = 4
    provider.get_provider_name.return_value = "mock_embedding"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def hash_embedding_provider() -> HashEmbeddingProvider:
    return HashEmbeddingProvider(dimension=8)


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def registry() -> ProcessorRegistry:
    return build_default_registry()


@pytest.fixture
def tracker() -> StatusTracker:
    return StatusTracker()


@pytest.fixture
def pipeline(
    registry: ProcessorRegistry,
    tracker: StatusTracker,
    mock_embedding_provider: MagicMock,
    memory_store: MemoryDocumentStore,
) -> DocumentProcessingPipeline:
    return DocumentProcessingPipeline(
        registry=registry,
        tracker=tracker,
        embedding_provider=mock_embedding_provider,
        store=memory_store,
    )


@pytest.fixture
def test_settings(tmp_path: Any) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        embedding_dimension=8,
        store_backend="memory",
        sqlite_db_path=str(tmp_path / "docflow.db"),
        status_retention_seconds=0,
        app_env="test",
        log_level="WARNING",
    )
