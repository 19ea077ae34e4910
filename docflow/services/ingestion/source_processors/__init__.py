"""Format-specific source processors.

Each processor converts one file format's raw bytes into
:class:`~docflow.models.content.ProcessedContent`, delegating chunking to
the shared :class:`~docflow.services.ingestion.chunker.TextChunker`.

Available processors and their input formats:

- **PDFProcessor**   -- PDF documents via PyMuPDF page extraction (``.pdf``)
- **DOCXProcessor**  -- Word documents via python-docx (``.docx``)
- **XLSXProcessor**  -- Workbooks via openpyxl, one table per sheet (``.xlsx``, ``.xls``)
- **ImageProcessor** -- Raster images, placeholder description only
  (``.jpg .jpeg .png .gif .bmp .webp``)
- **TextProcessor**  -- UTF-8 text (``.txt .md .csv``)
"""

from docflow.services.ingestion.source_processors.docx_processor import DOCXProcessor
from docflow.services.ingestion.source_processors.image_processor import ImageProcessor
from docflow.services.ingestion.source_processors.pdf_processor import PDFProcessor
from docflow.services.ingestion.source_processors.text_processor import TextProcessor
from docflow.services.ingestion.source_processors.xlsx_processor import XLSXProcessor

__all__ = [
    "DOCXProcessor",
    "ImageProcessor",
    "PDFProcessor",
    "TextProcessor",
    "XLSXProcessor",
]
