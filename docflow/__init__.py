"""docflow -- document ingestion pipeline.

Extracts text, metadata, tables, and images from PDF, Office, spreadsheet,
image, and plain-text files; splits the text into overlapping token
windows; embeds and persists the chunks; and reports per-document progress
to subscribers.
"""

__version__ = "0.1.0"
