"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** -- e.g., CHUNK_SIZE=800
#      (highest priority -- always wins)
#   2. **.env file** -- key=value lines in the project root .env file
#      (lower priority -- used for local development)
#
# Field name `chunk_size` maps to env var `CHUNK_SIZE` automatically.
# Default values are used when neither an env var nor .env entry exists.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docflow application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Chunking ===
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    spreadsheet_lines_per_chunk: int = Field(default=50, gt=0)
    image_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    # === Pipeline ===
    # 0 disables the per-stage timeout.
    stage_timeout_seconds: float = Field(default=0.0, ge=0.0)
    # Terminal statuses older than this are dropped by purge_finished().
    status_retention_seconds: int = Field(default=86400, ge=0)

    # === Embeddings ===
    # Empty key = "not configured" -> the offline hash embedder is used.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = ""
    embedding_dimension: int = Field(default=1536, gt=0)

    # === Storage ===
    store_backend: str = "memory"  # "memory" | "sqlite"
    sqlite_db_path: str = "data/docflow.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    max_upload_bytes: int = 50 * 1024 * 1024
