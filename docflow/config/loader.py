"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings on top.  settings_from_config() goes the other way:
# it turns the merged dict back into a validated Settings instance.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from docflow.config.settings import Settings

# YAML section/key -> Settings field.
_YAML_TO_SETTINGS: dict[tuple[str, str], str] = {
    ("chunking", "chunk_size"): "chunk_size",
    ("chunking", "chunk_overlap"): "chunk_overlap",
    ("chunking", "spreadsheet_lines_per_chunk"): "spreadsheet_lines_per_chunk",
    ("chunking", "image_confidence"): "image_confidence",
    ("pipeline", "stage_timeout_seconds"): "stage_timeout_seconds",
    ("pipeline", "status_retention_seconds"): "status_retention_seconds",
    ("embedding", "dimension"): "embedding_dimension",
    ("embedding", "model"): "openai_embedding_model",
    ("store", "backend"): "store_backend",
    ("store", "sqlite_db_path"): "sqlite_db_path",
    ("app", "host"): "app_host",
    ("app", "port"): "app_port",
    ("app", "env"): "app_env",
    ("app", "max_upload_bytes"): "max_upload_bytes",
    ("logging", "level"): "log_level",
}


def load_config(path: str = "config/config.yaml") -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Only settings explicitly provided through the environment (or .env)
    override YAML values; Settings defaults never clobber the YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = Settings()
    explicit = settings.model_fields_set | _env_field_names()
    env_overrides: dict[str, Any] = {}
    for (section, key), field_name in _YAML_TO_SETTINGS.items():
        if field_name in explicit:
            env_overrides.setdefault(section, {})[key] = getattr(settings, field_name)

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Build a :class:`Settings` from a merged config dict (see :func:`load_config`)."""
    values: dict[str, Any] = {}
    for (section, key), field_name in _YAML_TO_SETTINGS.items():
        section_values = config.get(section) or {}
        if key in section_values:
            values[field_name] = section_values[key]
    return Settings(**values)


def _env_field_names() -> set[str]:
    """Return Settings field names that have a matching environment variable."""
    return {name for name in Settings.model_fields if name.upper() in os.environ}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
