"""Configuration: pydantic-settings Settings plus the YAML loader."""

from docflow.config.loader import load_config, settings_from_config
from docflow.config.settings import Settings

__all__ = ["Settings", "load_config", "settings_from_config"]
