# src/config/settings.py - v3
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where user data
lives, who the analyst is, and how logging is configured.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from orcsindex.index.builder import INDEX_VERSION
from orcsindex.storage.layout import INDEX_FILE, index_path


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === User data ===
    user_data_dir: Path = Path("~/.orcs/user_data")
    index_file_name: str = INDEX_FILE
    index_version: str = INDEX_VERSION

    # === Annotations ===
    analyst_name: str = ""
    default_classification: str = "Proprietary Information"

    # === Matching ===
    similarity_top_k: int = 3
    reference_context_radius: int = 100
    untagged_reference_limit: int = 20

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Limits must be positive; the index needs a file name."""
        errors: list[str] = []

        for name in (
            "similarity_top_k",
            "reference_context_radius",
            "untagged_reference_limit",
            "log_retention",
        ):
            if getattr(self, name) <= 0:
                errors.append(f"{name.upper()} must be > 0")

        if not self.index_file_name.strip():
            errors.append("INDEX_FILE_NAME must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def user_data_path(self) -> Path:
        """User data directory with ``~`` expanded."""
        return self.user_data_dir.expanduser()

    @property
    def index_path(self) -> Path:
        return index_path(self.user_data_path, self.index_file_name)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
