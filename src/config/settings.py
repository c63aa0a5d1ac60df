# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Every variable is read with the FIRECACHE_ prefix, e.g.
FIRECACHE_BACKING_STORE=firestore or FIRECACHE_EVICTION_INTERVAL_S=30.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FIRECACHE_",
        extra="ignore",
    )

    # === Backing store ===
    backing_store: Literal["memory", "firestore"] = "memory"
    firestore_project: str = ""
    firestore_database: str = "(default)"
    firestore_credentials_file: Path | None = None

    # === Cache ===
    cache_id_field: str = "_id"
    path_locking: bool = True
    opaque_max_depth: int = 32

    # === Eviction ===
    eviction_enabled: bool = True
    eviction_interval_s: float = 60.0
    eviction_idle_threshold: int = 3

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("eviction_interval_s")
    @classmethod
    def validate_interval(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("eviction_interval_s must be > 0")
        return v

    @field_validator("eviction_idle_threshold")
    @classmethod
    def validate_idle_threshold(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("eviction_idle_threshold must be >= 0")
        return v

    @field_validator("opaque_max_depth")
    @classmethod
    def validate_max_depth(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("opaque_max_depth must be >= 1")
        return v

    @field_validator("cache_id_field")
    @classmethod
    def validate_id_field(cls, v: str) -> str:  # noqa: N805
        """The id field is a top-level key: no path separator, no dots."""
        if not v or "/" in v or "." in v:
            raise ValueError("cache_id_field must be a non-empty plain field name")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.firestore_credentials_file and self.backing_store != "firestore":
            errors.append(
                "FIRECACHE_FIRESTORE_CREDENTIALS_FILE is set but "
                "FIRECACHE_BACKING_STORE is not firestore"
            )

        if self.log_retention < 0:
            errors.append("FIRECACHE_LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
