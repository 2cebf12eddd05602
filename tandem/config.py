"""
Configuration settings for the tandem tutor.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the ``TANDEM_`` prefix, e.g. ``TANDEM_DATA_DIR``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TANDEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / "tandem" / "data",
        description="Data root; one workspace directory per language",
    )

    # ========================================
    # Agent Integration
    # ========================================
    agent_binary: str = Field(
        default="claude",
        description="External agent binary (name on PATH or absolute path)",
    )
    agent_projects_dir: Path = Field(
        default=Path.home() / ".claude" / "projects",
        description="Root under which the agent keeps per-project conversation logs",
    )
    tracker_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Bounded wait for a tracker invocation",
    )
    tracker_dir_name: str = Field(
        default=".tracker",
        description="Workspace subdirectory the tracker runs in",
    )
    max_message_length: int = Field(
        default=10000,
        gt=0,
        description="Maximum learner message length in characters",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=str(Path.home() / "tandem" / "logs" / "tandem.log"),
        description="Debug log file path (empty to disable)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_log_file(self) -> Path | None:
        """Return the debug log path, or None when file logging is disabled."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
