"""
Configuration – import settings from CLI flags, environment and .env file.

CLI flags win, then TUDUDI_IMPORT_* environment variables, then .env,
then the defaults below.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ImportSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TUDUDI_IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Paths ──────────────────────────────────────────────────────────────
    db_path: Path = Field(..., description="Path to the Tududi SQLite database")
    root: Path = Field(..., description="Root directory of markdown files")

    # ── Ownership ──────────────────────────────────────────────────────────
    user_id: int = Field(1, description="User ID assigned to imported notes and tags")
    project_id: int = Field(-1, description="Project ID for imported notes (-1 = none)")

    # ── Behaviour ──────────────────────────────────────────────────────────
    dry_run: bool = Field(True, description="Roll back instead of committing")
    tag_from_folders: bool = Field(True, description="Tag notes by folder hierarchy")
    tag_from_hashtags: bool = Field(True, description="Tag notes by inline #hashtags")

    # ── Logging ────────────────────────────────────────────────────────────
    log_level: str = Field("INFO", description="Python logging level")

    # ── Derived helpers ────────────────────────────────────────────────────
    @property
    def has_project(self) -> bool:
        return self.project_id >= 0

    @field_validator("db_path", "root", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
