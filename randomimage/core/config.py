#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from randomimage import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "RandomImage"
    app_version: str = _pkg_version
    base_url: str = "http://localhost:8000"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./randomimage.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Storage ────────────────────────────────────────────────────────────

    attachment_root: Path = Path("./data/attachments")
    max_attachment_bytes: int = 50 * 1024 * 1024   # 50 MB

    # ── Wiki defaults ──────────────────────────────────────────────────────

    default_namespace: str = "Main"
    file_namespace: str = "File"

    # ── Random image extension ─────────────────────────────────────────────

    # Skips expensive per-request work; also flips the strictness default.
    miser_mode: bool = False
    # None means "not configured": strict unless miser_mode is on.
    random_image_strict: Optional[bool] = None
    # Mark any page containing <randomimage> as non-cacheable.
    random_image_no_cache: bool = False

    @property
    def strict_random_images(self) -> bool:
        """Whether database-picked images must have an ``image/*`` MIME type."""
        if self.random_image_strict is None:
            return not self.miser_mode
        return self.random_image_strict

    @property
    def attachment_root_resolved(self) -> Path:
        p = self.attachment_root
        p.mkdir(parents=True, exist_ok=True)
        return p


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
