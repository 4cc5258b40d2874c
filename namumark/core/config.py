#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Compiler configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from namumark._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "namumark"
    app_version: str = _pkg_version
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Links ──────────────────────────────────────────────────────────────

    wiki_base_path: str = "/wiki"
    category_base_path: str = "/wiki/category"
    icon_base_path: str = "/images/icons"
    default_icon_size: int = 16

    # ── Rendering ──────────────────────────────────────────────────────────

    highlight_css_class: str = "highlight"
    highlight_style: str = "friendly"
    toc_title: str = "목차"
    footnote_title: str = "각주"
    footnote_placeholder: str = "footnote {number}"

    # ── Limits ─────────────────────────────────────────────────────────────

    max_content_length: int = 1_000_000   # characters

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:3000",
    ]

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
