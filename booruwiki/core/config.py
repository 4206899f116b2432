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
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from booruwiki._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "BooruWiki"
    app_version: str = _pkg_version
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Booru hosts ────────────────────────────────────────────────────────

    danbooru_origin: str = "https://danbooru.donmai.us"
    gelbooru_origin: str = "https://gelbooru.com"

    danbooru_username: str = ""
    danbooru_api_key: str = ""
    gelbooru_user_id: str = ""
    gelbooru_api_key: str = ""

    request_timeout: float = 10.0

    # ── Rendering ──────────────────────────────────────────────────────────

    # Tag metadata for [[wiki links]] is only fetched up to this many links
    wiki_tag_lookup_limit: int = 30
    default_line_separator: str = "\n"

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
