"""Configuration management for the URL shortener application.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortener.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3 — Override for a test or script**::
    settings = Settings(DATABASE_URL="sqlite+aiosqlite:///./local.db")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables (and a local .env file) override defaults automatically.
- STORE_TIMEOUT_SECONDS bounds every registry round-trip to the database.
- SHORT_CODE_MAX_ATTEMPTS bounds the optimistic insert-and-retry loop.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "url-shortener"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Any SQLAlchemy async URL; sqlite+aiosqlite works for local runs and tests
    DATABASE_URL: str = "postgresql+asyncpg://urlshortener:urlshortener@db:5432/urlshortener"
    DATABASE_ECHO: bool = False
    DB_POOL_SIZE: int = Field(default=20, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_TIMEOUT: float = Field(default=5.0, gt=0)

    # Short code allocation
    SHORT_CODE_LENGTH: int = Field(default=7, ge=4, le=32)
    SHORT_CODE_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    # Upper bound for a single store operation
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
