"""
Hydration Tracker — Centralized configuration.

Loads all settings from .env and validates required keys.
Only the adapters and the bot read this module; the core engine is
configured by the values it is handed.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from hydration/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Storage backend: "sqlite" | "json"
    STORAGE_BACKEND: str = "sqlite"
    DATABASE_PATH: str = "data/hydration.db"
    SNAPSHOT_PATH: str = "data/hydration.json"

    # Day boundaries and the daily purge trigger
    TIMEZONE: str = "UTC"
    ROLLOVER_HOUR: int = 0
    ROLLOVER_MINUTE: int = 5

    # Volume logged by a bare /drink
    DEFAULT_DRINK_ML: float = 250

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("ROLLOVER_HOUR", "ROLLOVER_MINUTE", mode="before")
    @classmethod
    def parse_clock_field(cls, v: str | int) -> int:
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        STORAGE_BACKEND=os.getenv("STORAGE_BACKEND", "sqlite"),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/hydration.db"),
        SNAPSHOT_PATH=os.getenv("SNAPSHOT_PATH", "data/hydration.json"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        ROLLOVER_HOUR=os.getenv("ROLLOVER_HOUR", "0"),
        ROLLOVER_MINUTE=os.getenv("ROLLOVER_MINUTE", "5"),
        DEFAULT_DRINK_ML=os.getenv("DEFAULT_DRINK_ML", "250"),
    )


# Singleton — imported by adapters and the bot as:
#   from hydration.config import settings
settings = _load_settings()
