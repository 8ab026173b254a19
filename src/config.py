"""
Can Freed Chill? — Centralized configuration.

Loads all settings from .env and validates required keys.
The recurrence engine never reads these; only the bot and the store do.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # SQLite
    DATABASE_PATH: str = "data/schedules.db"

    # Users allowed to add/remove busy periods. Everyone may query.
    ADMIN_USER_IDS: list[int] = []

    # Used for "today" in the month view
    TIMEZONE: str = "UTC"

    # Whose availability is being shown
    PARENT_NAME: str = "Freed"

    @field_validator("ADMIN_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/schedules.db"),
        ADMIN_USER_IDS=os.getenv("ADMIN_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        PARENT_NAME=os.getenv("PARENT_NAME", "Freed"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
