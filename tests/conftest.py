"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like a temp DB and schedule builders.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ADMIN_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("PARENT_NAME", "Freed")

from datetime import datetime

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_schedules.db")


@pytest.fixture
def schedule_db(tmp_db_path):
    """Return a ScheduleDB instance backed by a temp file."""
    from src.data.db import ScheduleDB
    return ScheduleDB(db_path=tmp_db_path)


@pytest.fixture
def make_schedule():
    """Factory for ScheduleRecord values with sensible defaults."""
    from src.data.models import ScheduleRecord

    counter = iter(range(1, 10_000))

    def _make(start, end, repeat="none", repeat_until=None, type="parenting", notes=""):
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        if isinstance(end, str):
            end = datetime.fromisoformat(end)
        if isinstance(repeat_until, str):
            repeat_until = datetime.fromisoformat(repeat_until)
        return ScheduleRecord(
            id=str(next(counter)),
            start_date=start,
            end_date=end,
            repeat=repeat,
            repeat_until=repeat_until,
            type=type,
            notes=notes,
        )

    return _make
