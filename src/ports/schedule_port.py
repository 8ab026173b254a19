"""Schedule port — abstract interface for busy-period storage.

The bot and services depend on this protocol, never on a specific backend.
The recurrence engine does not depend on it at all: it only sees the list
of records a caller reads from here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.data.models import ScheduleRecord


class ScheduleStoreError(Exception):
    """Raised when any schedule storage operation fails."""


class SchedulePort(Protocol):
    """Abstract schedule store used by the bot."""

    def list_schedules(self) -> list[ScheduleRecord]: ...

    def get_schedule(self, schedule_id: str) -> ScheduleRecord | None: ...

    def add_schedule(
        self,
        start_date: datetime,
        end_date: datetime,
        repeat: str = "none",
        repeat_until: datetime | None = None,
        type: str | None = "parenting",
        notes: str = "",
    ) -> ScheduleRecord: ...

    def update_schedule(
        self, schedule_id: str, **fields: object
    ) -> ScheduleRecord | None: ...

    def delete_schedule(self, schedule_id: str) -> bool: ...
