"""
Can Freed Chill? — Admin input parsing.

The data-entry boundary: everything an admin types is validated here before
it reaches the store, so the recurrence engine can assume well-formed
records (start before end, known repeat kind).

Command grammar for /addbusy:

    <start-date> <start-time> <end-date> <end-time> [repeat] [until <date> | forever] [busy|parenting|free] [notes...]

    /addbusy 2024-03-01 09:00 2024-03-03 17:00
    /addbusy 2024-03-01 18:00 2024-03-03 18:00 biweekly until 2024-12-31 school pickup
    /addbusy 2024-03-01 18:00 2024-03-03 18:00 weekly forever
    /addbusy 2024-03-10 09:00 2024-03-10 12:00 free swapped weekend
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from src.core.recurrence import day_bounds
from src.data.models import BUSY_TYPES, REPEAT_KINDS, REPEAT_NONE, TYPE_FREE, TYPE_PARENTING

logger = logging.getLogger(__name__)

ADDBUSY_USAGE = (
    "Usage: /addbusy <start-date> <start-time> <end-date> <end-time> "
    "[none|weekly|biweekly|monthly|yearly] [until <date>|forever] "
    "[busy|parenting|free] [notes]\n"
    "Example: /addbusy 2024-03-01 18:00 2024-03-03 18:00 biweekly until 2024-12-31"
)


class ScheduleInput(BaseModel):
    """A validated busy period, ready to be stored.

    JSON example:
    {
        "start_date": "2024-03-01T18:00:00",
        "end_date": "2024-03-03T18:00:00",
        "repeat": "biweekly",
        "repeat_until": "2024-12-31T23:59:59.999000",
        "type": "parenting",
        "notes": "school pickup"
    }
    """
    start_date: datetime
    end_date: datetime
    repeat: str = REPEAT_NONE
    repeat_until: datetime | None = None     # None + repeat → open-ended
    type: str = TYPE_PARENTING
    notes: str = ""

    @field_validator("repeat", mode="before")
    @classmethod
    def normalize_repeat(cls, v: str) -> str:
        v = str(v).strip().lower()
        if v not in REPEAT_KINDS:
            raise ValueError(f"Unknown repeat {v!r}, expected one of {', '.join(REPEAT_KINDS)}")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        v = str(v).strip().lower()
        if v not in BUSY_TYPES and v != TYPE_FREE:
            raise ValueError(f"Unknown schedule type {v!r}")
        return v

    @model_validator(mode="after")
    def check_interval(self) -> "ScheduleInput":
        if self.end_date < self.start_date:
            raise ValueError("End must not be before start")
        if self.repeat == REPEAT_NONE:
            self.repeat_until = None
        elif self.repeat_until is not None and self.repeat_until < self.start_date:
            raise ValueError("Repeat-until must not be before start")
        return self


def parse_day(text: str) -> date:
    """Parse an ISO date (YYYY-MM-DD). Raises ValueError with a readable message."""
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise ValueError(f"Invalid date {text!r}, expected YYYY-MM-DD") from None


def parse_time(text: str) -> time:
    """Parse a 24h HH:MM time."""
    try:
        return datetime.strptime(text.strip(), "%H:%M").time()
    except ValueError:
        raise ValueError(f"Invalid time {text!r}, expected HH:MM") from None


def parse_month(text: str) -> tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    try:
        parsed = datetime.strptime(text.strip(), "%Y-%m")
    except ValueError:
        raise ValueError(f"Invalid month {text!r}, expected YYYY-MM") from None
    return parsed.year, parsed.month


def _first_error(exc: ValidationError) -> str:
    msg = exc.errors()[0]["msg"]
    return msg.removeprefix("Value error, ")


def parse_schedule_args(args: list[str]) -> ScheduleInput:
    """Parse /addbusy arguments into a validated ScheduleInput.

    A bare `until <date>` bound covers the whole of that date, so an
    occurrence starting on it is still included.

    Raises:
        ValueError: on any malformed or inconsistent input.
    """
    if len(args) < 4:
        raise ValueError(ADDBUSY_USAGE)

    start = datetime.combine(parse_day(args[0]), parse_time(args[1]))
    end = datetime.combine(parse_day(args[2]), parse_time(args[3]))
    rest = list(args[4:])

    repeat = REPEAT_NONE
    if rest and rest[0].lower() in REPEAT_KINDS:
        repeat = rest.pop(0).lower()

    repeat_until: datetime | None = None
    if rest and rest[0].lower() == "forever":
        rest.pop(0)
    elif rest and rest[0].lower() == "until":
        rest.pop(0)
        if not rest:
            raise ValueError("Missing date after 'until'")
        repeat_until = day_bounds(parse_day(rest.pop(0)))[1]

    kind = TYPE_PARENTING
    if rest and (rest[0].lower() in BUSY_TYPES or rest[0].lower() == TYPE_FREE):
        kind = rest.pop(0).lower()

    try:
        parsed = ScheduleInput(
            start_date=start,
            end_date=end,
            repeat=repeat,
            repeat_until=repeat_until,
            type=kind,
            notes=" ".join(rest),
        )
    except ValidationError as exc:
        raise ValueError(_first_error(exc)) from exc

    logger.debug("Parsed schedule input: %s", parsed.model_dump())
    return parsed
