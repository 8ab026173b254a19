"""
Can Freed Chill? — Availability summaries.

Turns engine results into what visitors actually see: a yes/no answer for a
selected range, a morning/afternoon/evening breakdown for a day, and a text
month calendar. Pure formatting over the recurrence engine; no I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from src.core.recurrence import (
    busy_periods,
    day_bounds,
    find_overlapping_schedules,
)
from src.data.models import CalendarDay, DayAvailability, Occurrence, ScheduleRecord

logger = logging.getLogger(__name__)

_WEEKDAY_HEADER = "Su   Mo   Tu   We   Th   Fr   Sa"
_MARK_FREE = " "
_MARK_PARTIAL = "~"
_MARK_BUSY = "x"


@dataclass
class RangeAvailability:
    """Result of checking a selected range of days."""

    range_start: datetime
    range_end: datetime
    busy_occurrences: list[Occurrence] = field(default_factory=list)

    @property
    def is_available(self) -> bool:
        return not self.busy_occurrences


def check_range(
    schedules: Iterable[ScheduleRecord],
    first_day: date,
    last_day: date | None = None,
) -> RangeAvailability:
    """Check whether anything busy overlaps the selected days.

    The range runs from the start of the earlier day to the very end of the
    later one; the days may be given in either order. Records typed as free
    are ignored.
    """
    if last_day is None:
        last_day = first_day
    if last_day < first_day:
        first_day, last_day = last_day, first_day

    range_start = day_bounds(first_day)[0]
    range_end = day_bounds(last_day)[1]
    busy = find_overlapping_schedules(range_start, range_end, busy_periods(schedules))

    logger.debug(
        "Range %s → %s: %d busy occurrence(s)",
        first_day, last_day, len(busy),
    )
    return RangeAvailability(range_start=range_start, range_end=range_end, busy_occurrences=busy)


def _format_moment(moment: datetime) -> str:
    return moment.strftime("%a %d %b %Y %H:%M")


def describe_range(result: RangeAvailability, name: str) -> str:
    """Human-readable verdict for a range check."""
    if result.is_available:
        return f"✅ {name} is available during this period"

    lines = [f"⛔ {name} has parenting time during this period:"]
    for occ in result.busy_occurrences:
        lines.append(f"• {_format_moment(occ.start_date)} → {_format_moment(occ.end_date)}")
    return "\n".join(lines)


def describe_day(day: date, availability: DayAvailability, name: str) -> str:
    """Morning / afternoon / evening breakdown for a single day.

    Rendered as Markdown; `name` is inserted verbatim, so callers escape it.
    """
    def _state(free: bool) -> str:
        return "free" if free else "busy"

    if availability.is_fully_available:
        headline = f"✅ {name} is free all day"
    elif availability.is_fully_busy:
        headline = f"⛔ {name} is busy all day"
    else:
        headline = f"🌓 {name} is partly available"

    return (
        f"*{day.strftime('%A %d %B %Y')}*\n"
        f"{headline}\n"
        f"Morning (00:00–08:00): {_state(availability.morning)}\n"
        f"Afternoon (08:00–16:00): {_state(availability.afternoon)}\n"
        f"Evening (16:00–24:00): {_state(availability.evening)}"
    )


def _render_cell(cell: CalendarDay) -> str:
    if not cell.is_current_month:
        return "  .  "

    if cell.availability.is_fully_available:
        mark = _MARK_FREE
    elif cell.availability.is_fully_busy:
        mark = _MARK_BUSY
    else:
        mark = _MARK_PARTIAL

    day = f"{cell.day_of_month:>2}"
    if cell.is_today:
        return f"[{day}]" + mark
    return f" {day} " + mark


def render_month(grid: list[list[CalendarDay]], title: str) -> str:
    """Render an annotated month grid as a monospace text block.

    Days outside the month are dots, today is bracketed, and each day is
    followed by `x` (busy all day), `~` (partly busy) or nothing (free).
    """
    rows = [title, " " + _WEEKDAY_HEADER]
    for week in grid:
        rows.append("".join(_render_cell(cell) for cell in week).rstrip())
    rows.append("x busy all day   ~ partly busy")
    return "\n".join(rows)
