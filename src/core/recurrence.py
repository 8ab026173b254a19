"""
Can Freed Chill? — Recurrence & Availability Engine.

Expands busy-period records into concrete occurrences and answers the three
questions the rest of the app asks: is this instant busy, which occurrences
overlap this range, and which parts of this day are free.

No I/O: every function is a pure transformation of its arguments. Inputs are
never mutated and nothing is cached between calls.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator

from dateutil.relativedelta import relativedelta

from src.data.models import (
    BUSY_TYPES,
    REPEAT_BIWEEKLY,
    REPEAT_MONTHLY,
    REPEAT_NONE,
    REPEAT_WEEKLY,
    REPEAT_YEARLY,
    CalendarDay,
    DayAvailability,
    Occurrence,
    ScheduleRecord,
)

logger = logging.getLogger(__name__)

# Open-ended schedules are expanded this far past the query anchor. This only
# keeps expansion finite; it says nothing about when a schedule really ends.
DEFAULT_HORIZON_YEARS = 2

_STEPS: dict[str, relativedelta] = {
    REPEAT_WEEKLY: relativedelta(weeks=1),
    REPEAT_BIWEEKLY: relativedelta(weeks=2),
    REPEAT_MONTHLY: relativedelta(months=1),
    REPEAT_YEARLY: relativedelta(years=1),
}

_MORNING_START = time(0, 0)
_AFTERNOON_START = time(8, 0)
_EVENING_START = time(16, 0)
_END_OF_DAY = time(23, 59, 59, 999000)


def default_horizon(anchor: datetime) -> datetime:
    """Return the expansion cutoff used when a schedule has no repeat_until."""
    return anchor + relativedelta(years=DEFAULT_HORIZON_YEARS)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return (00:00:00.000, 23:59:59.999) of the given day as new values."""
    return datetime.combine(day, _MORNING_START), datetime.combine(day, _END_OF_DAY)


def busy_periods(schedules: Iterable[ScheduleRecord]) -> list[ScheduleRecord]:
    """Keep only records that block availability (untyped records count as busy)."""
    return [s for s in schedules if s.type is None or s.type in BUSY_TYPES]


def _iter_occurrences(
    schedule: ScheduleRecord, horizon: datetime,
) -> Iterator[Occurrence]:
    """Yield occurrences in ascending order; bounded by repeat_until or horizon."""
    if schedule.repeat == REPEAT_NONE:
        yield Occurrence(schedule.start_date, schedule.end_date)
        return

    step = _STEPS.get(schedule.repeat)
    if step is None:
        logger.warning(
            "Schedule %s has unknown repeat kind %r; treating it as non-repeating",
            schedule.id, schedule.repeat,
        )
        yield Occurrence(schedule.start_date, schedule.end_date)
        return

    until = schedule.repeat_until or horizon
    duration = schedule.end_date - schedule.start_date

    # Steps are applied to the seed, not to the previous occurrence, so a
    # month-end start clamps per month without drifting (Jan 31 -> Feb 29 -> Mar 31).
    k = 0
    start = schedule.start_date
    while start < until:
        yield Occurrence(start, start + duration)
        k += 1
        start = schedule.start_date + step * k


def expand_occurrences(
    schedule: ScheduleRecord, horizon_if_unbounded: datetime,
) -> list[Occurrence]:
    """Expand a schedule into its concrete occurrences.

    Args:
        schedule: The record to expand.
        horizon_if_unbounded: Cutoff used only when the schedule repeats and
            has no repeat_until.

    Returns:
        Occurrences in ascending start order. A non-repeating (or
        unrecognized) schedule yields exactly one. A repeating schedule whose
        bound is not after its start yields none.
    """
    return list(_iter_occurrences(schedule, horizon_if_unbounded))


def get_repeating_dates(schedule: ScheduleRecord, target_date: datetime) -> list[datetime]:
    """Start instants of every occurrence, bounding open schedules past target_date."""
    return [
        occ.start_date
        for occ in _iter_occurrences(schedule, default_horizon(target_date))
    ]


def is_date_in_schedule(moment: datetime, schedule: ScheduleRecord) -> bool:
    """True iff `moment` falls inside [start, end] of any occurrence."""
    for occ in _iter_occurrences(schedule, default_horizon(moment)):
        if occ.start_date > moment:
            break
        if moment <= occ.end_date:
            return True
    return False


def find_overlapping_schedules(
    range_start: datetime,
    range_end: datetime,
    schedules: Iterable[ScheduleRecord],
) -> list[Occurrence]:
    """Return occurrences that overlap (range_start, range_end).

    Touching endpoints do not overlap. Results are sorted by start and
    adjacent entries with the same start are collapsed to the first one.
    """
    horizon = default_horizon(range_end)
    overlapping: list[Occurrence] = []

    for schedule in schedules:
        for occ in _iter_occurrences(schedule, horizon):
            if occ.start_date >= range_end:
                break
            if occ.end_date > range_start:
                overlapping.append(occ)

    overlapping.sort(key=lambda occ: occ.start_date)

    result: list[Occurrence] = []
    for occ in overlapping:
        if result and result[-1].start_date == occ.start_date:
            continue
        result.append(occ)
    return result


def generate_calendar_month(
    year: int, month: int, today: date | None = None,
) -> list[list[CalendarDay]]:
    """Build a Sunday-first grid of whole weeks covering the given month.

    Every cell starts out fully available; see update_calendar_availability.
    """
    if today is None:
        today = date.today()

    weeks = calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(year, month)
    return [
        [
            CalendarDay(
                date=d,
                day_of_month=d.day,
                is_current_month=(d.month == month and d.year == year),
                is_today=(d == today),
            )
            for d in week
        ]
        for week in weeks
    ]


def get_day_availability(
    day: date, schedules: Iterable[ScheduleRecord],
) -> DayAvailability:
    """Split a day into morning / afternoon / evening and test each window.

    Windows: [00:00, 08:00), [08:00, 16:00), [16:00, 23:59:59.999].
    """
    if isinstance(day, datetime):
        day = day.date()
    schedules = list(schedules)

    def _free(start: time, end: time) -> bool:
        window_start = datetime.combine(day, start)
        window_end = datetime.combine(day, end)
        return not find_overlapping_schedules(window_start, window_end, schedules)

    return DayAvailability(
        morning=_free(_MORNING_START, _AFTERNOON_START),
        afternoon=_free(_AFTERNOON_START, _EVENING_START),
        evening=_free(_EVENING_START, _END_OF_DAY),
    )


def update_calendar_availability(
    calendar_month: list[list[CalendarDay]],
    schedules: Iterable[ScheduleRecord],
) -> list[list[CalendarDay]]:
    """Return a copy of the grid with every cell's availability computed."""
    schedules = list(schedules)
    return [
        [
            replace(cell, availability=get_day_availability(cell.date, schedules))
            for cell in week
        ]
        for week in calendar_month
    ]
