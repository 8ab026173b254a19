"""Tests for src.data.models — schedule and calendar dataclasses."""

import dataclasses
from datetime import date, datetime

import pytest

from src.data.models import CalendarDay, DayAvailability, ScheduleRecord


def test_schedule_defaults():
    s = ScheduleRecord(id="a", start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 2))
    assert s.repeat == "none"
    assert s.repeat_until is None
    assert s.type == "parenting"
    assert s.notes == ""
    assert s.is_repeating is False


def test_schedule_is_repeating():
    s = ScheduleRecord(
        id="a", start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 2),
        repeat="weekly",
    )
    assert s.is_repeating is True


def test_schedule_is_immutable():
    s = ScheduleRecord(id="a", start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 2))
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.start_date = datetime(2025, 1, 1)


def test_day_availability_fully_available():
    assert DayAvailability().is_fully_available is True
    assert DayAvailability(morning=False).is_fully_available is False


def test_day_availability_fully_busy():
    assert DayAvailability(False, False, False).is_fully_busy is True
    assert DayAvailability(False, True, False).is_fully_busy is False


def test_calendar_day_default_availability():
    cell = CalendarDay(date=date(2024, 3, 1), day_of_month=1, is_current_month=True, is_today=False)
    assert cell.availability.is_fully_available is True
