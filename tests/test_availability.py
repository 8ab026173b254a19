"""Tests for src.core.availability — range verdicts and text rendering."""

from datetime import date, datetime

from src.core.availability import (
    RangeAvailability,
    check_range,
    describe_day,
    describe_range,
    render_month,
)
from src.core.recurrence import generate_calendar_month, update_calendar_availability
from src.data.models import DayAvailability, Occurrence


# ---------------------------------------------------------------------------
# Tests for check_range
# ---------------------------------------------------------------------------


class TestCheckRange:
    def test_empty_schedule_is_available(self):
        result = check_range([], date(2024, 3, 1), date(2024, 3, 5))
        assert result.is_available is True
        assert result.range_start == datetime(2024, 3, 1, 0, 0)
        assert result.range_end == datetime(2024, 3, 5, 23, 59, 59, 999000)

    def test_single_day(self, make_schedule):
        s = make_schedule("2024-03-01T09:00", "2024-03-01T17:00")
        assert check_range([s], date(2024, 3, 1)).is_available is False
        assert check_range([s], date(2024, 3, 2)).is_available is True

    def test_reversed_days_are_swapped(self, make_schedule):
        s = make_schedule("2024-03-03T09:00", "2024-03-03T17:00")
        result = check_range([s], date(2024, 3, 5), date(2024, 3, 1))
        assert result.range_start == datetime(2024, 3, 1, 0, 0)
        assert result.is_available is False

    def test_repeating_occurrences_listed(self, make_schedule):
        s = make_schedule("2024-03-01T18:00", "2024-03-03T18:00", repeat="weekly")
        result = check_range([s], date(2024, 3, 4), date(2024, 3, 20))
        assert [o.start_date.day for o in result.busy_occurrences] == [8, 15]

    def test_free_records_ignored(self, make_schedule):
        free = make_schedule("2024-03-01T09:00", "2024-03-01T17:00", type="free")
        assert check_range([free], date(2024, 3, 1)).is_available is True

    def test_untyped_records_count_as_busy(self, make_schedule):
        untyped = make_schedule("2024-03-01T09:00", "2024-03-01T17:00", type=None)
        assert check_range([untyped], date(2024, 3, 1)).is_available is False


# ---------------------------------------------------------------------------
# Tests for describe_range / describe_day
# ---------------------------------------------------------------------------


class TestDescribeRange:
    def test_available(self):
        result = RangeAvailability(datetime(2024, 3, 1), datetime(2024, 3, 2))
        assert describe_range(result, "Freed") == "✅ Freed is available during this period"

    def test_busy_lists_occurrences(self):
        result = RangeAvailability(
            datetime(2024, 3, 1),
            datetime(2024, 3, 5),
            busy_occurrences=[Occurrence(datetime(2024, 3, 1, 18, 0), datetime(2024, 3, 3, 18, 0))],
        )
        text = describe_range(result, "Freed")
        assert text.startswith("⛔ Freed has parenting time during this period")
        assert "Fri 01 Mar 2024 18:00 → Sun 03 Mar 2024 18:00" in text


class TestDescribeDay:
    def test_free_all_day(self):
        text = describe_day(date(2024, 3, 1), DayAvailability(), "Freed")
        assert "Freed is free all day" in text
        assert "Friday 01 March 2024" in text

    def test_busy_all_day(self):
        text = describe_day(date(2024, 3, 1), DayAvailability(False, False, False), "Freed")
        assert "busy all day" in text

    def test_partial(self):
        text = describe_day(date(2024, 3, 1), DayAvailability(True, False, True), "Freed")
        assert "partly available" in text
        assert "Afternoon (08:00–16:00): busy" in text
        assert "Morning (00:00–08:00): free" in text


# ---------------------------------------------------------------------------
# Tests for render_month
# ---------------------------------------------------------------------------


class TestRenderMonth:
    def _render(self, schedules):
        grid = generate_calendar_month(2024, 3, today=date(2024, 3, 15))
        grid = update_calendar_availability(grid, schedules)
        return render_month(grid, "March 2024")

    def test_layout(self):
        text = self._render([])
        lines = text.splitlines()
        assert lines[0] == "March 2024"
        assert lines[1].startswith(" Su   Mo")
        # title + header + 6 weeks + legend
        assert len(lines) == 9

    def test_days_outside_month_are_dots(self):
        first_week = self._render([]).splitlines()[2]
        assert first_week.startswith("  .    .  ")
        assert "  1 " in first_week

    def test_today_bracketed(self):
        assert "[15]" in self._render([])

    def test_marks(self, make_schedule):
        s = make_schedule("2024-03-01T18:00", "2024-03-03T18:00")
        text = self._render([s])
        assert "  1 ~" in text
        assert "  2 x" in text
        assert "  3 x" in text
        assert "  4 x" not in text
