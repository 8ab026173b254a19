"""
Can Freed Chill? — Data Models.

Schedule records are the only persisted state. Occurrences, day availability
and calendar cells are derived per query and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

REPEAT_NONE = "none"
REPEAT_WEEKLY = "weekly"
REPEAT_BIWEEKLY = "biweekly"
REPEAT_MONTHLY = "monthly"
REPEAT_YEARLY = "yearly"

REPEAT_KINDS = (
    REPEAT_NONE,
    REPEAT_WEEKLY,
    REPEAT_BIWEEKLY,
    REPEAT_MONTHLY,
    REPEAT_YEARLY,
)

TYPE_BUSY = "busy"
TYPE_PARENTING = "parenting"
TYPE_FREE = "free"

# Record types that block availability. A record without a type counts as busy.
BUSY_TYPES = frozenset({TYPE_BUSY, TYPE_PARENTING})


@dataclass(frozen=True)
class ScheduleRecord:
    """A busy period, possibly repeating.

    `repeat` is kept as a plain string so unrecognized values written by an
    older client survive a round-trip through the store.
    """

    id: str
    start_date: datetime
    end_date: datetime
    repeat: str = REPEAT_NONE
    repeat_until: datetime | None = None
    type: str | None = TYPE_PARENTING
    notes: str = ""

    @property
    def is_repeating(self) -> bool:
        return self.repeat != REPEAT_NONE


@dataclass(frozen=True)
class Occurrence:
    """One concrete interval produced by expanding a ScheduleRecord."""

    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class DayAvailability:
    """Availability of the three fixed windows of a calendar day."""

    morning: bool = True
    afternoon: bool = True
    evening: bool = True

    @property
    def is_fully_available(self) -> bool:
        return self.morning and self.afternoon and self.evening

    @property
    def is_fully_busy(self) -> bool:
        return not (self.morning or self.afternoon or self.evening)


@dataclass(frozen=True)
class CalendarDay:
    """A single cell of a month grid."""

    date: date
    day_of_month: int
    is_current_month: bool
    is_today: bool
    availability: DayAvailability = field(default_factory=DayAvailability)
