"""
Can Freed Chill? — Schedule Database.

Busy periods persist in SQLite across restarts. Records are added and
removed only through the admin bot commands; everyone else just reads.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from src.data.models import REPEAT_NONE, TYPE_PARENTING, ScheduleRecord
from src.ports.schedule_port import ScheduleStoreError

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("start_date", "end_date", "repeat", "repeat_until", "type", "notes")


def _to_local(value: datetime | None, tz: tzinfo) -> datetime | None:
    """Convert an aware timestamp to naive wall-clock time in `tz`; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class ScheduleDB:
    """SQLite-backed storage for busy-period schedules."""

    def __init__(self, db_path: str | None = None, tz_name: str | None = None) -> None:
        if db_path is None or tz_name is None:
            from src.config import settings
            db_path = db_path or settings.DATABASE_PATH
            tz_name = tz_name or settings.TIMEZONE

        self._db_path = db_path
        # Timestamps are stored as naive wall-clock time in this zone
        self._tz = ZoneInfo(tz_name)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the schedules table if it doesn't exist, and migrate schema."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS schedules (
                        id           TEXT PRIMARY KEY,
                        start_date   TEXT NOT NULL,
                        end_date     TEXT NOT NULL,
                        repeat       TEXT NOT NULL DEFAULT 'none',
                        repeat_until TEXT
                    )
                """)
                # Older databases predate the type/notes columns
                existing_cols = {
                    row[1] for row in conn.execute("PRAGMA table_info(schedules)").fetchall()
                }
                if "type" not in existing_cols:
                    conn.execute("ALTER TABLE schedules ADD COLUMN type TEXT")
                if "notes" not in existing_cols:
                    conn.execute(
                        "ALTER TABLE schedules ADD COLUMN notes TEXT NOT NULL DEFAULT ''"
                    )
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to initialize {self._db_path}: {exc}") from exc
        logger.debug("Schedules table initialized at %s", self._db_path)

    def _from_iso(self, value: str | None) -> datetime | None:
        return _to_local(datetime.fromisoformat(value), self._tz) if value else None

    def _row_to_schedule(self, row: sqlite3.Row) -> ScheduleRecord:
        return ScheduleRecord(
            id=row["id"],
            start_date=self._from_iso(row["start_date"]),
            end_date=self._from_iso(row["end_date"]),
            repeat=row["repeat"],
            repeat_until=self._from_iso(row["repeat_until"]),
            type=row["type"],
            notes=row["notes"],
        )

    def list_schedules(self) -> list[ScheduleRecord]:
        """Return every schedule, ordered by start date."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM schedules ORDER BY start_date"
                ).fetchall()
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to list schedules: {exc}") from exc
        return [self._row_to_schedule(r) for r in rows]

    def get_schedule(self, schedule_id: str) -> ScheduleRecord | None:
        """Fetch a single schedule by ID."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM schedules WHERE id = ?", (schedule_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to fetch schedule {schedule_id}: {exc}") from exc
        if row is None:
            return None
        return self._row_to_schedule(row)

    def add_schedule(
        self,
        start_date: datetime,
        end_date: datetime,
        repeat: str = REPEAT_NONE,
        repeat_until: datetime | None = None,
        type: str | None = TYPE_PARENTING,
        notes: str = "",
    ) -> ScheduleRecord:
        """Insert a new schedule and return it with its generated ID."""
        schedule = ScheduleRecord(
            id=uuid.uuid4().hex,
            start_date=_to_local(start_date, self._tz),
            end_date=_to_local(end_date, self._tz),
            repeat=repeat,
            repeat_until=_to_local(repeat_until, self._tz) if repeat != REPEAT_NONE else None,
            type=type,
            notes=notes,
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO schedules
                        (id, start_date, end_date, repeat, repeat_until, type, notes)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        schedule.id,
                        _to_iso(schedule.start_date),
                        _to_iso(schedule.end_date),
                        schedule.repeat,
                        _to_iso(schedule.repeat_until),
                        schedule.type,
                        schedule.notes,
                    ),
                )
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to add schedule: {exc}") from exc

        logger.info(
            "Schedule added: %s %s → %s (repeat=%s)",
            schedule.id, _to_iso(schedule.start_date), _to_iso(schedule.end_date), repeat,
        )
        return schedule

    def update_schedule(self, schedule_id: str, **fields: object) -> ScheduleRecord | None:
        """Update the given fields of a schedule. Returns None if it doesn't exist."""
        unknown = set(fields) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update schedule fields: {sorted(unknown)}")

        if not fields:
            return self.get_schedule(schedule_id)

        values = {
            name: _to_iso(_to_local(value, self._tz)) if isinstance(value, datetime) else value
            for name, value in fields.items()
        }
        if values.get("repeat") == REPEAT_NONE:
            values["repeat_until"] = None

        assignments = ", ".join(f"{name} = ?" for name in values)
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE schedules SET {assignments} WHERE id = ?",
                    (*values.values(), schedule_id),
                )
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to update schedule {schedule_id}: {exc}") from exc

        if cursor.rowcount == 0:
            return None
        logger.info("Schedule %s updated: %s", schedule_id, ", ".join(sorted(values)))
        return self.get_schedule(schedule_id)

    def delete_schedule(self, schedule_id: str) -> bool:
        """Remove a schedule. Returns whether a row was deleted."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM schedules WHERE id = ?", (schedule_id,)
                )
        except sqlite3.Error as exc:
            raise ScheduleStoreError(f"Failed to delete schedule {schedule_id}: {exc}") from exc

        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Schedule %s deleted", schedule_id)
        return deleted
