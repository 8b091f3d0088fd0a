# Rev 0.3.0
from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from ..errors import ConcurrencyInvariantViolation, NotFoundError, ValidationError
from ..models.entities import TimeEntry
from ..models.types import RUNNING_STATUS
from ..utils.timeutil import Clock, elapsed_seconds, parse_iso, to_iso, utc_now
from .db import Database

log = logging.getLogger(__name__)

_ENTRY_COLUMNS = "id, task_id, start_time, end_time, duration_seconds"


def _clean_seconds(seconds: int, what: str) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise ValidationError(f"{what} must be whole seconds, got {seconds!r}")
    if seconds < 0:
        raise ValidationError(f"{what} must not be negative")
    return seconds


class SQLiteTimeEntryRepository:
    """
    Session primitives over time_entries, each one transaction wide.

    Every write that touches a task row and its entries runs inside
    Database.transaction(), so a task is never seen running without its
    open entry (or the reverse). These primitives are per task; keeping a
    single running task across the store is SessionEngine's job.
    """

    def __init__(self, db: Database, *, clock: Clock = utc_now):
        self._db = db
        self._clock = clock

    def _conn(self) -> sqlite3.Connection:
        return self._db.conn

    def _task_running(self, task_id: int) -> bool:
        row = self._conn().execute(
            "SELECT is_running FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("task", task_id)
        return bool(row[0])

    # -------------------------
    # Queries
    # -------------------------
    def get_entry(self, entry_id: int) -> Optional[TimeEntry]:
        row = self._conn().execute(
            f"SELECT {_ENTRY_COLUMNS} FROM time_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return TimeEntry.from_row(row) if row else None

    def get_active_entry(self, task_id: int) -> Optional[TimeEntry]:
        row = self._conn().execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM time_entries
            WHERE task_id = ? AND end_time IS NULL
            ORDER BY id DESC LIMIT 1
            """,
            (task_id,),
        ).fetchone()
        return TimeEntry.from_row(row) if row else None

    def list_entries(self, task_id: int) -> List[TimeEntry]:
        rows = self._conn().execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM time_entries
            WHERE task_id = ?
            ORDER BY start_time DESC, id DESC
            """,
            (task_id,),
        ).fetchall()
        return [TimeEntry.from_row(r) for r in rows]

    def count_open_entries(self) -> int:
        row = self._conn().execute(
            "SELECT COUNT(1) FROM time_entries WHERE end_time IS NULL"
        ).fetchone()
        return int(row[0])

    # -------------------------
    # Session primitives
    # -------------------------
    def start_session(self, task_id: int) -> TimeEntry:
        """Open a session and flag the task running. Already open -> returned as is."""
        with self._db.transaction() as con:
            running = self._task_running(task_id)
            open_entry = self.get_active_entry(task_id)
            if open_entry is not None:
                if not running:
                    # open entry without the flag: heal instead of opening a second one
                    con.execute("UPDATE tasks SET is_running = 1 WHERE id = ?", (task_id,))
                return open_entry

            others = con.execute(
                "SELECT COUNT(1) FROM tasks WHERE is_running = 1 AND id != ?", (task_id,)
            ).fetchone()[0]
            if others:
                raise ConcurrencyInvariantViolation(
                    f"cannot start task {task_id}: another task is still running"
                )

            now = to_iso(self._clock())
            try:
                con.execute(
                    "UPDATE tasks SET is_running = 1, status = ?, updated_at = ? WHERE id = ?",
                    (RUNNING_STATUS, now, task_id),
                )
                cur = con.execute(
                    "INSERT INTO time_entries(task_id, start_time) VALUES (?, ?)",
                    (task_id, now),
                )
            except sqlite3.IntegrityError as exc:
                raise ConcurrencyInvariantViolation(str(exc)) from exc
            entry_id = int(cur.lastrowid)
        log.debug("Session %s opened for task %s", entry_id, task_id)
        return self.get_entry(entry_id)

    def stop_session(self, task_id: int) -> Optional[TimeEntry]:
        """Close the open session (if any) and add its duration to the task total.

        Returns the closed entry, or None when nothing was open.
        """
        with self._db.transaction() as con:
            running = self._task_running(task_id)
            entry = self.get_active_entry(task_id)
            if entry is None:
                if running:
                    con.execute(
                        "UPDATE tasks SET is_running = 0, updated_at = ? WHERE id = ?",
                        (to_iso(self._clock()), task_id),
                    )
                return None

            now = self._clock()
            duration = elapsed_seconds(parse_iso(entry.start_time), now)
            stamp = to_iso(now)
            con.execute(
                "UPDATE time_entries SET end_time = ?, duration_seconds = ? WHERE id = ?",
                (stamp, duration, entry.id),
            )
            con.execute(
                """
                UPDATE tasks
                SET is_running = 0, total_seconds = total_seconds + ?, updated_at = ?
                WHERE id = ?
                """,
                (duration, stamp, task_id),
            )
        log.debug("Session %s closed for task %s after %ss", entry.id, task_id, duration)
        return self.get_entry(entry.id)

    def reset_session(self, task_id: int) -> None:
        """Close any open session at zero, drop every session, zero the total."""
        with self._db.transaction() as con:
            self._task_running(task_id)
            stamp = to_iso(self._clock())
            con.execute(
                """
                UPDATE time_entries SET end_time = ?, duration_seconds = 0
                WHERE task_id = ? AND end_time IS NULL
                """,
                (stamp, task_id),
            )
            con.execute("DELETE FROM time_entries WHERE task_id = ?", (task_id,))
            con.execute(
                "UPDATE tasks SET total_seconds = 0, is_running = 0, updated_at = ? WHERE id = ?",
                (stamp, task_id),
            )
        log.info("Timer reset for task %s", task_id)

    def add_manual_entry(self, task_id: int, seconds: int) -> Optional[TimeEntry]:
        """Record retroactive time as an already closed session. Zero seconds is a no-op."""
        seconds = _clean_seconds(seconds, "manual time")
        with self._db.transaction() as con:
            self._task_running(task_id)
            if seconds == 0:
                return None
            stamp = to_iso(self._clock())
            cur = con.execute(
                """
                INSERT INTO time_entries(task_id, start_time, end_time, duration_seconds)
                VALUES (?, ?, ?, ?)
                """,
                (task_id, stamp, stamp, seconds),
            )
            con.execute(
                "UPDATE tasks SET total_seconds = total_seconds + ?, updated_at = ? WHERE id = ?",
                (seconds, stamp, task_id),
            )
            entry_id = int(cur.lastrowid)
        return self.get_entry(entry_id)

    def set_total_time(self, task_id: int, seconds: int) -> None:
        """Overwrite the accumulated total; sessions are left alone."""
        seconds = _clean_seconds(seconds, "total time")
        with self._db.transaction() as con:
            self._task_running(task_id)
            con.execute(
                "UPDATE tasks SET total_seconds = ?, updated_at = ? WHERE id = ?",
                (seconds, to_iso(self._clock()), task_id),
            )
