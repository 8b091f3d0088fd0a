# Rev 0.3.0
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import timedelta
from typing import List

from ..models.types import DONE_STATUS
from ..utils.timeutil import Clock, utc_now
from .db import Database


@dataclass(frozen=True)
class DailyStats:
    date: str
    day_of_week: int      # 0 = Sunday, as strftime('%w')
    total_seconds: int


@dataclass(frozen=True)
class TaskTimeStats:
    task_id: int
    task_name: str
    total_seconds: int


@dataclass(frozen=True)
class StatusStats:
    status: str
    total_seconds: int


@dataclass(frozen=True)
class CategoryStats:
    category: str
    total_seconds: int
    task_count: int


@dataclass(frozen=True)
class HeatmapDay:
    date: str
    seconds: int


@dataclass(frozen=True)
class GeneralStats:
    total_tasks: int
    completed_tasks: int
    total_time_seconds: int
    total_sessions: int
    avg_session_seconds: int


class SQLiteStatsRepository:
    """Read-only aggregations for the dashboard. Only closed sessions count."""

    def __init__(self, db: Database, *, clock: Clock = utc_now):
        self._db = db
        self._clock = clock

    def _conn(self) -> sqlite3.Connection:
        return self._db.conn

    def _cutoff(self, days: int) -> str:
        return (self._clock() - timedelta(days=days)).date().isoformat()

    def _daily(self, days: int) -> List[sqlite3.Row]:
        return self._conn().execute(
            """
            SELECT date(start_time) AS day,
                   CAST(strftime('%w', start_time) AS INTEGER) AS dow,
                   SUM(COALESCE(duration_seconds, 0)) AS total
            FROM time_entries
            WHERE date(start_time) >= ?
              AND end_time IS NOT NULL
            GROUP BY date(start_time)
            ORDER BY date(start_time)
            """,
            (self._cutoff(days),),
        ).fetchall()

    def weekly_stats(self) -> List[DailyStats]:
        """Per-day totals over the last 30 days, tagged with weekday."""
        return [DailyStats(r["day"], int(r["dow"]), int(r["total"])) for r in self._daily(30)]

    def heatmap_data(self) -> List[HeatmapDay]:
        return [HeatmapDay(r["day"], int(r["total"])) for r in self._daily(365)]

    def task_time_stats(self, limit: int = 10) -> List[TaskTimeStats]:
        rows = self._conn().execute(
            """
            SELECT id, name, total_seconds
            FROM tasks
            WHERE total_seconds > 0
            ORDER BY total_seconds DESC, id ASC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [TaskTimeStats(r["id"], r["name"], int(r["total_seconds"])) for r in rows]

    def status_stats(self) -> List[StatusStats]:
        rows = self._conn().execute(
            """
            SELECT status, SUM(total_seconds) AS total
            FROM tasks
            WHERE total_seconds > 0
            GROUP BY status
            ORDER BY status
            """
        ).fetchall()
        return [StatusStats(r["status"], int(r["total"])) for r in rows]

    def category_stats(self) -> List[CategoryStats]:
        rows = self._conn().execute(
            """
            SELECT COALESCE(category, 'normal') AS category,
                   SUM(total_seconds) AS total,
                   COUNT(*) AS n
            FROM tasks
            WHERE total_seconds > 0
            GROUP BY category
            ORDER BY category
            """
        ).fetchall()
        return [CategoryStats(r["category"], int(r["total"]), int(r["n"])) for r in rows]

    def general_stats(self) -> GeneralStats:
        tasks = self._conn().execute(
            """
            SELECT COUNT(*) AS n,
                   SUM(CASE WHEN status = ? THEN 1 ELSE 0 END) AS done,
                   SUM(total_seconds) AS total
            FROM tasks
            """,
            (DONE_STATUS,),
        ).fetchone()
        sessions = self._conn().execute(
            """
            SELECT COUNT(*) AS n, AVG(duration_seconds) AS avg
            FROM time_entries
            WHERE end_time IS NOT NULL
            """
        ).fetchone()
        return GeneralStats(
            total_tasks=int(tasks["n"] or 0),
            completed_tasks=int(tasks["done"] or 0),
            total_time_seconds=int(tasks["total"] or 0),
            total_sessions=int(sessions["n"] or 0),
            avg_session_seconds=round(sessions["avg"] or 0),
        )
