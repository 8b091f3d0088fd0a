# Rev 0.3.0
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..models.entities import Task
from ..models.types import CATEGORIES, STATUSES
from ..utils.timeutil import Clock, to_iso, utc_now
from .db import Database
from .sqlite_tag_repository import SQLiteTagRepository

log = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks "field not supplied" where None is a legitimate value (clearing a description)
UNSET: Any = _Unset()

_TASK_COLUMNS = """
    id, name, description, total_seconds, time_limit_seconds, status, category,
    is_running, is_archived, created_at, updated_at
"""


def _clean_name(name: Optional[str]) -> str:
    clean = (name or "").strip()
    if not clean:
        raise ValidationError("task name must not be empty")
    return clean


def _clean_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"time limit must be whole seconds, got {limit!r}")
    if limit < 0:
        raise ValidationError("time limit must not be negative")
    return limit or None


def _check_choice(value: str, allowed: Iterable[str], what: str) -> str:
    if value not in allowed:
        raise ValidationError(f"unknown {what} {value!r}")
    return value


class SQLiteTaskRepository:
    """
    Task CRUD + archive flag + tag hydration.
    Timer columns (total_seconds, is_running) are written by SQLiteTimeEntryRepository.
    """

    def __init__(self, db: Database, tags: SQLiteTagRepository, *, clock: Clock = utc_now):
        self._db = db
        self._tags = tags
        self._clock = clock

    def _conn(self) -> sqlite3.Connection:
        return self._db.conn

    def _now(self) -> str:
        return to_iso(self._clock())

    def _hydrate(self, row: sqlite3.Row) -> Task:
        return Task.from_row(row, self._tags.tags_for_task(row["id"]))

    # -------------------------
    # CRUD
    # -------------------------
    def create_task(
        self,
        *,
        name: str,
        description: Optional[str] = None,
        time_limit_seconds: Optional[int] = None,
        category: str = "normal",
        tag_ids: Optional[Iterable[int]] = None,
        tag_names: Optional[Iterable[str]] = None,
    ) -> Task:
        clean = _clean_name(name)
        limit = _clean_limit(time_limit_seconds)
        _check_choice(category, CATEGORIES, "category")
        now = self._now()
        with self._db.transaction() as con:
            cur = con.execute(
                """
                INSERT INTO tasks(name, description, time_limit_seconds, category,
                                  created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (clean, description or None, limit, category, now, now),
            )
            task_id = int(cur.lastrowid)
            ids = self._tags.resolve_tag_ids(tag_ids, tag_names)
            if ids:
                self._tags.set_task_tags(task_id, ids)
        log.info("Created task %s %r", task_id, clean)
        return self.require_task(task_id)

    def get_task(self, task_id: int) -> Optional[Task]:
        row = self._conn().execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        return self._hydrate(row) if row else None

    def require_task(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def exists(self, task_id: int) -> bool:
        row = self._conn().execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return row is not None

    def list_tasks(self, include_archived: bool = False) -> List[Task]:
        """Tasks whose archived flag equals include_archived, newest update first."""
        rows = self._conn().execute(
            f"""
            SELECT {_TASK_COLUMNS}
            FROM tasks
            WHERE is_archived = ?
            ORDER BY updated_at DESC, id DESC
            """,
            (1 if include_archived else 0,),
        ).fetchall()
        return [self._hydrate(r) for r in rows]

    def update_task(
        self,
        task_id: int,
        *,
        name: Optional[str] = None,
        description: Any = UNSET,
        time_limit_seconds: Any = UNSET,
        status: Optional[str] = None,
        category: Optional[str] = None,
        tag_ids: Optional[Iterable[int]] = None,
        tag_names: Optional[Iterable[str]] = None,
    ) -> Task:
        sets, params = [], []
        if name is not None:
            sets.append("name = ?")
            params.append(_clean_name(name))
        if description is not UNSET:
            sets.append("description = ?")
            params.append(description or None)
        if time_limit_seconds is not UNSET:
            sets.append("time_limit_seconds = ?")
            params.append(_clean_limit(time_limit_seconds))
        if status is not None:
            sets.append("status = ?")
            params.append(_check_choice(status, STATUSES, "status"))
        if category is not None:
            sets.append("category = ?")
            params.append(_check_choice(category, CATEGORIES, "category"))
        sets.append("updated_at = ?")
        params.append(self._now())

        with self._db.transaction() as con:
            if not self.exists(task_id):
                raise NotFoundError("task", task_id)
            con.execute(f"UPDATE tasks SET {', '.join(sets)} WHERE id = ?", (*params, task_id))
            # Supplying either list replaces the whole tag set, [] included
            if tag_ids is not None or tag_names is not None:
                self._tags.set_task_tags(task_id, self._tags.resolve_tag_ids(tag_ids, tag_names))
        return self.require_task(task_id)

    def set_status(self, task_id: int, status: str) -> Task:
        return self.update_task(task_id, status=status)

    def set_category(self, task_id: int, category: str) -> Task:
        return self.update_task(task_id, category=category)

    def set_tags(
        self,
        task_id: int,
        *,
        tag_ids: Optional[Iterable[int]] = None,
        tag_names: Optional[Iterable[str]] = None,
    ) -> Task:
        return self.update_task(task_id, tag_ids=list(tag_ids or ()), tag_names=tag_names)

    def delete_task(self, task_id: int) -> bool:
        # time_entries and task_tags cascade
        with self._db.transaction() as con:
            cur = con.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cur.rowcount == 0:
                raise NotFoundError("task", task_id)
        log.info("Deleted task %s", task_id)
        return True

    def archive_task(self, task_id: int) -> Task:
        return self._set_archived(task_id, True)

    def unarchive_task(self, task_id: int) -> Task:
        return self._set_archived(task_id, False)

    def _set_archived(self, task_id: int, archived: bool) -> Task:
        with self._db.transaction() as con:
            cur = con.execute(
                "UPDATE tasks SET is_archived = ?, updated_at = ? WHERE id = ?",
                (1 if archived else 0, self._now(), task_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("task", task_id)
        return self.require_task(task_id)

    # -------------------------
    # Timer lookups
    # -------------------------
    def running_task_ids(self) -> List[int]:
        rows = self._conn().execute(
            "SELECT id FROM tasks WHERE is_running = 1 ORDER BY id"
        ).fetchall()
        return [int(r[0]) for r in rows]
