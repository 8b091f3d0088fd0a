# Rev 0.3.0

"""Session engine (Rev 0.3.0)
Start/stop/reset layered on the per-task session primitives, keeping at most
one running task in the whole store. Stateless: every call returns a
SessionState read back from the database after commit.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import ConcurrencyInvariantViolation
from ..models.entities import SessionState, Task, TimeEntry, TimerSnapshot
from ..repositories.db import Database
from ..repositories.sqlite_task_repository import SQLiteTaskRepository
from ..repositories.sqlite_time_entry_repository import SQLiteTimeEntryRepository
from .workspace_sync import WorkspaceSync

log = logging.getLogger(__name__)


class SessionEngine:
    def __init__(
        self,
        db: Database,
        tasks: SQLiteTaskRepository,
        entries: SQLiteTimeEntryRepository,
        workspace: Optional[WorkspaceSync] = None,
    ):
        self._db = db
        self._tasks = tasks
        self._entries = entries
        self._workspace = workspace

    # -------------------------
    # Commands
    # -------------------------
    def start(self, task_id: int) -> SessionState:
        """Stop whatever else runs, then open a session for task_id, as one transaction."""
        stopped_id: Optional[int] = None
        with self._db.transaction():
            self._tasks.require_task(task_id)
            for other in self._tasks.running_task_ids():
                if other == task_id:
                    continue
                self._entries.stop_session(other)
                stopped_id = other
            if any(tid != task_id for tid in self._tasks.running_task_ids()):
                raise ConcurrencyInvariantViolation(
                    f"refusing to start task {task_id}: previous task did not stop"
                )
            self._entries.start_session(task_id)

        if stopped_id is not None:
            log.info("Switched timer from task %s to task %s", stopped_id, task_id)
        else:
            log.info("Timer started for task %s", task_id)
        stopped = self._tasks.get_task(stopped_id) if stopped_id is not None else None
        self._push(stopped)
        return SessionState(task=self._tasks.require_task(task_id), active=self._active(), stopped=stopped)

    def stop(self, task_id: int) -> SessionState:
        """Idempotent: stopping a stopped task changes nothing."""
        entry = self._entries.stop_session(task_id)
        task = self._tasks.require_task(task_id)
        if entry is not None:
            log.info("Timer stopped for task %s (+%ss, total %ss)", task_id, entry.duration_seconds, task.total_seconds)
            self._push(task)
        return SessionState(task=task, active=self._active())

    def reset(self, task_id: int) -> SessionState:
        self._entries.reset_session(task_id)
        task = self._tasks.require_task(task_id)
        self._push(task)
        return SessionState(task=task, active=self._active())

    def add_manual_time(self, task_id: int, seconds: int) -> SessionState:
        entry = self._entries.add_manual_entry(task_id, seconds)
        task = self._tasks.require_task(task_id)
        if entry is not None:
            log.info("Manual entry of %ss added to task %s", seconds, task_id)
            self._push(task)
        return SessionState(task=task, active=self._active())

    def set_total_time(self, task_id: int, seconds: int) -> SessionState:
        self._entries.set_total_time(task_id, seconds)
        task = self._tasks.require_task(task_id)
        log.info("Total time of task %s set to %ss", task_id, seconds)
        self._push(task)
        return SessionState(task=task, active=self._active())

    # -------------------------
    # Queries
    # -------------------------
    def current(self) -> SessionState:
        """The running task and its live snapshot, straight from the store."""
        active = self._active()
        task = self._tasks.get_task(active.task_id) if active else None
        return SessionState(task=task, active=active)

    def time_entries(self, task_id: int) -> list[TimeEntry]:
        self._tasks.require_task(task_id)
        return self._entries.list_entries(task_id)

    def _active(self) -> Optional[TimerSnapshot]:
        running = self._tasks.running_task_ids()
        if not running:
            return None
        if len(running) > 1:
            # the unique index makes this unreachable unless the schema was tampered with
            raise ConcurrencyInvariantViolation(f"tasks {running} are all flagged running")
        task = self._tasks.get_task(running[0])
        entry = self._entries.get_active_entry(running[0])
        if task is None or entry is None:
            log.warning("Task %s flagged running without an open session", running[0])
            return None
        return TimerSnapshot.from_task(task, entry)

    def _push(self, task: Optional[Task]) -> None:
        if self._workspace is not None and task is not None:
            self._workspace.push(task)
