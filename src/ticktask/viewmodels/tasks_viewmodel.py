# Rev 0.3.0
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from ..errors import TickTaskError, ValidationError
from ..models.entities import Tag, Task, TimeEntry
from ..repositories.sqlite_tag_repository import SQLiteTagRepository
from ..repositories.sqlite_task_repository import UNSET, SQLiteTaskRepository
from ..services.session_engine import SessionEngine
from ..services.workspace_sync import WorkspaceSync
from .timer_viewmodel import TimerViewModel

log = logging.getLogger(__name__)


class TasksViewModel(QObject):
    """
    Task/tag CRUD for the views. Errors come back as errorRaised(str) and a
    None/False return; every successful change reloads the current listing and
    is mirrored to the workspace.
    """

    tasksReloaded = Signal(list)
    taskChanged = Signal(object)
    taskDeleted = Signal(int)
    errorRaised = Signal(str)

    def __init__(
        self,
        tasks_repo: SQLiteTaskRepository,
        tags_repo: SQLiteTagRepository,
        engine: SessionEngine,
        timer: TimerViewModel,
        workspace: Optional[WorkspaceSync] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._tasks = tasks_repo
        self._tags = tags_repo
        self._engine = engine
        self._timer = timer
        self._workspace = workspace
        self._show_archived = False

        timer.stopped.connect(lambda *_: self.reload())
        timer.wasReset.connect(lambda *_: self.reload())

    # ---- filters
    def set_show_archived(self, show: bool) -> None:
        self._show_archived = show
        self.reload()

    # ---- queries
    def reload(self) -> List[Task]:
        rows = self._tasks.list_tasks(include_archived=self._show_archived)
        self.tasksReloaded.emit(rows)
        return rows

    def get_task(self, task_id: int) -> Optional[Task]:
        return self._tasks.get_task(task_id)

    def list_tags(self) -> List[Tag]:
        return self._tags.list_tags()

    def time_entries(self, task_id: int) -> List[TimeEntry]:
        try:
            return self._engine.time_entries(task_id)
        except TickTaskError as exc:
            self._fail("load time entries", exc)
            return []

    # ---- commands
    def create_task(
        self,
        *,
        name: str,
        description: Optional[str] = None,
        time_limit_seconds: Optional[int] = None,
        category: str = "normal",
        tag_ids: Optional[Iterable[int]] = None,
        tag_names: Optional[Iterable[str]] = None,
    ) -> Optional[Task]:
        return self._run(
            "create task",
            lambda: self._tasks.create_task(
                name=name,
                description=description,
                time_limit_seconds=time_limit_seconds,
                category=category,
                tag_ids=tag_ids,
                tag_names=tag_names,
            ),
        )

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
    ) -> Optional[Task]:
        return self._run(
            "update task",
            lambda: self._tasks.update_task(
                task_id,
                name=name,
                description=description,
                time_limit_seconds=time_limit_seconds,
                status=status,
                category=category,
                tag_ids=tag_ids,
                tag_names=tag_names,
            ),
        )

    def set_status(self, task_id: int, status: str) -> Optional[Task]:
        return self._run("change status", lambda: self._tasks.set_status(task_id, status))

    def set_category(self, task_id: int, category: str) -> Optional[Task]:
        return self._run("change category", lambda: self._tasks.set_category(task_id, category))

    def set_tags(self, task_id: int, *, tag_ids=None, tag_names=None) -> Optional[Task]:
        return self._run("change tags", lambda: self._tasks.set_tags(task_id, tag_ids=tag_ids, tag_names=tag_names))

    def apply_edit(self, task_id: int, edit) -> Optional[Task]:
        """Save an editor form (TaskEdit); a changed total goes through the timer so a live clock re-seeds."""
        if edit.total_seconds < 0:
            self._fail("edit task", ValidationError("total time must not be negative"))
            return None
        task = self.update_task(
            task_id,
            name=edit.name,
            description=edit.description,
            time_limit_seconds=edit.time_limit_seconds,
            status=edit.status,
            category=edit.category,
            tag_names=edit.tag_names,
        )
        if task is None or task.total_seconds == edit.total_seconds:
            return task
        result = self._timer.set_total_time(task_id, edit.total_seconds)
        if result is None:
            return None
        self.reload()
        return result.task

    def archive_task(self, task_id: int) -> Optional[Task]:
        return self._run("archive task", lambda: self._tasks.archive_task(task_id))

    def unarchive_task(self, task_id: int) -> Optional[Task]:
        return self._run("unarchive task", lambda: self._tasks.unarchive_task(task_id))

    def delete_task(self, task_id: int) -> bool:
        task = self._tasks.get_task(task_id)
        if task is None:
            self.errorRaised.emit(f"task {task_id} not found")
            return False
        if task.is_running:
            self._timer.stop(task_id)
        if self._workspace is not None:
            self._workspace.archive(task_id)
        try:
            self._tasks.delete_task(task_id)
        except TickTaskError as exc:
            self._fail("delete task", exc)
            return False
        self.taskDeleted.emit(task_id)
        self.reload()
        return True

    def delete_tag(self, tag_id: int) -> bool:
        try:
            ok = self._tags.delete_tag(tag_id)
        except TickTaskError as exc:
            self._fail("delete tag", exc)
            return False
        if ok:
            self.reload()
        return ok

    # ---- internals
    def _run(self, action: str, op) -> Optional[Task]:
        try:
            task = op()
        except TickTaskError as exc:
            self._fail(action, exc)
            self.reload()
            return None
        self.taskChanged.emit(task)
        if self._workspace is not None:
            self._workspace.push(task)
        self.reload()
        return task

    def _fail(self, action: str, exc: TickTaskError) -> None:
        log.warning("Could not %s: %s", action, exc)
        self.errorRaised.emit(str(exc))
