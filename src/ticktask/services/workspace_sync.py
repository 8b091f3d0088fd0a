# Rev 0.3.0

"""Best-effort mirror of task snapshots to an external workspace (Rev 0.3.0)

Pushes run on a worker thread after the local commit. Failures and timeouts
are logged and swallowed: the local mutation that triggered them stands.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from importlib.metadata import entry_points
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple

from ..models.entities import Task
from ..models.types import CATEGORY_LABELS, STATUS_LABELS

log = logging.getLogger(__name__)

# Distributions providing a workspace client register a zero-argument factory here
PUSHER_GROUP = "ticktask.workspace_pushers"


class WorkspacePusher(Protocol):
    """Remote end of the mirror. Keyed by the task's local id."""

    def push_task(self, local_id: int, properties: Dict[str, Any]) -> None: ...

    def archive_task(self, local_id: int) -> bool: ...


def load_pusher(name: Optional[str]) -> Optional[WorkspacePusher]:
    """Build the client registered under `name` in the ticktask.workspace_pushers group."""
    if not name:
        return None
    matches = [ep for ep in entry_points(group=PUSHER_GROUP) if ep.name == name]
    if not matches:
        log.warning("No workspace client named %r is installed; sync stays off", name)
        return None
    try:
        return matches[0].load()()
    except Exception:
        log.exception("Could not load workspace client %r; sync stays off", name)
        return None


def _minutes(seconds: Optional[int]) -> Optional[float]:
    if seconds is None:
        return None
    return round(seconds / 60, 2)


def task_properties(task: Task) -> Dict[str, Any]:
    """Flat, remote-friendly view of a task."""
    return {
        "local_id": task.id,
        "name": task.name,
        "description": task.description or "",
        "status": STATUS_LABELS.get(task.status, "Inbox"),
        "category": CATEGORY_LABELS.get(task.category, "Normal"),
        "tags": [t.name for t in task.tags],
        "total_minutes": _minutes(task.total_seconds),
        "limit_minutes": _minutes(task.time_limit_seconds),
        "running": task.is_running,
        "archived": task.is_archived,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


class WorkspaceSync:
    def __init__(
        self,
        pusher: Optional[WorkspacePusher] = None,
        *,
        enabled: bool = True,
        auto_push: bool = True,
        timeout_seconds: float = 10.0,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self._pusher = pusher
        self._enabled = enabled
        self._auto_push = auto_push
        self._timeout = timeout_seconds
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="workspace-sync")

    @property
    def active(self) -> bool:
        return self._enabled and self._pusher is not None

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    # -------------------------
    # Pushes
    # -------------------------
    def push(self, task: Optional[Task]) -> Optional[Future]:
        """Queue a snapshot push. Returns the future (resolves to True/False) or None when inactive
        or when only manual sync_all() runs are wanted."""
        if task is None or not self.active or not self._auto_push:
            return None
        props = task_properties(task)
        return self._executor.submit(self._safe_push, task.id, props)

    def archive(self, task_id: int) -> bool:
        """Archive the remote copy before a local delete; waits at most the timeout."""
        if not self.active:
            return False
        future = self._executor.submit(self._safe_archive, task_id)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            log.warning("Remote archive of task %s timed out after %ss", task_id, self._timeout)
            return False

    def sync_all(self, tasks: Iterable[Task]) -> Tuple[int, int]:
        """Push every task and wait; returns (success, failed)."""
        if not self.active:
            return (0, 0)
        futures = [self._executor.submit(self._safe_push, t.id, task_properties(t)) for t in tasks]
        success = failed = 0
        for f in futures:
            try:
                ok = f.result(timeout=self._timeout)
            except FutureTimeout:
                ok = False
            if ok:
                success += 1
            else:
                failed += 1
        log.info("Workspace sync finished: %s ok, %s failed", success, failed)
        return (success, failed)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    # -------------------------
    # Internals (worker thread)
    # -------------------------
    def _safe_push(self, local_id: int, props: Dict[str, Any]) -> bool:
        try:
            self._pusher.push_task(local_id, props)
        except Exception:
            log.exception("Workspace push failed for task %s", local_id)
            return False
        log.debug("Workspace push ok for task %s", local_id)
        return True

    def _safe_archive(self, local_id: int) -> bool:
        try:
            return bool(self._pusher.archive_task(local_id))
        except Exception:
            log.exception("Workspace archive failed for task %s", local_id)
            return False
