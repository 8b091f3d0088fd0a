# ticktask application context
# Rev 0.3.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .repositories.db import Database
from .repositories.sqlite_stats_repository import SQLiteStatsRepository
from .repositories.sqlite_tag_repository import SQLiteTagRepository
from .repositories.sqlite_task_repository import SQLiteTaskRepository
from .repositories.sqlite_time_entry_repository import SQLiteTimeEntryRepository
from .services.session_engine import SessionEngine
from .services.time_alerts import DebouncedNotifier, TimeAlertWatcher
from .services.workspace_sync import WorkspacePusher, WorkspaceSync, load_pusher
from .utils.config import defaults, save_settings
from .utils.logging_setup import get_logger
from .utils.timeutil import Clock, to_iso, utc_now


@dataclass
class AppContext:
    """Central container for shared app resources (Qt-free)."""
    db_path: Path
    db: Database
    settings: Dict[str, Any]
    tags: SQLiteTagRepository
    tasks: SQLiteTaskRepository
    entries: SQLiteTimeEntryRepository
    stats: SQLiteStatsRepository
    workspace: WorkspaceSync
    engine: SessionEngine
    alerts: TimeAlertWatcher
    settings_path: Optional[Path] = None

    @classmethod
    def create(
        cls,
        db_path: Path,
        *,
        settings: Optional[Dict[str, Any]] = None,
        settings_path: Optional[Path] = None,
        pusher: Optional[WorkspacePusher] = None,
        deliver: Optional[Callable[[str, str], None]] = None,
        clock: Clock = utc_now,
    ) -> "AppContext":
        """Open the DB, run migrations, build repositories and services."""
        log = get_logger("AppContext")
        settings = settings or defaults()
        db = Database(db_path)
        db.run_migrations()

        tags = SQLiteTagRepository(db, clock=clock)
        tasks = SQLiteTaskRepository(db, tags, clock=clock)
        entries = SQLiteTimeEntryRepository(db, clock=clock)
        stats = SQLiteStatsRepository(db, clock=clock)

        sync_cfg = settings["sync"]
        if pusher is None and sync_cfg["enabled"]:
            pusher = load_pusher(sync_cfg.get("pusher"))
        workspace = WorkspaceSync(
            pusher,
            enabled=bool(sync_cfg["enabled"]),
            auto_push=bool(sync_cfg["auto_sync"]),
            timeout_seconds=float(sync_cfg["timeout_seconds"]),
        )
        engine = SessionEngine(db, tasks, entries, workspace)

        note_cfg = settings["notifications"]
        notifier = DebouncedNotifier(
            deliver if (deliver and note_cfg["enabled"]) else (lambda title, body: None),
            debounce_seconds=float(note_cfg["debounce_seconds"]),
            clock=clock,
        )
        alerts = TimeAlertWatcher(
            notifier,
            leak_threshold_seconds=int(note_cfg["time_leak_threshold_seconds"]),
            leak_nudge_seconds=int(note_cfg["time_leak_nudge_seconds"]),
        )
        log.info("AppContext initialized with DB=%s (workspace sync %s)", db_path, "on" if workspace.active else "off")
        return cls(
            db_path=Path(db_path), db=db, settings=settings, tags=tags, tasks=tasks,
            entries=entries, stats=stats, workspace=workspace, engine=engine, alerts=alerts,
            settings_path=settings_path,
        )

    def sync_all(self) -> Tuple[int, int]:
        """Push every task, archived ones included, and remember when it happened."""
        tasks = self.tasks.list_tasks(include_archived=False) + self.tasks.list_tasks(include_archived=True)
        result = self.workspace.sync_all(tasks)
        if self.workspace.active:
            self.settings["sync"]["last_sync"] = to_iso(utc_now())
            if self.settings_path is not None:
                save_settings(self.settings, self.settings_path)
        return result

    def close(self) -> None:
        self.workspace.shutdown()
        self.db.close()
