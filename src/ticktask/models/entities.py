# Rev 0.3.0
"""Entities hydrated from the tasks / time_entries / tags tables."""
from __future__ import annotations
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from ..utils.timeutil import elapsed_seconds, parse_iso


@dataclass(frozen=True)
class Tag:
    id: int
    name: str
    color: str
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Tag":
        return cls(id=row["id"], name=row["name"], color=row["color"], created_at=row["created_at"])


@dataclass(frozen=True)
class Task:
    id: int
    name: str
    description: Optional[str] = None
    total_seconds: int = 0
    time_limit_seconds: Optional[int] = None
    status: str = "inbox"
    category: str = "normal"
    is_running: bool = False
    is_archived: bool = False
    created_at: str = ""
    updated_at: str = ""
    tags: Tuple[Tag, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: sqlite3.Row, tags: List[Tag] | Tuple[Tag, ...] = ()) -> "Task":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            total_seconds=int(row["total_seconds"] or 0),
            time_limit_seconds=row["time_limit_seconds"],
            status=row["status"],
            category=row["category"] or "normal",
            is_running=bool(row["is_running"]),
            is_archived=bool(row["is_archived"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            tags=tuple(tags),
        )

    @property
    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]


@dataclass(frozen=True)
class TimeEntry:
    id: int
    task_id: int
    start_time: str
    end_time: Optional[str]
    duration_seconds: Optional[int]

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "TimeEntry":
        return cls(
            id=row["id"],
            task_id=row["task_id"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            duration_seconds=row["duration_seconds"],
        )

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class TimerSnapshot:
    """Seed for a live clock: the accumulated total plus where the open session began."""
    task_id: int
    task_name: str
    base_seconds: int
    start_time: datetime
    time_limit_seconds: Optional[int] = None
    category: str = "normal"

    @classmethod
    def from_task(cls, task: Task, entry: TimeEntry) -> "TimerSnapshot":
        return cls(
            task_id=task.id,
            task_name=task.name,
            base_seconds=task.total_seconds,
            start_time=parse_iso(entry.start_time),
            time_limit_seconds=task.time_limit_seconds,
            category=task.category,
        )

    @property
    def seed_key(self) -> Tuple[int, datetime]:
        return (self.task_id, self.start_time)

    def display_seconds(self, now: datetime) -> int:
        return self.base_seconds + elapsed_seconds(self.start_time, now)


@dataclass(frozen=True)
class SessionState:
    """What a session operation returns instead of mutating shared 'active task' state.

    task    -- the task the call acted on, re-read after commit
    active  -- snapshot of the store-wide running session, or None
    stopped -- task implicitly stopped because another one started
    """
    task: Optional[Task] = None
    active: Optional[TimerSnapshot] = None
    stopped: Optional[Task] = None
