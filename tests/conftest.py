# Rev 0.3.0

"""Pytest fixtures for ticktask (Rev 0.3.0)"""
from __future__ import annotations
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication

from ticktask.repositories.db import Database
from ticktask.repositories.sqlite_stats_repository import SQLiteStatsRepository
from ticktask.repositories.sqlite_tag_repository import SQLiteTagRepository
from ticktask.repositories.sqlite_task_repository import SQLiteTaskRepository
from ticktask.repositories.sqlite_time_entry_repository import SQLiteTimeEntryRepository
from ticktask.services.session_engine import SessionEngine


class FakeClock:
    """Settable UTC clock; advance() moves it forward (or back, with negatives)."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def tags_repo(db, clock) -> SQLiteTagRepository:
    return SQLiteTagRepository(db, clock=clock)


@pytest.fixture()
def tasks_repo(db, tags_repo, clock) -> SQLiteTaskRepository:
    return SQLiteTaskRepository(db, tags_repo, clock=clock)


@pytest.fixture()
def entries_repo(db, clock) -> SQLiteTimeEntryRepository:
    return SQLiteTimeEntryRepository(db, clock=clock)


@pytest.fixture()
def stats_repo(db, clock) -> SQLiteStatsRepository:
    return SQLiteStatsRepository(db, clock=clock)


@pytest.fixture()
def engine(db, tasks_repo, entries_repo) -> SessionEngine:
    return SessionEngine(db, tasks_repo, entries_repo)


@pytest.fixture()
def make_task(tasks_repo):
    def _make(name: str = "T", **kw):
        return tasks_repo.create_task(name=name, **kw)
    return _make
