# tests/test_session_engine.py
from __future__ import annotations

import random

import pytest

from ticktask.errors import NotFoundError, ValidationError
from ticktask.services.session_engine import SessionEngine


class RecordingWorkspace:
    def __init__(self):
        self.pushed = []

    def push(self, task):
        self.pushed.append((task.id, task.total_seconds))


def test_start_returns_live_snapshot(engine, make_task):
    task = make_task("Focus", time_limit_seconds=600)
    state = engine.start(task.id)
    assert state.task.is_running is True
    assert state.active.task_id == task.id
    assert state.active.base_seconds == 0
    assert state.active.time_limit_seconds == 600
    assert state.stopped is None


def test_start_switches_from_running_task(engine, tasks_repo, make_task, clock):
    a, b = make_task("A"), make_task("B")
    engine.start(a.id)
    clock.advance(90)
    state = engine.start(b.id)
    assert state.stopped.id == a.id
    assert state.stopped.total_seconds == 90
    assert state.stopped.is_running is False
    assert tasks_repo.running_task_ids() == [b.id]


def test_start_same_task_twice_is_harmless(engine, entries_repo, make_task, clock):
    task = make_task()
    engine.start(task.id)
    clock.advance(5)
    state = engine.start(task.id)
    assert state.stopped is None
    assert entries_repo.count_open_entries() == 1


def test_start_missing_task_leaves_prior_session(engine, tasks_repo, entries_repo, make_task):
    a = make_task("A")
    engine.start(a.id)
    with pytest.raises(NotFoundError):
        engine.start(999)
    assert tasks_repo.running_task_ids() == [a.id]
    assert entries_repo.get_active_entry(a.id) is not None


def test_stop_reports_total_and_is_idempotent(engine, make_task, clock):
    task = make_task()
    engine.start(task.id)
    clock.advance(90)
    state = engine.stop(task.id)
    assert state.task.total_seconds == 90
    assert state.active is None
    clock.advance(10)
    assert engine.stop(task.id).task.total_seconds == 90


def test_current_reflects_store(engine, make_task, clock):
    assert engine.current().active is None
    task = make_task()
    engine.start(task.id)
    clock.advance(42)
    current = engine.current()
    assert current.task.id == task.id
    assert current.active.display_seconds(clock()) == 42


def test_manual_time_while_running(engine, make_task, clock):
    task = make_task()
    engine.start(task.id)
    clock.advance(60)
    state = engine.add_manual_time(task.id, 1800)
    assert state.task.total_seconds == 1800
    assert state.active.base_seconds == 1800
    assert state.active.display_seconds(clock()) == 1860
    assert engine.stop(task.id).task.total_seconds == 1860


def test_manual_time_validation(engine, make_task):
    task = make_task()
    with pytest.raises(ValidationError):
        engine.add_manual_time(task.id, -5)
    assert engine.add_manual_time(task.id, 0).task.total_seconds == 0


def test_reset_clears_history(engine, make_task, clock):
    task = make_task()
    engine.start(task.id)
    clock.advance(30)
    state = engine.reset(task.id)
    assert state.task.total_seconds == 0
    assert state.active is None
    assert engine.time_entries(task.id) == []


def test_time_entries_missing_task(engine):
    with pytest.raises(NotFoundError):
        engine.time_entries(1)


def test_pushes_only_when_something_changed(db, tasks_repo, entries_repo, make_task, clock):
    workspace = RecordingWorkspace()
    engine = SessionEngine(db, tasks_repo, entries_repo, workspace)
    a, b = make_task("A"), make_task("B")
    engine.start(a.id)
    assert workspace.pushed == []
    clock.advance(20)
    engine.start(b.id)
    assert workspace.pushed == [(a.id, 20)]
    clock.advance(10)
    engine.stop(b.id)
    engine.stop(b.id)
    assert workspace.pushed == [(a.id, 20), (b.id, 10)]
    engine.add_manual_time(a.id, 0)
    assert len(workspace.pushed) == 2


def test_random_operations_keep_single_running_task(engine, tasks_repo, entries_repo, make_task, clock):
    rng = random.Random(20260302)
    ids = [make_task(f"T{i}").id for i in range(4)]
    for _ in range(200):
        tid = rng.choice(ids)
        op = rng.choice(["start", "start", "stop", "reset", "manual"])
        if op == "start":
            engine.start(tid)
        elif op == "stop":
            engine.stop(tid)
        elif op == "reset":
            engine.reset(tid)
        else:
            engine.add_manual_time(tid, rng.randint(0, 120))
        clock.advance(rng.randint(0, 30))
        running = tasks_repo.running_task_ids()
        assert len(running) <= 1
        assert entries_repo.count_open_entries() == len(running)
        for task in tasks_repo.list_tasks():
            assert task.total_seconds >= 0
