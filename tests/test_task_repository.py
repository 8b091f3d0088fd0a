# tests/test_task_repository.py
from __future__ import annotations

import pytest

from ticktask.errors import NotFoundError, ValidationError


def test_create_task_defaults(make_task):
    task = make_task("Write report")
    assert task.id > 0
    assert task.name == "Write report"
    assert task.status == "inbox"
    assert task.category == "normal"
    assert task.total_seconds == 0
    assert task.is_running is False
    assert task.is_archived is False
    assert task.time_limit_seconds is None
    assert task.tags == ()


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_task_rejects_blank_name(tasks_repo, name):
    with pytest.raises(ValidationError):
        tasks_repo.create_task(name=name)
    assert tasks_repo.list_tasks() == []


def test_create_task_with_tag_ids_and_names_dedupes(tasks_repo, tags_repo):
    work = tags_repo.create_tag("Work", color="#22c55e")
    task = tasks_repo.create_task(name="T", tag_ids=[work.id], tag_names=["work", "Email"])
    assert [t.name for t in task.tags] == ["Email", "Work"]
    assert len(tags_repo.list_tags()) == 2


def test_create_task_with_unknown_tag_id_leaves_nothing_behind(tasks_repo):
    with pytest.raises(NotFoundError):
        tasks_repo.create_task(name="T", tag_ids=[999])
    assert tasks_repo.list_tasks() == []


def test_create_task_zero_limit_means_no_limit(make_task):
    assert make_task(time_limit_seconds=0).time_limit_seconds is None


def test_create_task_negative_limit_rejected(tasks_repo):
    with pytest.raises(ValidationError):
        tasks_repo.create_task(name="T", time_limit_seconds=-5)


def test_create_task_unknown_category_rejected(tasks_repo):
    with pytest.raises(ValidationError):
        tasks_repo.create_task(name="T", category="someday")


def test_get_task_missing(tasks_repo):
    assert tasks_repo.get_task(42) is None
    with pytest.raises(NotFoundError):
        tasks_repo.require_task(42)


def test_list_orders_by_most_recent_update(tasks_repo, make_task, clock):
    a = make_task("A")
    clock.advance(10)
    b = make_task("B")
    clock.advance(10)
    tasks_repo.update_task(a.id, description="touched")
    assert [t.id for t in tasks_repo.list_tasks()] == [a.id, b.id]


def test_update_applies_only_supplied_fields(tasks_repo, make_task, clock):
    task = make_task("A", description="keep me", time_limit_seconds=600)
    clock.advance(5)
    updated = tasks_repo.update_task(task.id, name="  Renamed  ")
    assert updated.name == "Renamed"
    assert updated.description == "keep me"
    assert updated.time_limit_seconds == 600
    assert updated.updated_at > task.updated_at


def test_update_can_clear_description_and_limit(tasks_repo, make_task):
    task = make_task("A", description="x", time_limit_seconds=60)
    updated = tasks_repo.update_task(task.id, description=None, time_limit_seconds=None)
    assert updated.description is None
    assert updated.time_limit_seconds is None


def test_update_without_fields_still_bumps_updated_at(tasks_repo, make_task, clock):
    task = make_task("A")
    clock.advance(60)
    assert tasks_repo.update_task(task.id).updated_at > task.updated_at


def test_update_missing_task(tasks_repo):
    with pytest.raises(NotFoundError):
        tasks_repo.update_task(7, name="x")


def test_update_empty_tag_ids_clears_only_that_task(tasks_repo, make_task):
    a = make_task("A", tag_names=["x", "y"])
    b = make_task("B", tag_names=["x"])
    cleared = tasks_repo.update_task(a.id, tag_ids=[])
    assert cleared.tags == ()
    assert [t.name for t in tasks_repo.require_task(b.id).tags] == ["x"]


def test_update_replaces_tag_set(tasks_repo, make_task):
    task = make_task("A", tag_names=["old"])
    updated = tasks_repo.update_task(task.id, tag_names=["new", "NEW"])
    assert [t.name for t in updated.tags] == ["new"]


def test_update_rolls_back_fields_when_tags_fail(tasks_repo, make_task):
    task = make_task("A", tag_names=["keep"])
    with pytest.raises(NotFoundError):
        tasks_repo.update_task(task.id, name="B", tag_ids=[12345])
    after = tasks_repo.require_task(task.id)
    assert after.name == "A"
    assert after.tag_names == ["keep"]


def test_status_and_category(tasks_repo, make_task):
    task = make_task()
    assert tasks_repo.set_status(task.id, "proximas").status == "proximas"
    assert tasks_repo.set_category(task.id, "time_leak").category == "time_leak"
    with pytest.raises(ValidationError):
        tasks_repo.set_status(task.id, "done")


def test_archive_roundtrip_excludes_from_active_listing(tasks_repo, make_task):
    task = make_task()
    archived = tasks_repo.archive_task(task.id)
    assert archived.is_archived is True
    assert tasks_repo.list_tasks() == []
    assert [t.id for t in tasks_repo.list_tasks(include_archived=True)] == [task.id]
    assert tasks_repo.unarchive_task(task.id).is_archived is False
    assert [t.id for t in tasks_repo.list_tasks()] == [task.id]


def test_archive_keeps_running_state(tasks_repo, entries_repo, make_task):
    task = make_task()
    entries_repo.start_session(task.id)
    assert tasks_repo.archive_task(task.id).is_running is True


def test_delete_cascades_to_sessions_and_tag_links(db, tasks_repo, tags_repo, entries_repo, make_task):
    task = make_task(tag_names=["x"])
    entries_repo.start_session(task.id)
    entries_repo.stop_session(task.id)
    assert tasks_repo.delete_task(task.id) is True
    assert tasks_repo.get_task(task.id) is None
    assert db.conn.execute("SELECT COUNT(1) FROM time_entries").fetchone()[0] == 0
    assert db.conn.execute("SELECT COUNT(1) FROM task_tags").fetchone()[0] == 0
    assert [t.name for t in tags_repo.list_tags()] == ["x"]


def test_delete_missing_task(tasks_repo):
    with pytest.raises(NotFoundError):
        tasks_repo.delete_task(3)
