# tests/test_tag_repository.py
from __future__ import annotations

import pytest

from ticktask.errors import NotFoundError, ValidationError
from ticktask.models.types import TAG_COLORS


def test_create_tag_picks_palette_color(tags_repo):
    tag = tags_repo.create_tag("  Deep Work ")
    assert tag.name == "Deep Work"
    assert tag.color in TAG_COLORS


def test_get_or_create_is_case_insensitive_and_case_preserving(tags_repo):
    first = tags_repo.get_or_create_tag("Email")
    again = tags_repo.get_or_create_tag("EMAIL")
    assert again.id == first.id
    assert again.name == "Email"
    assert len(tags_repo.list_tags()) == 1


def test_create_duplicate_in_other_case_rejected(tags_repo):
    tags_repo.create_tag("email")
    with pytest.raises(ValidationError):
        tags_repo.create_tag("Email")


def test_blank_tag_rejected(tags_repo):
    with pytest.raises(ValidationError):
        tags_repo.create_tag("  ")


def test_list_tags_sorted_by_name(tags_repo):
    for name in ("beta", "Alpha", "gamma"):
        tags_repo.create_tag(name)
    assert [t.name for t in tags_repo.list_tags()] == ["Alpha", "beta", "gamma"]


def test_delete_tag_removes_links_not_tasks(tags_repo, tasks_repo, make_task):
    task = make_task(tag_names=["x", "y"])
    x = tags_repo.get_tag_by_name("x")
    assert tags_repo.delete_tag(x.id) is True
    assert tasks_repo.require_task(task.id).tag_names == ["y"]
    assert tags_repo.delete_tag(x.id) is False


def test_resolve_tag_ids_validates_ids(tags_repo):
    with pytest.raises(NotFoundError):
        tags_repo.resolve_tag_ids([77], None)


def test_resolve_tag_ids_skips_blank_names(tags_repo):
    ids = tags_repo.resolve_tag_ids(None, ["", "  ", "a"])
    assert len(ids) == 1


@pytest.mark.parametrize("bad", ["abc", None, "1.5"])
def test_resolve_tag_ids_rejects_non_numeric_ids(tags_repo, bad):
    with pytest.raises(ValidationError):
        tags_repo.resolve_tag_ids([bad], None)
