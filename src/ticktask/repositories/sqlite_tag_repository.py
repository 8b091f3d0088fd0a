# Rev 0.3.0
from __future__ import annotations

import logging
import random
import sqlite3
from typing import Iterable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..models.entities import Tag
from ..models.types import TAG_COLORS
from ..utils.timeutil import Clock, to_iso, utc_now
from .db import Database

log = logging.getLogger(__name__)


def _clean_tag_id(raw) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid tag id {raw!r}") from None


class SQLiteTagRepository:
    """
    Tags plus the task_tags association.
    Names are stored as typed and matched case-insensitively (NOCASE index).
    """

    def __init__(self, db: Database, *, clock: Clock = utc_now, rng: Optional[random.Random] = None):
        self._db = db
        self._clock = clock
        self._rng = rng or random.Random()

    def _conn(self) -> sqlite3.Connection:
        return self._db.conn

    # -------------------------
    # Tags
    # -------------------------
    def create_tag(self, name: str, color: Optional[str] = None) -> Tag:
        clean = (name or "").strip()
        if not clean:
            raise ValidationError("tag name must not be empty")
        if self.get_tag_by_name(clean) is not None:
            raise ValidationError(f"tag {clean!r} already exists")
        with self._db.transaction() as con:
            cur = con.execute(
                "INSERT INTO tags(name, color, created_at) VALUES (?, ?, ?)",
                (clean, color or self._rng.choice(TAG_COLORS), to_iso(self._clock())),
            )
        return self.require_tag(int(cur.lastrowid))

    def get_tag(self, tag_id: int) -> Optional[Tag]:
        row = self._conn().execute(
            "SELECT id, name, color, created_at FROM tags WHERE id = ?", (tag_id,)
        ).fetchone()
        return Tag.from_row(row) if row else None

    def require_tag(self, tag_id: int) -> Tag:
        tag = self.get_tag(tag_id)
        if tag is None:
            raise NotFoundError("tag", tag_id)
        return tag

    def get_tag_by_name(self, name: str) -> Optional[Tag]:
        row = self._conn().execute(
            "SELECT id, name, color, created_at FROM tags WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        ).fetchone()
        return Tag.from_row(row) if row else None

    def get_or_create_tag(self, name: str) -> Tag:
        existing = self.get_tag_by_name(name)
        if existing is not None:
            return existing
        return self.create_tag(name)

    def list_tags(self) -> List[Tag]:
        rows = self._conn().execute(
            "SELECT id, name, color, created_at FROM tags ORDER BY name COLLATE NOCASE ASC"
        ).fetchall()
        return [Tag.from_row(r) for r in rows]

    def delete_tag(self, tag_id: int) -> bool:
        # task_tags rows go with it (ON DELETE CASCADE); tasks stay
        with self._db.transaction() as con:
            cur = con.execute("DELETE FROM tags WHERE id = ?", (tag_id,))
        return cur.rowcount > 0

    # -------------------------
    # Associations
    # -------------------------
    def resolve_tag_ids(
        self,
        tag_ids: Optional[Iterable[int]] = None,
        tag_names: Optional[Iterable[str]] = None,
    ) -> List[int]:
        """Ids as given (validated), then names get-or-created; order kept, duplicates dropped."""
        out: List[int] = []
        for raw in tag_ids or ():
            tid = _clean_tag_id(raw)
            self.require_tag(tid)
            if tid not in out:
                out.append(tid)
        for name in tag_names or ():
            if not (name or "").strip():
                continue
            tag = self.get_or_create_tag(name)
            if tag.id not in out:
                out.append(tag.id)
        return out

    def set_task_tags(self, task_id: int, tag_ids: Iterable[int]) -> None:
        with self._db.transaction() as con:
            con.execute("DELETE FROM task_tags WHERE task_id = ?", (task_id,))
            con.executemany(
                "INSERT INTO task_tags(task_id, tag_id) VALUES (?, ?)",
                [(task_id, tid) for tid in tag_ids],
            )

    def tags_for_task(self, task_id: int) -> List[Tag]:
        rows = self._conn().execute(
            """
            SELECT t.id, t.name, t.color, t.created_at
            FROM tags t
            JOIN task_tags tt ON tt.tag_id = t.id
            WHERE tt.task_id = ?
            ORDER BY t.name COLLATE NOCASE ASC
            """,
            (task_id,),
        ).fetchall()
        return [Tag.from_row(r) for r in rows]
