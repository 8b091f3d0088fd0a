# Rev 0.3.0

"""SQLite connection, transactions & migration runner (Rev 0.3.0)
- WAL mode, foreign_keys=ON, sqlite3.Row rows
- Autocommit connection; multi-statement work goes through transaction()
- Applies SQL files in repositories/migrations in lexical order
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from ..errors import TransactionFailure
from ..utils.paths import DB_PATH, MIGRATIONS_DIR

log = logging.getLogger(__name__)


class Database:
    def __init__(self, path: Path | str = DB_PATH) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self._depth = 0
        log.info("SQLite open %s", self.path)

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Atomic unit of work. Nested calls join the outermost transaction."""
        outermost = self._depth == 0
        if outermost:
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise TransactionFailure(str(exc)) from exc
        self._depth += 1
        try:
            yield self.conn
        except sqlite3.Error as exc:
            self._depth -= 1
            if not outermost:
                raise
            self._rollback()
            log.error("Transaction rolled back: %s", exc)
            raise TransactionFailure(str(exc)) from exc
        except BaseException:
            self._depth -= 1
            if outermost:
                self._rollback()
            raise
        self._depth -= 1
        if not outermost:
            return
        try:
            self.conn.execute("COMMIT")
        except sqlite3.Error as exc:
            # deferred constraints and I/O errors surface at commit time
            self._rollback()
            log.error("Commit failed, transaction rolled back: %s", exc)
            raise TransactionFailure(str(exc)) from exc

    def _rollback(self) -> None:
        # sqlite may already have rolled back on its own (e.g. SQLITE_FULL)
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK")

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r[0] for r in rows}

    def apply_sql(self, sql: str) -> None:
        self.conn.executescript(sql)

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        applied = self.applied()
        to_apply = [p for p in sorted(migrations_dir.glob("*.sql")) if p.name not in applied]
        for p in to_apply:
            sql = p.read_text(encoding="utf-8")
            self.apply_sql(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (p.name, datetime.now(timezone.utc).isoformat()),
            )
            log.info("Applied migration %s", p.name)
        return [p.name for p in to_apply]
