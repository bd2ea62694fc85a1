"""Durable storage layer for roadmap plans, weeks, and tasks."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence

from .schema import Plan, Task, Week

DEFAULT_DB_PATH = Path("data/glowplan.sqlite")
LOGGER = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the backing database cannot be read or written."""


def _as_iso(timestamp: datetime) -> str:
    """Serialise a timestamp to a timezone-aware ISO 8601 string."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).isoformat()


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp produced by `_as_iso`."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def _load_json(value: Optional[str], *, default: Any) -> Any:
    """Decode JSON columns while falling back to the provided default."""
    if not value:
        return default
    data = json.loads(value)
    if data is None:
        return default
    return data


class RoadmapStore:
    """SQLite-backed persistence for roadmap plans.

    Every public method is safe to call from multiple threads. Writes that
    must land together go through :meth:`transaction`, which opens a
    ``BEGIN IMMEDIATE`` transaction so concurrent writers on the same
    database file are serialised at the storage level as well.
    """

    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self.db_path = self.db_path.resolve()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        self._conn: Optional[sqlite3.Connection] = self._open_connection()
        self._bootstrap()

    def close(self) -> None:
        if getattr(self, "_conn", None) is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None

    def __enter__(self) -> "RoadmapStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _open_connection(self) -> sqlite3.Connection:
        try:
            connection = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as error:
            raise StoreError(f"Unable to open roadmap database {self.db_path}: {error}") from error
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RoadmapStore":
        paths = config.get("paths") or {}
        db_path = paths.get("db_path")
        if db_path:
            return cls(Path(db_path))

        data_path = paths.get("data") or "data"
        return cls(Path(data_path) / "glowplan.sqlite")

    def _bootstrap(self) -> None:
        script = """
            CREATE TABLE IF NOT EXISTS plans (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL UNIQUE,
                current_week_number INTEGER NOT NULL DEFAULT 1,
                source_analysis_id TEXT,
                created_at TEXT NOT NULL,
                last_updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS weeks (
                id TEXT PRIMARY KEY,
                plan_id TEXT NOT NULL,
                week_number INTEGER NOT NULL,
                title TEXT NOT NULL,
                summary TEXT NOT NULL,
                unlocked_at TEXT NOT NULL,
                completed_at TEXT,
                UNIQUE(plan_id, week_number),
                FOREIGN KEY(plan_id) REFERENCES plans(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                week_id TEXT NOT NULL,
                title TEXT NOT NULL,
                body TEXT NOT NULL,
                category TEXT NOT NULL,
                timeframe TEXT NOT NULL,
                priority INTEGER NOT NULL DEFAULT 0,
                product_suggestions TEXT NOT NULL,
                context TEXT NOT NULL,
                is_completed INTEGER NOT NULL DEFAULT 0,
                completed_at TEXT,
                FOREIGN KEY(week_id) REFERENCES weeks(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_tasks_week_priority
                ON tasks(week_id, priority);
            """
        with self._lock:
            try:
                self._connection().executescript(script)
            except sqlite3.Error as error:
                raise StoreError(f"Unable to initialise roadmap schema: {error}") from error

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Roadmap store is closed.")
        return self._conn

    def _execute(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._connection().execute(query, params)
            except sqlite3.Error as error:
                raise StoreError(f"Roadmap database error: {error}") from error

    @contextmanager
    def transaction(self) -> Iterator["RoadmapStore"]:
        """Group reads and writes into one atomic unit.

        Nested calls join the outermost transaction. Any exception rolls the
        whole unit back and propagates; ``sqlite3`` failures surface as
        :class:`StoreError`.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                raise
            self._depth -= 1
            if outermost:
                try:
                    self._execute("COMMIT")
                except StoreError:
                    self._rollback()
                    raise

    def _rollback(self) -> None:
        conn = self._conn
        if conn is None or not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as error:
            LOGGER.warning("Rollback failed for %s: %s", self.db_path, error)

    # Plan operations -----------------------------------------------------------------
    def save_plan(self, plan: Plan) -> None:
        with self.transaction():
            self._execute(
                """
                INSERT INTO plans (
                    id, owner_id, current_week_number, source_analysis_id,
                    created_at, last_updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    current_week_number = excluded.current_week_number,
                    source_analysis_id = excluded.source_analysis_id,
                    last_updated_at = excluded.last_updated_at
                """,
                (
                    plan.id,
                    plan.owner_id,
                    plan.current_week_number,
                    plan.source_analysis_id,
                    _as_iso(plan.created_at),
                    _as_iso(plan.last_updated_at),
                ),
            )

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        row = self._execute("SELECT * FROM plans WHERE id = ?", (plan_id,)).fetchone()
        if not row:
            return None
        return self._row_to_plan(row)

    def get_plan_for_owner(self, owner_id: str) -> Optional[Plan]:
        row = self._execute(
            "SELECT * FROM plans WHERE owner_id = ? ORDER BY created_at DESC LIMIT 1",
            (owner_id,),
        ).fetchone()
        if not row:
            return None
        return self._row_to_plan(row)

    def delete_plan(self, plan_id: str) -> None:
        with self.transaction():
            self._execute("DELETE FROM plans WHERE id = ?", (plan_id,))

    # Week operations -----------------------------------------------------------------
    def add_week(self, week: Week, tasks: Sequence[Task]) -> None:
        """Insert a week together with its tasks."""
        with self.transaction():
            self._execute(
                """
                INSERT INTO weeks (
                    id, plan_id, week_number, title, summary, unlocked_at, completed_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    week.id,
                    week.plan_id,
                    week.week_number,
                    week.title,
                    week.summary,
                    _as_iso(week.unlocked_at),
                    _as_iso(week.completed_at) if week.completed_at else None,
                ),
            )
            for task in tasks:
                self._insert_task(task.model_copy(update={"week_id": week.id}))

    def get_week(self, week_id: str) -> Optional[Week]:
        row = self._execute("SELECT * FROM weeks WHERE id = ?", (week_id,)).fetchone()
        if not row:
            return None
        return self._row_to_week(row)

    def list_weeks(self, plan_id: str) -> List[Week]:
        cursor = self._execute(
            "SELECT * FROM weeks WHERE plan_id = ? ORDER BY week_number ASC",
            (plan_id,),
        )
        return [self._row_to_week(row) for row in cursor.fetchall()]

    def set_week_completed_at(self, week_id: str, completed_at: Optional[datetime]) -> None:
        with self.transaction():
            self._execute(
                "UPDATE weeks SET completed_at = ? WHERE id = ?",
                (_as_iso(completed_at) if completed_at else None, week_id),
            )

    # Task operations -----------------------------------------------------------------
    def _insert_task(self, task: Task) -> None:
        self._execute(
            """
            INSERT INTO tasks (
                id, week_id, title, body, category, timeframe, priority,
                product_suggestions, context, is_completed, completed_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.week_id,
                task.title,
                task.body,
                task.category,
                task.timeframe,
                task.priority,
                json.dumps(list(task.product_suggestions)),
                task.context,
                1 if task.is_completed else 0,
                _as_iso(task.completed_at) if task.completed_at else None,
            ),
        )

    def get_task(self, task_id: str) -> Optional[Task]:
        row = self._execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if not row:
            return None
        return self._row_to_task(row)

    def list_tasks(self, week_id: str) -> List[Task]:
        cursor = self._execute(
            "SELECT * FROM tasks WHERE week_id = ? ORDER BY priority ASC, rowid ASC",
            (week_id,),
        )
        return [self._row_to_task(row) for row in cursor.fetchall()]

    def update_task_completion(
        self,
        task_id: str,
        *,
        is_completed: bool,
        completed_at: Optional[datetime],
    ) -> None:
        with self.transaction():
            self._execute(
                "UPDATE tasks SET is_completed = ?, completed_at = ? WHERE id = ?",
                (
                    1 if is_completed else 0,
                    _as_iso(completed_at) if completed_at else None,
                    task_id,
                ),
            )

    # Row mapping ---------------------------------------------------------------------
    @staticmethod
    def _row_to_plan(row: sqlite3.Row) -> Plan:
        return Plan(
            id=row["id"],
            owner_id=row["owner_id"],
            current_week_number=max(1, int(row["current_week_number"])),
            source_analysis_id=row["source_analysis_id"],
            created_at=_from_iso(row["created_at"]),
            last_updated_at=_from_iso(row["last_updated_at"]),
        )

    @staticmethod
    def _row_to_week(row: sqlite3.Row) -> Week:
        return Week(
            id=row["id"],
            plan_id=row["plan_id"],
            week_number=row["week_number"],
            title=row["title"],
            summary=row["summary"],
            unlocked_at=_from_iso(row["unlocked_at"]),
            completed_at=_from_iso(row["completed_at"]),
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            week_id=row["week_id"],
            title=row["title"],
            body=row["body"],
            category=row["category"],
            timeframe=row["timeframe"],
            priority=row["priority"],
            product_suggestions=_load_json(row["product_suggestions"], default=[]),
            context=row["context"],
            is_completed=bool(row["is_completed"]),
            completed_at=_from_iso(row["completed_at"]),
        )
