# src/weekboard/server/task_repo.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from ..tasks.task_models import Task, TaskCategory, utcnow

logger = logging.getLogger(__name__)

# python field name -> column, for PATCH-able fields
_UPDATABLE_COLUMNS = {
    "title": "title",
    "description": "description",
    "scheduled_date": "scheduled_date",
    "category": "category",
    "position": "position",
}


class SqliteTaskRepo:
    """
    SQLite system of record for the task API server.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Every query is scoped to one user id.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("SqliteTaskRepo ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    scheduled_date TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    category TEXT NOT NULL DEFAULT 'general',
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskRepo migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("position", "INTEGER NOT NULL DEFAULT 0")
            add_col("category", "TEXT NOT NULL DEFAULT 'general'")
            add_col("is_completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("completed_at", "TEXT")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks(user_id, scheduled_date, position)"
            )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        created_at = datetime.fromisoformat(row["created_at"])
        return Task(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=str(row["title"] or ""),
            description=row["description"],
            scheduled_date=str(row["scheduled_date"]),
            position=int(row["position"] or 0),
            category=TaskCategory.from_wire(row["category"]),
            is_completed=bool(row["is_completed"]),
            completed_at=datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None,
            created_at=created_at,
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else created_at,
        )

    def _get(self, conn: sqlite3.Connection, user_id: str, task_id: str) -> Task | None:
        row = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
        ).fetchone()
        return self._row_to_task(row) if row else None

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def get_task(self, user_id: str, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            return self._get(conn, user_id, task_id)
        finally:
            conn.close()

    def list_tasks(self, user_id: str, *, start: str, end: str) -> list[Task]:
        """Tasks with start <= scheduled_date <= end, ordered by position."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE user_id = ?
                  AND scheduled_date >= ?
                  AND scheduled_date <= ?
                ORDER BY position ASC, created_at ASC
                """,
                (user_id, start, end),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def create_task(
        self,
        user_id: str,
        *,
        title: str,
        scheduled_date: str,
        description: str | None = None,
        category: str | None = None,
    ) -> Task:
        """Insert at the end of the day: position = max(position) + 1, or 0."""
        if not title or not title.strip():
            raise ValueError("title is required")
        if not scheduled_date:
            raise ValueError("scheduled_date is required")

        now = utcnow().isoformat()
        task_id = uuid.uuid4().hex
        cat = TaskCategory.from_wire(category).value

        conn = self._get_conn()
        try:
            (max_pos,) = conn.execute(
                "SELECT MAX(position) FROM tasks WHERE user_id = ? AND scheduled_date = ?",
                (user_id, scheduled_date),
            ).fetchone()
            position = 0 if max_pos is None else int(max_pos) + 1

            conn.execute(
                """
                INSERT INTO tasks(
                    id, user_id, title, description, scheduled_date,
                    position, category, is_completed, completed_at,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, NULL, ?, ?)
                """,
                (task_id, user_id, title, description or None, scheduled_date, position, cat, now, now),
            )
            conn.commit()
            task = self._get(conn, user_id, task_id)
            if task is None:
                raise RuntimeError("SQLite lost the row it just inserted")
            logger.debug("Task added id=%s date=%s position=%s", task_id, scheduled_date, position)
            return task
        finally:
            conn.close()

    def update_task(self, user_id: str, task_id: str, fields: dict[str, Any]) -> Task | None:
        """
        Apply a partial update; None when the task does not exist for this user.

        is_completed=True stamps completed_at, False clears it. updated_at always moves.
        """
        sets: list[str] = []
        params: list[Any] = []
        now = utcnow().isoformat()

        for name, column in _UPDATABLE_COLUMNS.items():
            if name not in fields:
                continue
            value = fields[name]
            if value is None and name != "description":
                continue
            if name == "category":
                value = TaskCategory.from_wire(value).value
            elif name == "position":
                value = int(value)
            sets.append(f"{column} = ?")
            params.append(value)

        if "is_completed" in fields:
            done = bool(fields["is_completed"])
            sets.append("is_completed = ?")
            params.append(1 if done else 0)
            sets.append("completed_at = ?")
            params.append(now if done else None)

        sets.append("updated_at = ?")
        params.append(now)
        params.extend([task_id, user_id])

        sql = f"UPDATE tasks SET {', '.join(sets)} WHERE id = ? AND user_id = ?"

        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            if cur.rowcount != 1:
                return None
            return self._get(conn, user_id, task_id)
        finally:
            conn.close()

    def delete_task(self, user_id: str, task_id: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def set_position(self, user_id: str, task_id: str, position: int, *, now: datetime) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET position = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                (int(position), now.isoformat(), task_id, user_id),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()
