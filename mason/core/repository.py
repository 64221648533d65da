"""
FILE: mason/core/repository.py
PURPOSE: Task persistence on SQLite (the store behind the view-model)
EXPORTS:
  - TaskRepository
    - fetch_all() -> List[Task]
    - get(task_id) -> Task | None
    - count() -> int
    - insert(task) -> Task
    - update(task) -> None
    - delete(task) -> None
    - delete_many(tasks) -> None
DEPENDENCIES:
  - sqlite3 (stdlib)
  - pathlib (stdlib)
  - logging (stdlib)
  - mason.core.models (Task)
  - mason.core.exceptions (TaskNotFoundError, StoreWriteError, StoreReadError)
NOTES:
  - Database stored at ~/.mason/mason.db unless a path is given
  - Auto-creates directory and schema on first connection
  - Every call opens its own connection and closes it again
  - Writes run in a single transaction; failures roll back and raise StoreWriteError
  - Returns domain objects (Task), never raw rows
"""

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from .constants import DB_DIR, DB_PATH
from .models import Task
from .exceptions import TaskNotFoundError, StoreWriteError, StoreReadError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL CHECK (length(trim(name)) > 0),
    due_date TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks (due_date);
"""


def _format_due(task: Task) -> str:
    # Fixed width keeps lexicographic order equal to chronological order
    return task.due_date.isoformat(timespec="microseconds")


class TaskRepository:
    """
    SQLite task store.

    fetch_all() is the only listing query; filtering by time window happens
    in mason.core.categorize on the returned list.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        # Module defaults are read here so tests can monkeypatch them
        self.db_path = Path(db_path) if db_path else DB_PATH
        self._db_dir = self.db_path.parent if db_path else DB_DIR
        logger.debug("TaskRepository db=%s", self.db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        """
        Get SQLite connection to the Mason database.

        Creates the database directory if it doesn't exist.
        Enables row_factory for dict-like row access.
        Initializes the schema (safe to run every time).
        """
        self._db_dir.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            conn.executescript(SCHEMA_SQL)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @contextlib.contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = self._get_conn()
            yield conn
        except (sqlite3.Error, OSError) as e:
            raise StoreReadError(str(e)) from e
        finally:
            if conn is not None:
                conn.close()

    @staticmethod
    def _rollback(conn: Optional[sqlite3.Connection]) -> None:
        # The original error is what gets reported
        if conn is None:
            return
        try:
            conn.rollback()
        except sqlite3.Error as e:
            logger.warning("Rollback failed: %s", e)

    @contextlib.contextmanager
    def _writing(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = self._get_conn()
            yield conn
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            self._rollback(conn)
            raise StoreWriteError(str(e)) from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            if conn is not None:
                conn.close()

    # ---- reads ----

    def fetch_all(self) -> List[Task]:
        """
        List all tasks.

        Returns:
            All tasks ordered by due date (latest first), newest id first on ties

        Raises:
            StoreReadError: If the database can't be read
        """
        with self._reading() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks ORDER BY due_date DESC, id DESC"
            ).fetchall()

        return [Task.from_row(row) for row in rows]

    def get(self, task_id: int) -> Optional[Task]:
        """
        Fetch single task by ID.

        Returns:
            Task object if found, None otherwise
        """
        with self._reading() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()

        return Task.from_row(row) if row else None

    def count(self) -> int:
        with self._reading() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM tasks").fetchone()
        return int(row["n"])

    # ---- writes ----

    def insert(self, task: Task) -> Task:
        """
        Persist a new task.

        Args:
            task: Unsaved task (its id is ignored)

        Returns:
            A new Task object carrying the assigned id

        Raises:
            StoreWriteError: If the insert can't be committed
        """
        with self._writing() as conn:
            cursor = conn.execute(
                "INSERT INTO tasks (name, due_date, completed) VALUES (?, ?, ?)",
                (task.name, _format_due(task), int(task.completed)),
            )
            task_id = cursor.lastrowid

        logger.debug("Inserted task %s", task_id)
        return Task(
            id=task_id,
            name=task.name,
            due_date=task.due_date,
            completed=task.completed,
        )

    def update(self, task: Task) -> None:
        """
        Write all fields of an existing task.

        Raises:
            TaskNotFoundError: If no row has task.id
            StoreWriteError: If the update can't be committed
        """
        with self._writing() as conn:
            cursor = conn.execute(
                """
                UPDATE tasks
                SET name = ?,
                    due_date = ?,
                    completed = ?
                WHERE id = ?
                """,
                (task.name, _format_due(task), int(task.completed), task.id),
            )
            if cursor.rowcount == 0:
                raise TaskNotFoundError(task.id)

        logger.debug("Updated task %s", task.id)

    def delete(self, task: Task) -> None:
        """
        Delete task permanently.

        Raises:
            TaskNotFoundError: If task doesn't exist
            StoreWriteError: If the delete can't be committed
        """
        self.delete_many([task])

    def delete_many(self, tasks: Iterable[Task]) -> None:
        """
        Delete several tasks in one transaction.

        Either every task is removed or none is. A missing id aborts the
        whole batch with TaskNotFoundError.
        """
        task_ids = [t.id for t in tasks]
        if not task_ids:
            return

        with self._writing() as conn:
            for task_id in task_ids:
                cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
                if cursor.rowcount == 0:
                    raise TaskNotFoundError(task_id)

        logger.debug("Deleted tasks %s", task_ids)
