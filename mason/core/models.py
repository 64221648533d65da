"""
FILE: mason/core/models.py
PURPOSE: Domain models for tasks and task summaries
EXPORTS:
  - Task (dataclass)
  - TaskSummary (frozen dataclass)
  - TaskList (enum)
DEPENDENCIES:
  - dataclasses (stdlib)
  - datetime (stdlib)
  - enum (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - Task identity is its id; unsaved tasks (id=None) only equal themselves
  - Task has from_row() for SQLite row conversion and to_json() for output
  - Due dates stored as ISO-8601 strings
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import json

from .constants import (
    LIST_TODAY,
    LIST_WEEKLY,
    LIST_PREVIOUS,
    TODAY_EMPTY_TEXT,
    WEEKLY_EMPTY_TEXT,
    PREVIOUS_EMPTY_TEXT,
)


@dataclass(eq=False)
class Task:
    """A task with a name, a due date and a completion flag."""

    name: str
    due_date: datetime = field(default_factory=datetime.now)
    completed: bool = False
    id: Optional[int] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        if self.id is None:
            return id(self)
        return hash(("task", self.id))

    @classmethod
    def from_row(cls, row) -> "Task":
        """Convert SQLite row to Task object."""
        return cls(
            id=row["id"],
            name=row["name"],
            due_date=datetime.fromisoformat(row["due_date"]),
            completed=bool(row["completed"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert task to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "due_date": self.due_date.isoformat(),
            "completed": self.completed,
        }

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


class TaskList(Enum):
    """The three derived partitions a task can be shown in."""

    TODAY = LIST_TODAY
    WEEKLY = LIST_WEEKLY
    PREVIOUS = LIST_PREVIOUS


def _count_text(count: int, empty_text: str) -> str:
    return empty_text if count == 0 else str(count)


@dataclass(frozen=True)
class TaskSummary:
    """Counts per partition plus global totals."""

    today_count: int = 0
    today_completed: int = 0
    weekly_count: int = 0
    weekly_completed: int = 0
    previous_incomplete_count: int = 0
    total_count: int = 0
    total_completed: int = 0

    @property
    def completion_rate(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return self.total_completed / self.total_count

    @property
    def today_display_text(self) -> str:
        return _count_text(self.today_count, TODAY_EMPTY_TEXT)

    @property
    def weekly_display_text(self) -> str:
        return _count_text(self.weekly_count, WEEKLY_EMPTY_TEXT)

    @property
    def previous_display_text(self) -> str:
        return _count_text(self.previous_incomplete_count, PREVIOUS_EMPTY_TEXT)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "today_count": self.today_count,
            "today_completed": self.today_completed,
            "weekly_count": self.weekly_count,
            "weekly_completed": self.weekly_completed,
            "previous_incomplete_count": self.previous_incomplete_count,
            "total_count": self.total_count,
            "total_completed": self.total_completed,
            "completion_rate": self.completion_rate,
        }

    def to_json(self) -> str:
        """Serialize summary to JSON string."""
        return json.dumps(self.to_dict(), indent=2)
