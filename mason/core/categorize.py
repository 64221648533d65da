"""
FILE: mason/core/categorize.py
PURPOSE: Split tasks into today / this week / previous-incomplete and summarize them
EXPORTS:
  - Partitions (NamedTuple)
  - filter_today(tasks, reference_now) -> List[Task]
  - filter_this_week(tasks, reference_now) -> List[Task]
  - filter_previous_incomplete(tasks, reference_now) -> List[Task]
  - filter_by_search(tasks, query) -> List[Task]
  - categorize(tasks, reference_now) -> Partitions
  - summarize(tasks, reference_now) -> TaskSummary
DEPENDENCIES:
  - datetime (stdlib)
  - typing (type hints)
  - mason.core.models (Task, TaskSummary)
NOTES:
  - Pure functions: no clock reads, no I/O, inputs are never mutated
  - "Now" is always passed in as reference_now
  - Today and previous-incomplete never share a task; this-week overlaps both
"""

from datetime import datetime
from typing import Iterable, List, NamedTuple, Sequence

from .models import Task, TaskSummary


class Partitions(NamedTuple):
    today: List[Task]
    weekly: List[Task]
    previous: List[Task]


def _same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def _week_key(moment: datetime):
    # ISO week number paired with the calendar year, compared independently.
    # Around New Year these can disagree with the ISO year (Dec 31 can be week 1).
    return moment.isocalendar()[1], moment.year


def filter_today(tasks: Iterable[Task], reference_now: datetime) -> List[Task]:
    """
    Tasks due on the same calendar day as reference_now.

    Incomplete tasks come first, then completed ones. The sort is stable and
    keyed on the completion flag only, so input order is kept within each group.
    """
    todays = [t for t in tasks if _same_day(t.due_date, reference_now)]
    return sorted(todays, key=lambda t: t.completed)


def filter_this_week(tasks: Iterable[Task], reference_now: datetime) -> List[Task]:
    """Tasks whose week number and year both match reference_now's."""
    current = _week_key(reference_now)
    return [t for t in tasks if _week_key(t.due_date) == current]


def filter_previous_incomplete(
    tasks: Iterable[Task], reference_now: datetime
) -> List[Task]:
    """Incomplete tasks due before reference_now, excluding anything due today."""
    return [
        t
        for t in tasks
        if not _same_day(t.due_date, reference_now)
        and t.due_date < reference_now
        and not t.completed
    ]


def filter_by_search(tasks: Iterable[Task], query: str) -> List[Task]:
    """
    Case-insensitive substring match on task name.

    An empty query returns every task unchanged (as a new list).
    """
    if not query:
        return list(tasks)
    needle = query.casefold()
    return [t for t in tasks if needle in t.name.casefold()]


def categorize(tasks: Sequence[Task], reference_now: datetime) -> Partitions:
    return Partitions(
        today=filter_today(tasks, reference_now),
        weekly=filter_this_week(tasks, reference_now),
        previous=filter_previous_incomplete(tasks, reference_now),
    )


def summarize(tasks: Sequence[Task], reference_now: datetime) -> TaskSummary:
    """
    Count tasks per partition plus global totals.

    Args:
        tasks: Every task known to the caller
        reference_now: Moment used as "now" for all three partitions

    Returns:
        TaskSummary (completion_rate is 0.0 for an empty task list)
    """
    parts = categorize(tasks, reference_now)

    return TaskSummary(
        today_count=len(parts.today),
        today_completed=sum(1 for t in parts.today if t.completed),
        weekly_count=len(parts.weekly),
        weekly_completed=sum(1 for t in parts.weekly if t.completed),
        previous_incomplete_count=len(parts.previous),
        total_count=len(tasks),
        total_completed=sum(1 for t in tasks if t.completed),
    )
