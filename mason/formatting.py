"""
FILE: mason/formatting.py
PURPOSE: Shared formatting and argument parsing for CLI and REPL output
EXPORTS:
  - TaskFormatter: Class for formatting tasks and summaries
  - parse_task_ids: Parse comma-separated task IDs
  - parse_due_date: Parse a --date value into a datetime
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - datetime (stdlib)
  - mason.core.models (Task, TaskSummary)
  - mason.core.viewmodel (to_local_naive)
NOTES:
  - Task names are user text: they are escaped before going into Rich markup
  - Centralized formatting logic for consistency
  - Used by both CLI and REPL
"""

import json
from datetime import datetime, timedelta
from typing import List, Optional

from rich.markup import escape
from rich.table import Table

from .core.constants import DATE_KEYWORDS
from .core.models import Task, TaskSummary
from .core.viewmodel import to_local_naive


class TaskFormatter:
    """Centralized task display formatting."""

    @staticmethod
    def format_due(task: Task, reference_now: Optional[datetime] = None) -> str:
        """Short due-date label; time only for tasks due on reference_now's day."""
        if reference_now is not None and task.due_date.date() == reference_now.date():
            return task.due_date.strftime("%H:%M")
        return task.due_date.strftime("%a %d %b %H:%M")

    @staticmethod
    def create_table(
        tasks: List[Task],
        title: str = "Tasks",
        reference_now: Optional[datetime] = None,
        show_positions: bool = False,
    ) -> Table:
        """
        Create Rich table for tasks.

        Args:
            tasks: List of tasks to display
            title: Table title
            reference_now: Used to highlight overdue tasks
            show_positions: Add a 1-based row column (for rm --pos in the REPL)

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        if show_positions:
            table.add_column("#", style="dim", justify="right", no_wrap=True)
        table.add_column("ID", style="cyan", width=6, no_wrap=True)
        table.add_column("Status", style="magenta", width=6)
        table.add_column("Name", style="white")
        table.add_column("Due", style="blue", no_wrap=True)

        for position, task in enumerate(tasks, start=1):
            if task.completed:
                status = "[green]✓[/green]"
                name = f"[dim]{escape(task.name)}[/dim]"
            else:
                status = "[yellow]○[/yellow]"
                name = escape(task.name)

            due = TaskFormatter.format_due(task, reference_now)
            if (
                reference_now is not None
                and not task.completed
                and task.due_date < reference_now
                and task.due_date.date() != reference_now.date()
            ):
                due = f"[red]{due}[/red]"

            cells = [str(task.id), status, name, due]
            if show_positions:
                cells.insert(0, str(position))
            table.add_row(*cells)

        return table

    @staticmethod
    def to_json_array(tasks: List[Task]) -> str:
        """Convert task list to JSON array string."""
        return json.dumps([t.to_dict() for t in tasks], indent=2)

    @staticmethod
    def to_raw_lines(tasks: List[Task]) -> List[str]:
        """
        Convert task list to plain text lines.

        Returns:
            One "id: [x] name (due)" line per task
        """
        lines = []
        for task in tasks:
            status_marker = "x" if task.completed else " "
            lines.append(
                f"{task.id}: [{status_marker}] {task.name} ({task.due_date.isoformat(timespec='minutes')})"
            )
        return lines

    @staticmethod
    def summary_table(summary: TaskSummary) -> Table:
        table = Table(title="Summary", show_header=True, header_style="bold cyan")
        table.add_column("List", style="white")
        table.add_column("Tasks", justify="right")
        table.add_column("Completed", justify="right", style="green")

        table.add_row("Today", summary.today_display_text, str(summary.today_completed))
        table.add_row("This week", summary.weekly_display_text, str(summary.weekly_completed))
        table.add_row("Previous", summary.previous_display_text, "-")
        table.add_row(
            "[bold]Total[/bold]",
            str(summary.total_count),
            str(summary.total_completed),
        )
        return table

    @staticmethod
    def to_raw_summary(summary: TaskSummary) -> List[str]:
        return [
            f"today: {summary.today_count} ({summary.today_completed} done)",
            f"week: {summary.weekly_count} ({summary.weekly_completed} done)",
            f"previous: {summary.previous_incomplete_count}",
            f"total: {summary.total_count} ({summary.total_completed} done)",
            f"completion: {summary.completion_rate:.0%}",
        ]


def parse_task_ids(id_string: str) -> List[int]:
    """
    Parse comma-separated task IDs.

    Args:
        id_string: Comma-separated string of IDs (e.g., "1,2,3")

    Returns:
        List of integers, duplicates dropped (first occurrence kept)

    Raises:
        ValueError: If any ID is not a valid integer
    """
    ids = [part.strip() for part in id_string.split(",")]
    return list(dict.fromkeys(int(part) for part in ids if part))


def parse_due_date(value: Optional[str], now: datetime) -> datetime:
    """
    Parse a due date given on the command line.

    Accepts "today"/"now", "tomorrow", "yesterday", "YYYY-MM-DD" or
    "YYYY-MM-DDTHH:MM". Keywords keep the current time of day; a bare date
    gets the current time of day too, so "today" and today's date agree.

    Raises:
        ValueError: If the value can't be parsed
    """
    if value is None or not value.strip():
        return now

    text = value.strip().lower()
    if text in DATE_KEYWORDS:
        return now + timedelta(days=DATE_KEYWORDS[text])

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(
            f"Invalid date '{value}'. Use today, tomorrow, yesterday, YYYY-MM-DD or YYYY-MM-DDTHH:MM"
        ) from None

    parsed = to_local_naive(parsed)
    if len(value.strip()) == 10:
        return datetime.combine(parsed.date(), now.time())
    return parsed
