"""
FILE: mason/cli/commands/workflow.py
PURPOSE: List commands (today, week, previous, summary)
"""

from typing import Optional

import typer
from rich.markup import escape

from ..main import app, console, load_view_model
from ...core.models import TaskList
from ...formatting import TaskFormatter

_TITLES = {
    TaskList.TODAY: "Today's Tasks",
    TaskList.WEEKLY: "This Week's Tasks",
    TaskList.PREVIOUS: "Previous Incomplete Tasks",
}


def _show_list(
    task_list: TaskList,
    search: Optional[str],
    json_output: bool,
    raw: bool,
) -> None:
    vm = load_view_model()
    if search:
        vm.update_search(task_list, search)

    tasks = vm.filtered(task_list)

    if json_output:
        console.print(TaskFormatter.to_json_array(tasks))
        return

    if raw:
        for line in TaskFormatter.to_raw_lines(tasks):
            console.print(line, markup=False, highlight=False)
        return

    if not tasks:
        if search:
            console.print(f"[dim]No tasks found for '{escape(search)}'[/dim]")
        else:
            empty = {
                TaskList.TODAY: vm.today_task_count,
                TaskList.WEEKLY: vm.weekly_task_count,
                TaskList.PREVIOUS: vm.previous_incomplete_task_count,
            }[task_list]
            console.print(f"[dim]{empty}[/dim]")
        return

    console.print(
        TaskFormatter.create_table(tasks, title=_TITLES[task_list], reference_now=vm.reference_now)
    )
    console.print(f"\n[dim]Total: {len(tasks)} task(s)[/dim]")


@app.command()
def today(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only tasks whose name contains this text"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks due today (open tasks first).

    Example:
        mason today
        mason today --search milk
    """
    _show_list(TaskList.TODAY, search, json_output, raw)


@app.command()
def week(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only tasks whose name contains this text"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks due this week.

    Example:
        mason week
        mason week --json
    """
    _show_list(TaskList.WEEKLY, search, json_output, raw)


@app.command()
def previous(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only tasks whose name contains this text"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List unfinished tasks from earlier days.

    Use 'mason move <id>' to bring one back to today.

    Example:
        mason previous
    """
    _show_list(TaskList.PREVIOUS, search, json_output, raw)


@app.command()
def summary(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show task counts per list and the overall completion rate.
    """
    vm = load_view_model()
    stats = vm.summary

    if json_output:
        console.print(stats.to_json())
    elif raw:
        for line in TaskFormatter.to_raw_summary(stats):
            console.print(line, markup=False, highlight=False)
    else:
        console.print(TaskFormatter.summary_table(stats))
        console.print(f"\n[dim]Progress: {stats.completion_rate:.0%} complete[/dim]")
