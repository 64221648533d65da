"""
FILE: mason/cli/commands/tasks.py
PURPOSE: Task commands (add, edit, done, rm, move)
"""

import json
from datetime import datetime
from typing import List, Optional

import typer
from rich.markup import escape

from ..main import app, console, error_console, load_view_model, report_failure
from ...core.exceptions import MasonError, InvalidNameError, TaskNotFoundError
from ...core.models import Task
from ...core.viewmodel import TaskViewModel
from ...formatting import TaskFormatter, parse_due_date, parse_task_ids


def _resolve_ids(vm: TaskViewModel, task_ids: str) -> List[Task]:
    """Turn "3,5,7" into cached tasks, exiting 1 on a bad or unknown id."""
    try:
        ids = parse_task_ids(task_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid task ID list: {escape(task_ids)}")
        raise typer.Exit(1)

    if not ids:
        error_console.print("[red]Error:[/red] No task IDs given")
        raise typer.Exit(1)

    try:
        return [vm.get_task(task_id) for task_id in ids]
    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _parse_date_or_exit(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_due_date(value, datetime.now())
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def add(
    name: str = typer.Argument(..., help="Task name"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Due date (today, tomorrow, YYYY-MM-DD[THH:MM])"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new task (due now unless --date is given).

    Example:
        mason add "Call dentist"
        mason add "Pay rent" --date tomorrow
        mason add "Review" -d 2026-10-23T09:00
    """
    due = _parse_date_or_exit(date)
    vm = load_view_model()

    try:
        task = vm.add_task(name, due)
    except InvalidNameError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if task is None:
        report_failure(vm)

    if json_output:
        console.print(task.to_json())
    elif raw:
        console.print(f"{task.id}: {task.name}", markup=False, highlight=False)
    else:
        console.print(f"[green]✓ Created task [bold]#{task.id}[/bold]:[/green] {escape(task.name)}")


@app.command()
def edit(
    task_id: int = typer.Argument(..., help="Task ID to edit"),
    name: str = typer.Argument(..., help="New task name"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="New due date (keeps current if omitted)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Rename a task and optionally change its due date.

    Example:
        mason edit 5 "Call dentist at 3pm"
        mason edit 5 "Pay rent" --date 2026-11-01
    """
    due = _parse_date_or_exit(date)
    vm = load_view_model()

    try:
        task = vm.get_task(task_id)
        ok = vm.update_task(task, name, due if due is not None else task.due_date)
    except MasonError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not ok:
        report_failure(vm)

    task = vm.get_task(task_id)
    if json_output:
        console.print(task.to_json())
    elif raw:
        console.print(f"{task.id}: {task.name}", markup=False, highlight=False)
    else:
        console.print(f"[green]✓ Updated task [bold]#{task.id}[/bold]:[/green] {escape(task.name)}")


@app.command()
def done(
    task_ids: str = typer.Argument(..., help="Task ID(s) to toggle (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Toggle completion of one or more tasks.

    Completed tasks are reopened, open tasks are completed.

    Example:
        mason done 5
        mason done 3,5,7
    """
    vm = load_view_model()
    targets = _resolve_ids(vm, task_ids)

    toggled = []
    for target in targets:
        try:
            ok = vm.toggle_completion(target)
        except TaskNotFoundError as e:
            error_console.print(f"[red]Error:[/red] {escape(str(e))}")
            continue
        if not ok:
            error_console.print(f"[red]Error:[/red] {escape(str(vm.error_message))}")
            continue
        toggled.append(vm.get_task(target.id))

    if json_output:
        console.print(TaskFormatter.to_json_array(toggled))
    elif raw:
        for task in toggled:
            console.print(f"{'Completed' if task.completed else 'Reopened'}: {task.name}", markup=False, highlight=False)
    else:
        for task in toggled:
            if task.completed:
                console.print(f"[green]✓[/green] Completed: {escape(task.name)}")
            else:
                console.print(f"[yellow]○[/yellow] Reopened: {escape(task.name)}")

    if len(toggled) < len(targets):
        raise typer.Exit(1)


@app.command()
def rm(
    task_ids: str = typer.Argument(..., help="Task ID(s) to delete (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
):
    """
    Delete one or more tasks permanently.

    Multiple tasks are deleted together: either all of them or none.
    Confirms before deleting more than one task (use -y to skip).

    Example:
        mason rm 5
        mason rm 3,5,7 --yes
    """
    vm = load_view_model()
    targets = _resolve_ids(vm, task_ids)

    if len(targets) > 1 and not yes:
        console.print(
            f"[yellow]Are you sure you want to delete {len(targets)} tasks?[/yellow]"
        )
        if not typer.confirm("Continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    deleted = [{"id": t.id, "name": t.name} for t in targets]
    try:
        ok = vm.delete_tasks(targets)
    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not ok:
        report_failure(vm)

    if json_output:
        console.print(json.dumps(deleted, indent=2))
    elif raw:
        for item in deleted:
            console.print(f"Deleted task {item['id']}: {item['name']}", markup=False, highlight=False)
    else:
        console.print(f"[green]✓ Deleted {len(deleted)} task(s)[/green]")


@app.command()
def move(
    task_ids: str = typer.Argument(..., help="Task ID(s) to move to today (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move overdue tasks to today (due now).

    Example:
        mason move 4
        mason move 4,9
    """
    vm = load_view_model()
    targets = _resolve_ids(vm, task_ids)

    moved = []
    for target in targets:
        try:
            ok = vm.move_to_today(target)
        except TaskNotFoundError as e:
            error_console.print(f"[red]Error:[/red] {escape(str(e))}")
            continue
        if not ok:
            error_console.print(f"[red]Error:[/red] {escape(str(vm.error_message))}")
            continue
        moved.append(vm.get_task(target.id))

    if json_output:
        console.print(TaskFormatter.to_json_array(moved))
    elif raw:
        for task in moved:
            console.print(f"Moved to today: {task.name}", markup=False, highlight=False)
    else:
        for task in moved:
            console.print(f"[green]→[/green] Moved to today: {escape(task.name)}")

    if len(moved) < len(targets):
        raise typer.Exit(1)
