"""
FILE: mason/repl/commands.py
PURPOSE: REPL command handlers
EXPORTS:
  - REPLContext (dataclass)
  - display_current(ctx) - render the current tab
  - handle_add_command, handle_edit_command, handle_done_command,
    handle_rm_command, handle_move_command, handle_tab_command,
    handle_search_command, handle_summary_command, handle_help_command,
    handle_clear_command
DEPENDENCIES:
  - rich (formatted output)
  - mason.core.viewmodel (TaskViewModel)
  - mason.formatting (TaskFormatter, parse_task_ids, parse_due_date)
  - mason.repl.parser (ParseResult)
NOTES:
  - Handlers never raise MasonError or ValueError; they print and return
  - Rendering happens once per command, driven by the view-model's notifications
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from ..core.exceptions import MasonError
from ..core.models import Task, TaskList
from ..core.viewmodel import TaskViewModel
from ..formatting import TaskFormatter, parse_due_date, parse_task_ids
from .parser import ParseResult

_TAB_TITLES = {
    TaskList.TODAY: "Today",
    TaskList.WEEKLY: "This Week",
    TaskList.PREVIOUS: "Previous",
}

_TAB_ALIASES = {
    "today": TaskList.TODAY,
    "week": TaskList.WEEKLY,
    "weekly": TaskList.WEEKLY,
    "previous": TaskList.PREVIOUS,
    "prev": TaskList.PREVIOUS,
}


@dataclass
class REPLContext:
    """
    Session state for the REPL.

    Attributes:
        vm: The one view-model for this session
        console: Where output goes
        current_tab: Partition shown after every change
        needs_render: Set by the view-model subscription, cleared after rendering
    """
    vm: TaskViewModel
    console: Console = field(default_factory=Console)
    current_tab: TaskList = TaskList.TODAY
    needs_render: bool = False

    def __post_init__(self) -> None:
        self.vm.subscribe(self._on_change)

    def _on_change(self, _vm: TaskViewModel) -> None:
        self.needs_render = True

    def tab_label(self) -> str:
        """Label such as "today", or "week ~milk" while a search is active."""
        search = self.vm.search_text(self.current_tab)
        label = self.current_tab.value
        if search:
            label = f"{label} ~{search}"
        return label

    def get_prompt(self) -> str:
        return f"mason:[{self.tab_label()}]> "


def display_current(ctx: REPLContext) -> None:
    """Render the current tab's searched partition."""
    vm = ctx.vm
    tasks = vm.filtered(ctx.current_tab)
    search = vm.search_text(ctx.current_tab)
    title = _TAB_TITLES[ctx.current_tab]

    if not tasks:
        if search:
            ctx.console.print(f"[dim]No tasks found for '{escape(search)}'[/dim]")
        else:
            empty = {
                TaskList.TODAY: vm.today_task_count,
                TaskList.WEEKLY: vm.weekly_task_count,
                TaskList.PREVIOUS: vm.previous_incomplete_task_count,
            }[ctx.current_tab]
            ctx.console.print(f"[dim]{empty}[/dim]")
        return

    ctx.console.print(
        TaskFormatter.create_table(
            tasks, title=title, reference_now=vm.reference_now, show_positions=True
        )
    )


def _error(ctx: REPLContext, message: str) -> None:
    ctx.console.print(f"[red]Error:[/red] {escape(message)}")


def _store_error(ctx: REPLContext) -> None:
    _error(ctx, ctx.vm.error_message or "Unknown error")
    ctx.vm.clear_error()


def _tasks_from_ids(ctx: REPLContext, result: ParseResult, usage: str) -> Optional[List[Task]]:
    if not result.args:
        ctx.console.print(f"[yellow]Usage:[/yellow] {usage}")
        return None
    try:
        ids = parse_task_ids(result.args[0])
        return [ctx.vm.get_task(task_id) for task_id in ids]
    except ValueError:
        _error(ctx, f"Invalid task ID list: {result.args[0]}")
    except MasonError as e:
        _error(ctx, str(e))
    return None


def _due_flag(ctx: REPLContext, result: ParseResult) -> Optional[datetime]:
    value = result.flags.get("date")
    if not isinstance(value, str):
        return None
    return parse_due_date(value, datetime.now())


# --- Task handlers ---


def handle_add_command(ctx: REPLContext, result: ParseResult) -> None:
    """add NAME [--date WHEN]"""
    try:
        due = _due_flag(ctx, result)
        task = ctx.vm.add_task(result.text, due)
    except (MasonError, ValueError) as e:
        _error(ctx, str(e))
        return

    if task is None:
        _store_error(ctx)
        return
    ctx.console.print(f"[green]✓ Created task [bold]#{task.id}[/bold]:[/green] {escape(task.name)}")


def handle_edit_command(ctx: REPLContext, result: ParseResult) -> None:
    """edit ID NAME [--date WHEN]"""
    if len(result.args) < 2:
        ctx.console.print('[yellow]Usage:[/yellow] edit <task_id> "New name" [--date WHEN]')
        return

    try:
        task = ctx.vm.get_task(int(result.args[0]))
        due = _due_flag(ctx, result)
        ok = ctx.vm.update_task(
            task,
            " ".join(result.args[1:]),
            due if due is not None else task.due_date,
        )
    except (MasonError, ValueError) as e:
        _error(ctx, str(e))
        return

    if not ok:
        _store_error(ctx)
        return
    ctx.console.print(f"[green]✓ Updated task [bold]#{task.id}[/bold][/green]")


def handle_done_command(ctx: REPLContext, result: ParseResult) -> None:
    """done IDS"""
    targets = _tasks_from_ids(ctx, result, "done <task_id(s)>")
    if targets is None:
        return

    for target in targets:
        try:
            ok = ctx.vm.toggle_completion(target)
        except MasonError as e:
            _error(ctx, str(e))
            continue
        if not ok:
            _store_error(ctx)
            continue
        state = "Completed" if ctx.vm.get_task(target.id).completed else "Reopened"
        ctx.console.print(f"[green]✓[/green] {state}: {escape(target.name)}")


def _offsets_from_positions(ctx: REPLContext, result: ParseResult) -> Optional[List[int]]:
    """Turn 1-based row numbers of the current tab into 0-based offsets."""
    if not result.args:
        ctx.console.print("[yellow]Usage:[/yellow] rm <row(s)> --pos [--yes]")
        return None
    try:
        positions = parse_task_ids(result.args[0])
    except ValueError:
        _error(ctx, f"Invalid row list: {result.args[0]}")
        return None

    visible = len(ctx.vm.filtered(ctx.current_tab))
    for position in positions:
        if not 1 <= position <= visible:
            _error(ctx, f"No task at row {position}")
            return None
    return [position - 1 for position in positions]


def handle_rm_command(ctx: REPLContext, result: ParseResult) -> None:
    """rm IDS [--yes], or rm ROWS --pos [--yes] for rows of the current tab"""
    by_position = bool(result.flags.get("pos"))
    if by_position:
        offsets = _offsets_from_positions(ctx, result)
        if offsets is None:
            return
        count = len(offsets)
    else:
        targets = _tasks_from_ids(ctx, result, "rm <task_id(s)> [--yes]")
        if targets is None:
            return
        count = len(targets)

    if count > 1 and not result.flags.get("yes"):
        ctx.console.print(
            f"[yellow]Delete {count} tasks? Re-run with --yes to confirm.[/yellow]"
        )
        return

    try:
        if by_position:
            ok = ctx.vm.delete_tasks_at(offsets, ctx.current_tab)
        else:
            ok = ctx.vm.delete_tasks(targets)
    except MasonError as e:
        _error(ctx, str(e))
        return

    if not ok:
        _store_error(ctx)
        return
    ctx.console.print(f"[green]✓ Deleted {count} task(s)[/green]")


def handle_move_command(ctx: REPLContext, result: ParseResult) -> None:
    """move IDS"""
    targets = _tasks_from_ids(ctx, result, "move <task_id(s)>")
    if targets is None:
        return

    for target in targets:
        try:
            ok = ctx.vm.move_to_today(target)
        except MasonError as e:
            _error(ctx, str(e))
            continue
        if not ok:
            _store_error(ctx)
            continue
        ctx.console.print(f"[green]→[/green] Moved to today: {escape(target.name)}")


# --- View handlers ---


def handle_tab_command(ctx: REPLContext, result: ParseResult) -> None:
    """
    Switch the current tab and refresh, like a screen appearing.

    Accepts "tab week" or the bare tab name as the command ("week").
    """
    name = result.args[0].lower() if result.command == "tab" and result.args else result.command
    task_list = _TAB_ALIASES.get(name)
    if task_list is None:
        ctx.console.print("[yellow]Usage:[/yellow] tab today|week|previous")
        return

    ctx.current_tab = task_list
    if not ctx.vm.refresh():
        _store_error(ctx)
    # Render even when the refresh didn't change anything
    ctx.needs_render = True


def handle_search_command(ctx: REPLContext, result: ParseResult) -> None:
    """search [TEXT] - empty text clears the current tab's search"""
    ctx.vm.update_search(ctx.current_tab, result.text)


def handle_summary_command(ctx: REPLContext, result: ParseResult) -> None:
    stats = ctx.vm.summary
    ctx.console.print(TaskFormatter.summary_table(stats))
    ctx.console.print(f"[dim]Progress: {stats.completion_rate:.0%} complete[/dim]")


def handle_clear_command(ctx: REPLContext, result: ParseResult) -> None:
    ctx.console.clear()


def handle_help_command(ctx: REPLContext, result: ParseResult) -> None:
    console = ctx.console
    console.print("\n[bold cyan]Mason REPL Commands[/bold cyan]\n")

    commands = [
        ('add NAME [--date WHEN]', "Create a task (due now by default)"),
        ('edit ID NAME [--date WHEN]', "Rename / reschedule a task"),
        ("done IDS", "Toggle completion (comma-separated IDs)"),
        ("rm IDS [--yes]", "Delete tasks"),
        ("rm ROWS --pos [--yes]", "Delete by row number (#) in the current list"),
        ("move IDS", "Move tasks to today"),
        ("tab today|week|previous", "Switch list (also: today, week, previous)"),
        ("search [TEXT]", "Filter the current list; no text clears it"),
        ("summary", "Counts and completion rate"),
        ("clear", "Clear the screen"),
        ("help", "Show this help"),
        ("exit / quit", "Leave the REPL"),
    ]
    for cmd, desc in commands:
        console.print(f"  [green]{cmd:28}[/green] {desc}")

    console.print("\n[dim]WHEN: today, tomorrow, yesterday, YYYY-MM-DD or YYYY-MM-DDTHH:MM[/dim]")
