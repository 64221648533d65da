"""
FILE: mason/repl/main.py
PURPOSE: Interactive REPL for task management with prompt-toolkit
EXPORTS:
  - main() - Entry point for REPL mode
  - run_repl(ctx) - Main REPL loop
  - execute_command(ctx, result) -> bool
DEPENDENCIES:
  - prompt_toolkit (REPL interface, history, completion)
  - rich (formatted output)
  - mason.core.viewmodel (TaskViewModel)
  - mason.repl.parser (command parsing)
  - mason.repl.commands (handlers)
NOTES:
  - Uses prompt_toolkit for readline-like features when on a TTY
  - Falls back to input() in piped/test environments
  - Bottom toolbar shows the summary counts
  - Ctrl+D or "exit"/"quit" to exit
"""

import logging
import sys
from typing import Callable, Dict, Optional

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    if not isinstance(sys.stdout, io.TextIOWrapper) or sys.stdout.encoding != 'utf-8':
        try:
            sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
        except (AttributeError, ValueError):
            pass  # Already wrapped or unavailable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.markup import escape

from ..core.repository import TaskRepository
from ..core.viewmodel import TaskViewModel
from .commands import (
    REPLContext,
    display_current,
    handle_add_command,
    handle_clear_command,
    handle_done_command,
    handle_edit_command,
    handle_help_command,
    handle_move_command,
    handle_rm_command,
    handle_search_command,
    handle_summary_command,
    handle_tab_command,
)
from .parser import ParseResult, parse_command

logger = logging.getLogger(__name__)

# Rich console for formatted output
console = Console()

Handler = Callable[[REPLContext, ParseResult], None]

HANDLERS: Dict[str, Handler] = {
    "add": handle_add_command,
    "edit": handle_edit_command,
    "done": handle_done_command,
    "rm": handle_rm_command,
    "move": handle_move_command,
    "tab": handle_tab_command,
    "today": handle_tab_command,
    "week": handle_tab_command,
    "previous": handle_tab_command,
    "search": handle_search_command,
    "summary": handle_summary_command,
    "help": handle_help_command,
    "clear": handle_clear_command,
}

COMMAND_WORDS = sorted(set(HANDLERS) | {"exit", "quit", "--date", "--yes", "--pos"})


def format_prompt(ctx: REPLContext) -> HTML:
    """Prompt with the current tab in magenta."""
    return HTML("<b>mason:[<ansibrightmagenta>{}</ansibrightmagenta>]&gt; </b>").format(ctx.tab_label())


def bottom_toolbar(ctx: REPLContext) -> HTML:
    """Summary counts for the last refresh."""
    stats = ctx.vm.summary
    text = (
        f"today {stats.today_count} ({stats.today_completed} done) | "
        f"week {stats.weekly_count} | previous {stats.previous_incomplete_count} | "
        f"{stats.completion_rate:.0%} complete"
    )
    return HTML(f"<style bg='#444444' fg='#ffffff'> {text} </style>")


def execute_command(ctx: REPLContext, result: ParseResult) -> bool:
    """
    Execute a parsed command.

    Returns:
        True to continue REPL loop, False to exit
    """
    command = result.command

    if command in ("exit", "quit"):
        ctx.console.print("[dim]Goodbye![/dim]")
        return False

    if not command:
        return True

    handler = HANDLERS.get(command)
    if handler is None:
        ctx.console.print(f"[red]Unknown command:[/red] {escape(command)}")
        ctx.console.print("[dim]Type 'help' for available commands[/dim]")
        return True

    ctx.needs_render = False
    handler(ctx, result)
    if ctx.needs_render:
        display_current(ctx)
        ctx.needs_render = False
    ctx.console.print()
    return True


def run_repl(ctx: Optional[REPLContext] = None) -> None:
    """
    Main REPL loop.

    Exits on Ctrl+D (EOFError) or "exit"/"quit". Ctrl+C only cancels the line.
    """
    if ctx is None:
        ctx = REPLContext(vm=TaskViewModel(TaskRepository()), console=console)

    has_tty = sys.stdin.isatty() and sys.stdout.isatty()
    session = None
    if has_tty:
        try:
            session = PromptSession(
                history=InMemoryHistory(),
                completer=WordCompleter(COMMAND_WORDS, ignore_case=True),
                bottom_toolbar=lambda: bottom_toolbar(ctx),
            )
        except Exception as e:
            ctx.console.print(f"[yellow]Warning:[/yellow] Running in simple input mode: {escape(str(e))}")

    ctx.console.print("[bold cyan]Mason REPL[/bold cyan] - Type 'help' for commands, 'exit' to quit")
    if session is None:
        ctx.console.print("[dim](Running in simple mode - no autocomplete)[/dim]")
    ctx.console.print()

    # Opening the REPL is the first "screen appearance"
    execute_command(ctx, parse_command(ctx.current_tab.value))

    while True:
        try:
            if session is None:
                user_input = input(ctx.get_prompt())
            else:
                user_input = session.prompt(format_prompt(ctx))

            if not execute_command(ctx, parse_command(user_input)):
                break

        except KeyboardInterrupt:
            ctx.console.print("[dim]^C (Press Ctrl+D or type 'exit' to quit)[/dim]")
            continue
        except EOFError:
            ctx.console.print()
            ctx.console.print("[dim]Goodbye![/dim]")
            break
        except Exception as e:
            # Unexpected error - log it and keep the session alive
            logger.exception("Unhandled error in REPL command")
            ctx.console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")


def main() -> None:
    """
    Entry point for REPL mode.

    Called when user runs: mason repl (or just mason)
    """
    run_repl()
