"""
FILE: mason/cli/main.py
PURPOSE: Typer-based CLI for one-shot task commands
EXPORTS:
  - app (Typer application)
  - main() (entry point)
  - load_view_model() -> TaskViewModel
  - report_failure(vm) -> NoReturn
  - version(), help(), repl()       - system commands
  - add(), edit(), done(), rm(), move() - task commands
  - today(), week(), previous(), summary() - list commands
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - mason.core.viewmodel (TaskViewModel)
  - mason.core.repository (TaskRepository)
  - mason.logging_setup (setup_logging)
NOTES:
  - All list and mutation commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - Every command refreshes the view-model first, like a screen appearing
"""

import logging
import sys
from typing import NoReturn

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import typer
from rich.console import Console
from rich.markup import escape

from ..core.repository import TaskRepository
from ..core.viewmodel import TaskViewModel
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Typer app setup
app = typer.Typer(
    name="mason",
    help="Today, this week and overdue: a small to-do list",
    add_completion=False,
)

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Version
__version__ = "1.0.0"


def load_view_model() -> TaskViewModel:
    """
    Build a view-model on the default store and load it.

    Exits with code 1 if the store can't be read.
    """
    vm = TaskViewModel(TaskRepository())
    if not vm.refresh():
        report_failure(vm)
    return vm


def report_failure(vm: TaskViewModel) -> NoReturn:
    """Print the view-model's current error and exit 1."""
    error_console.print(f"[red]Error:[/red] {escape(vm.error_message or 'Unknown error')}")
    raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs on stderr"),
):
    """
    Default callback - configures logging, launches REPL when no command is given.
    """
    setup_logging(console_level=logging.DEBUG if verbose else logging.WARNING)

    if ctx.invoked_subcommand is None:
        from ..repl import main as repl_main
        try:
            repl_main()
        except Exception as e:
            logger.exception("REPL crashed")
            error_console.print(f"[red]Error starting REPL:[/red] {escape(str(e))}")
            raise typer.Exit(1)


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
from .commands import (
    # System commands
    version,
    help,
    repl,
    # Task commands
    add,
    edit,
    done,
    rm,
    move,
    # List commands
    today,
    week,
    previous,
    summary,
)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
