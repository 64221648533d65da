"""
FILE: mason/cli/commands/system.py
PURPOSE: System commands (version, help, repl)
"""

import typer
from rich.markup import escape

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console, error_console, __version__


@app.command()
def version():
    """Show Mason version."""
    console.print(f"Mason v{__version__}")


@app.command()
def help():
    """Show available commands and usage."""
    console.print("\n[bold cyan]Mason[/bold cyan] - Today, this week and overdue: a small to-do list\n")
    console.print(f"[dim]Version {__version__}[/dim]\n")

    console.print("[bold]Usage:[/bold]")
    console.print("  mason [command] [options]")
    console.print("  mason                     [dim]# Launch interactive REPL (default)[/dim]\n")

    console.print("[bold]Commands:[/bold]")

    commands = [
        ("add", "Create a new task", 'mason add "Task name" [--date tomorrow]'),
        ("edit", "Rename / reschedule a task", 'mason edit <task_id> "New name" [--date 2026-11-01]'),
        ("done", "Toggle task completion", "mason done <task_id(s)>"),
        ("rm", "Delete task(s)", "mason rm <task_id(s)> [--yes]"),
        ("move", "Move task(s) to today", "mason move <task_id(s)>"),
        ("today", "List today's tasks", "mason today [--search TEXT]"),
        ("week", "List this week's tasks", "mason week [--search TEXT]"),
        ("previous", "List unfinished tasks from earlier days", "mason previous [--search TEXT]"),
        ("summary", "Counts and completion rate", "mason summary"),
        ("repl", "Launch interactive REPL", "mason repl"),
        ("version", "Show version", "mason version"),
        ("help", "Show this help message", "mason help"),
    ]

    for cmd, desc, example in commands:
        console.print(f"  [green]{cmd:9}[/green] {desc}")
        console.print(f"            [dim]{example}[/dim]\n")

    console.print("[bold]Global Options:[/bold]")
    console.print("  [yellow]--verbose[/yellow] Debug logging on stderr (before the command)")
    console.print("  [yellow]--json[/yellow]    Output as JSON (for scripting)")
    console.print("  [yellow]--raw[/yellow]     Plain text output (no colors)")
    console.print("  [yellow]--help[/yellow]    Show detailed help for a command\n")

    console.print("[bold]Examples:[/bold]")
    console.print('  mason add "Call dentist"')
    console.print('  mason add "Pay rent" --date tomorrow')
    console.print("  mason done 3,5,7               # Toggle several tasks")
    console.print("  mason previous                 # What slipped through")
    console.print("  mason move 4                   # Bring task 4 back to today")
    console.print("  mason today --search milk")
    console.print()


@app.command()
def repl():
    """Launch interactive REPL mode."""
    from ...repl import main as repl_main
    try:
        repl_main()
    except Exception as e:
        error_console.print(f"[red]Error starting REPL:[/red] {escape(str(e))}")
        raise typer.Exit(1)
