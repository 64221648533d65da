"""
FILE: mason/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .tasks import (
    add,
    edit,
    done,
    rm,
    move,
)
from .workflow import (
    today,
    week,
    previous,
    summary,
)
from .system import (
    version,
    help,
    repl,
)

__all__ = [
    "add",
    "edit",
    "done",
    "rm",
    "move",
    "today",
    "week",
    "previous",
    "summary",
    "version",
    "help",
    "repl",
]
