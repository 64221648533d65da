"""
FILE: mason/repl/__init__.py
PURPOSE: REPL package for interactive task management
EXPORTS:
  - main() (from repl.main)
DEPENDENCIES:
  - prompt_toolkit (REPL interface)
  - rich (formatted output)
  - mason.core.viewmodel (TaskViewModel)
NOTES:
  - Entry point for interactive mode
  - One view-model lives for the whole session
"""

from .main import main

__all__ = ["main"]
