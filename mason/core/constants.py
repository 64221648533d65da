"""
FILE: mason/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - DB_DIR, DB_PATH: Default database location
  - LOG_DIR, LOG_FILE: Default log location
  - TODAY_EMPTY_TEXT, WEEKLY_EMPTY_TEXT, PREVIOUS_EMPTY_TEXT: Empty-partition texts
  - DATE_KEYWORDS: Relative day keywords accepted for due dates
DEPENDENCIES:
  - pathlib (stdlib)
NOTES:
  - Centralized constants to avoid magic strings
  - Tests override DB_DIR/DB_PATH on mason.core.repository via monkeypatch
"""

from pathlib import Path

# Storage location (cross-platform)
DB_DIR = Path.home() / ".mason"
DB_PATH = DB_DIR / "mason.db"

# Logging location
LOG_DIR = DB_DIR / "logs"
LOG_FILE_NAME = "mason.log"

# Partition names
LIST_TODAY = "today"
LIST_WEEKLY = "week"
LIST_PREVIOUS = "previous"

# Shown instead of a count when a partition is empty
TODAY_EMPTY_TEXT = "No tasks for today."
WEEKLY_EMPTY_TEXT = "No tasks for this week"
PREVIOUS_EMPTY_TEXT = "No pending previous tasks."

# Relative day offsets accepted by --date
DATE_KEYWORDS = {
    "yesterday": -1,
    "today": 0,
    "now": 0,
    "tomorrow": 1,
}
