"""
FILE: mason/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - MasonError (base exception)
  - InvalidNameError
  - TaskNotFoundError
  - StoreError, StoreWriteError, StoreReadError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from MasonError for easy catching
  - Store errors keep the underlying sqlite3 error as __cause__
  - View-model catches StoreError; UI layers catch the rest and display
"""


class MasonError(Exception):
    """Base exception for all Mason errors."""
    pass


class InvalidNameError(MasonError):
    """Task name is empty after trimming whitespace."""

    def __init__(self, message: str = "Task name cannot be empty"):
        super().__init__(message)


class TaskNotFoundError(MasonError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class StoreError(MasonError):
    """Persistence layer failed."""
    pass


class StoreWriteError(StoreError):
    """Insert, update or delete could not be committed."""

    def __init__(self, detail: str = ""):
        message = "Failed to save task"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreReadError(StoreError):
    """Tasks could not be fetched."""

    def __init__(self, detail: str = ""):
        message = "Failed to fetch tasks"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
