"""
FILE: mason/core/viewmodel.py
PURPOSE: Single in-memory view of the stored tasks, re-synchronized after every change
EXPORTS:
  - to_local_naive(value) -> datetime
  - TaskViewModel
    - refresh() -> bool
    - add_task(name, date) -> Task | None
    - update_task(task, name, date) -> bool
    - toggle_completion(task) -> bool
    - delete_task(task) -> bool
    - delete_tasks(tasks) -> bool
    - delete_tasks_at(offsets, task_list) -> bool
    - move_to_today(task) -> bool
    - update_today_search / update_weekly_search / update_previous_search / update_search
    - get_task(task_id) -> Task
    - subscribe(callback) -> unsubscribe
DEPENDENCIES:
  - mason.core.repository (TaskRepository)
  - mason.core.categorize (partition and summary functions)
  - mason.core.models (Task, TaskList, TaskSummary)
  - mason.core.exceptions (InvalidNameError, TaskNotFoundError, StoreError, MasonError)
  - logging (stdlib)
NOTES:
  - Every mutation goes store first, then a full reload (no incremental patching)
  - Store failures are caught: error_message is set, the failure is logged and
    the in-memory change is rolled back; the method returns a failure value
  - InvalidNameError and TaskNotFoundError propagate to the UI layer
  - Subscribers are notified after an operation has finished
  - Due dates are stored as naive local time; aware values are converted on the way in
"""

import contextlib
import logging
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional

from .categorize import categorize, filter_by_search, summarize
from .constants import TODAY_EMPTY_TEXT, WEEKLY_EMPTY_TEXT, PREVIOUS_EMPTY_TEXT
from .exceptions import InvalidNameError, MasonError, StoreError, TaskNotFoundError
from .models import Task, TaskList, TaskSummary
from .repository import TaskRepository

logger = logging.getLogger(__name__)

Subscriber = Callable[["TaskViewModel"], None]


def validate_name(name: str) -> str:
    """Trim a task name, raising InvalidNameError if nothing is left."""
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidNameError()
    return trimmed


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local time; the store only holds naive values."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _snapshot(task: Task) -> tuple:
    return task.name, task.due_date, task.completed


class TaskViewModel:
    """
    Holds the task list and its three partitions for the presentation layer.

    The clock is read once per reload and handed to the categorization
    functions, so every partition in a given state shares one "now".
    """

    def __init__(
        self,
        store: Optional[TaskRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store if store is not None else TaskRepository()
        self._clock = clock

        self.all_tasks: List[Task] = []
        self.today_tasks: List[Task] = []
        self.weekly_tasks: List[Task] = []
        self.previous_incomplete_tasks: List[Task] = []
        self.reference_now: datetime = to_local_naive(clock())

        self.today_search_text = ""
        self.weekly_search_text = ""
        self.previous_search_text = ""

        self.is_loading = False
        self.error_message: Optional[str] = None

        self._subscribers: List[Subscriber] = []
        self._busy = False

    # --- Derived state ---

    @property
    def filtered_today_tasks(self) -> List[Task]:
        return filter_by_search(self.today_tasks, self.today_search_text)

    @property
    def filtered_weekly_tasks(self) -> List[Task]:
        return filter_by_search(self.weekly_tasks, self.weekly_search_text)

    @property
    def filtered_previous_tasks(self) -> List[Task]:
        return filter_by_search(self.previous_incomplete_tasks, self.previous_search_text)

    def filtered(self, task_list: TaskList) -> List[Task]:
        """Searched view of one partition."""
        if task_list is TaskList.TODAY:
            return self.filtered_today_tasks
        if task_list is TaskList.WEEKLY:
            return self.filtered_weekly_tasks
        return self.filtered_previous_tasks

    def search_text(self, task_list: TaskList) -> str:
        if task_list is TaskList.TODAY:
            return self.today_search_text
        if task_list is TaskList.WEEKLY:
            return self.weekly_search_text
        return self.previous_search_text

    @property
    def summary(self) -> TaskSummary:
        return summarize(self.all_tasks, self.reference_now)

    @property
    def today_task_count(self) -> str:
        count = len(self.today_tasks)
        return TODAY_EMPTY_TEXT if count == 0 else str(count)

    @property
    def weekly_task_count(self) -> str:
        count = len(self.weekly_tasks)
        return WEEKLY_EMPTY_TEXT if count == 0 else str(count)

    @property
    def previous_incomplete_task_count(self) -> str:
        count = len(self.previous_incomplete_tasks)
        return PREVIOUS_EMPTY_TEXT if count == 0 else str(count)

    def get_task(self, task_id: int) -> Task:
        """
        Look up a cached task by id.

        Raises:
            TaskNotFoundError: If the id isn't in the last refreshed list
        """
        for task in self.all_tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    # --- Observation ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback run after each refresh or search change."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    # --- Internals ---

    @contextlib.contextmanager
    def _operation(self, action: str) -> Iterator[None]:
        if self._busy:
            raise MasonError(f"Cannot {action} while another task operation is running")
        self._busy = True
        self.is_loading = True
        try:
            yield
        finally:
            self._busy = False
            self.is_loading = False

    def _handle_error(self, error: Exception, action: str) -> None:
        self.error_message = str(error)
        logger.error("Failed to %s: %s", action, error, exc_info=error)

    def _reload(self) -> bool:
        try:
            tasks = self.store.fetch_all()
        except StoreError as e:
            self._handle_error(e, "refresh tasks")
            return False

        now = to_local_naive(self._clock())
        parts = categorize(tasks, now)

        self.all_tasks = tasks
        self.reference_now = now
        self.today_tasks = parts.today
        self.weekly_tasks = parts.weekly
        self.previous_incomplete_tasks = parts.previous

        logger.debug(
            "Refreshed %d task(s): today=%d week=%d previous=%d",
            len(tasks), len(parts.today), len(parts.weekly), len(parts.previous),
        )
        return True

    def _resolve(self, task: Task) -> Task:
        if task.id is None:
            raise TaskNotFoundError(task.id)
        return self.get_task(task.id)

    def _write_back(self, cached: Task, snapshot: tuple, action: str) -> bool:
        """
        Persist a cached task that was changed in place.

        On any failure the task's fields are restored from snapshot.
        """
        try:
            self.store.update(cached)
        except StoreError as e:
            cached.name, cached.due_date, cached.completed = snapshot
            self._handle_error(e, action)
            return False
        except TaskNotFoundError:
            cached.name, cached.due_date, cached.completed = snapshot
            raise
        return self._reload()

    # --- Operations ---

    def refresh(self) -> bool:
        """
        Reload every task from the store and recompute the partitions.

        Returns:
            True on success. On a read failure the previous state is kept,
            error_message is set and False is returned.
        """
        with self._operation("refresh tasks"):
            ok = self._reload()
        self._notify()
        return ok

    def add_task(self, name: str, date: Optional[datetime] = None) -> Optional[Task]:
        """
        Create a task.

        Args:
            name: Task name (trimmed; must not be empty)
            date: Due date, defaults to the current moment

        Returns:
            The stored Task, or None if the store rejected the write

        Raises:
            InvalidNameError: If the trimmed name is empty (nothing is stored)
        """
        trimmed = validate_name(name)
        due = to_local_naive(date if date is not None else self._clock())

        created: Optional[Task] = None
        with self._operation("add task"):
            try:
                created = self.store.insert(Task(name=trimmed, due_date=due))
            except StoreError as e:
                self._handle_error(e, "add task")
            else:
                logger.info("Added task %s", created.id)
                self._reload()
        self._notify()
        return created

    def update_task(self, task: Task, name: str, date: datetime) -> bool:
        """
        Rename and/or reschedule a task.

        Raises:
            InvalidNameError: If the trimmed name is empty
            TaskNotFoundError: If the task isn't known
        """
        trimmed = validate_name(name)

        with self._operation("update task"):
            cached = self._resolve(task)
            snapshot = _snapshot(cached)
            cached.name = trimmed
            cached.due_date = to_local_naive(date)
            ok = self._write_back(cached, snapshot, "update task")
        self._notify()
        return ok

    def toggle_completion(self, task: Task) -> bool:
        """Flip the completed flag; rolled back if the write fails."""
        with self._operation("toggle task"):
            cached = self._resolve(task)
            snapshot = _snapshot(cached)
            cached.completed = not cached.completed
            ok = self._write_back(cached, snapshot, "toggle task")
        self._notify()
        return ok

    def move_to_today(self, task: Task) -> bool:
        """Reschedule a task to the current moment."""
        with self._operation("move task"):
            cached = self._resolve(task)
            snapshot = _snapshot(cached)
            cached.due_date = to_local_naive(self._clock())
            ok = self._write_back(cached, snapshot, "move task")
        self._notify()
        return ok

    def delete_task(self, task: Task) -> bool:
        return self.delete_tasks([task])

    def delete_tasks(self, tasks: Iterable[Task]) -> bool:
        """
        Delete tasks in a single store transaction.

        Raises:
            TaskNotFoundError: If any task isn't known (nothing is deleted)
        """
        with self._operation("delete tasks"):
            targets = [self._resolve(t) for t in tasks]
            if not targets:
                ok = True
            else:
                try:
                    self.store.delete_many(targets)
                except StoreError as e:
                    self._handle_error(e, "delete tasks")
                    ok = False
                else:
                    logger.info("Deleted %d task(s)", len(targets))
                    ok = self._reload()
        self._notify()
        return ok

    def delete_tasks_at(self, offsets: Iterable[int], task_list: TaskList) -> bool:
        """Delete by position in the searched view of one partition."""
        visible = self.filtered(task_list)
        return self.delete_tasks([visible[i] for i in offsets])

    # --- Search ---

    def update_search(self, task_list: TaskList, text: str) -> None:
        if task_list is TaskList.TODAY:
            self.today_search_text = text
        elif task_list is TaskList.WEEKLY:
            self.weekly_search_text = text
        else:
            self.previous_search_text = text
        self._notify()

    def update_today_search(self, text: str) -> None:
        self.update_search(TaskList.TODAY, text)

    def update_weekly_search(self, text: str) -> None:
        self.update_search(TaskList.WEEKLY, text)

    def update_previous_search(self, text: str) -> None:
        self.update_search(TaskList.PREVIOUS, text)

    # --- Errors ---

    def clear_error(self) -> None:
        self.error_message = None
