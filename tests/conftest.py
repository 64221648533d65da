"""Shared pytest configuration and fixtures for tests."""

import sys
import io
import logging
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mason import logging_setup
from mason.core import repository
from mason.core.exceptions import StoreReadError, StoreWriteError
from mason.core.repository import TaskRepository

# Wednesday of ISO week 43
NOW = datetime(2026, 10, 21, 12, 0)


class FixedClock:
    """Callable clock for view-models; tests move it explicitly."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FailingRepository(TaskRepository):
    """TaskRepository whose writes and/or reads can be switched to fail."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.fail_writes = False
        self.fail_reads = False

    def fetch_all(self):
        if self.fail_reads:
            raise StoreReadError("disk I/O error")
        return super().fetch_all()

    def insert(self, task):
        if self.fail_writes:
            raise StoreWriteError("database is locked")
        return super().insert(task)

    def update(self, task):
        if self.fail_writes:
            raise StoreWriteError("database is locked")
        return super().update(task)

    def delete_many(self, tasks):
        if self.fail_writes:
            raise StoreWriteError("database is locked")
        return super().delete_many(tasks)


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use temporary database and log directory for all tests."""
    db_path = tmp_path / "test_mason.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setattr(repository, "DB_DIR", tmp_path)
    monkeypatch.setattr(logging_setup, "LOG_DIR", tmp_path / "logs")
    yield db_path


@pytest.fixture(autouse=True)
def restore_logging():
    """CLI runs call setup_logging(); drop the handlers it adds afterwards."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)
    logging.captureWarnings(False)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(temp_db):
    return TaskRepository(temp_db)


@pytest.fixture
def failing_store(tmp_path):
    return FailingRepository(tmp_path / "failing.db")
