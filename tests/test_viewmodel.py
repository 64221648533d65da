"""
Tests for TaskViewModel:
- refresh and partition state
- add / update / toggle / move / delete with store round-trips
- name validation, rollback on write failure, read failure handling
- search state and subscriber notifications
"""

from datetime import datetime, timedelta, timezone

import pytest

from mason.core.exceptions import InvalidNameError, MasonError, TaskNotFoundError
from mason.core.models import Task, TaskList
from mason.core.viewmodel import TaskViewModel, to_local_naive, validate_name

from conftest import NOW


@pytest.fixture
def vm(store, clock):
    model = TaskViewModel(store, clock=clock)
    model.refresh()
    return model


@pytest.fixture
def failing_vm(failing_store, clock):
    model = TaskViewModel(failing_store, clock=clock)
    model.refresh()
    return model


def snapshot(model):
    """Comparable view of every partition."""
    def rows(tasks):
        return [(t.id, t.name, t.due_date, t.completed) for t in tasks]

    return (
        rows(model.all_tasks),
        rows(model.today_tasks),
        rows(model.weekly_tasks),
        rows(model.previous_incomplete_tasks),
    )


# --- Name validation ---


def test_validate_name_trims():
    assert validate_name("  Groceries \n") == "Groceries"


@pytest.mark.parametrize("blank", ["", "   ", "\n\t "])
def test_validate_name_rejects_blank(blank):
    with pytest.raises(InvalidNameError):
        validate_name(blank)


# --- Refresh ---


def test_refresh_on_empty_store(vm):
    assert vm.all_tasks == []
    assert vm.today_task_count == "No tasks for today."
    assert vm.weekly_task_count == "No tasks for this week"
    assert vm.previous_incomplete_task_count == "No pending previous tasks."
    assert vm.summary.completion_rate == 0.0


def test_refresh_is_idempotent(vm, store):
    store.insert(Task(name="Call dentist", due_date=NOW - timedelta(hours=1)))
    store.insert(Task(name="Old thing", due_date=NOW - timedelta(days=3)))

    assert vm.refresh()
    first = snapshot(vm)
    assert vm.refresh()
    second = snapshot(vm)

    assert first == second
    assert len(vm.all_tasks) == 2


def test_refresh_picks_up_external_changes(vm, store):
    """The cache is only a copy; refresh() reloads it from the store."""
    store.insert(Task(name="Added elsewhere", due_date=NOW))
    assert vm.all_tasks == []

    vm.refresh()

    assert [t.name for t in vm.today_tasks] == ["Added elsewhere"]


def test_refresh_uses_clock_for_partitions(vm, store, clock):
    store.insert(Task(name="Due now", due_date=NOW))
    vm.refresh()
    assert [t.name for t in vm.today_tasks] == ["Due now"]
    assert vm.previous_incomplete_tasks == []

    clock.advance(days=1)
    vm.refresh()

    assert vm.today_tasks == []
    assert [t.name for t in vm.previous_incomplete_tasks] == ["Due now"]
    assert vm.reference_now == NOW + timedelta(days=1)


def test_refresh_read_failure_keeps_state(failing_vm, failing_store):
    failing_vm.add_task("Keep me", NOW)
    before = snapshot(failing_vm)

    failing_store.fail_reads = True
    assert failing_vm.refresh() is False

    assert snapshot(failing_vm) == before
    assert "Failed to fetch tasks" in failing_vm.error_message


# --- Add ---


def test_add_round_trip(vm):
    due = datetime(2026, 10, 21, 17, 30)

    created = vm.add_task("Groceries", due)
    vm.refresh()

    matches = [t for t in vm.all_tasks if t.name == "Groceries"]
    assert len(matches) == 1
    assert matches[0].due_date == due
    assert matches[0].completed is False
    assert matches[0].id == created.id


def test_add_trims_name(vm):
    task = vm.add_task("  Buy milk  ", NOW)
    assert task.name == "Buy milk"
    assert vm.get_task(task.id).name == "Buy milk"


def test_add_defaults_to_clock(vm):
    task = vm.add_task("Right now")
    assert task.due_date == NOW
    assert [t.name for t in vm.today_tasks] == ["Right now"]


def test_add_blank_name_changes_nothing(vm, store):
    vm.add_task("Existing", NOW)
    before = snapshot(vm)

    with pytest.raises(InvalidNameError):
        vm.add_task("   ", NOW)

    assert snapshot(vm) == before
    assert store.count() == 1
    assert vm.error_message is None


def test_add_store_failure(failing_vm, failing_store):
    failing_store.fail_writes = True

    assert failing_vm.add_task("Will fail", NOW) is None

    assert failing_vm.all_tasks == []
    assert failing_vm.error_message == "Failed to save task: database is locked"


def test_add_store_failure_is_logged(failing_vm, failing_store, caplog):
    failing_store.fail_writes = True

    with caplog.at_level("ERROR", logger="mason"):
        failing_vm.add_task("Will fail", NOW)

    assert any("Failed to add task" in r.getMessage() for r in caplog.records)


# --- Update ---


def test_update_task(vm):
    task = vm.add_task("Draft", NOW)
    new_due = NOW - timedelta(days=2)

    assert vm.update_task(task, " Final ", new_due)

    updated = vm.get_task(task.id)
    assert updated.name == "Final"
    assert updated.due_date == new_due
    assert [t.name for t in vm.previous_incomplete_tasks] == ["Final"]


def test_update_accepts_detached_copy(vm):
    task = vm.add_task("Original", NOW)
    copy = Task(name="whatever", due_date=NOW, id=task.id)

    assert vm.update_task(copy, "Renamed", NOW)
    assert vm.get_task(task.id).name == "Renamed"


def test_update_blank_name_rejected(vm, store):
    task = vm.add_task("Keep", NOW)

    with pytest.raises(InvalidNameError):
        vm.update_task(task, "  ", NOW)

    assert store.get(task.id).name == "Keep"
    assert vm.get_task(task.id).name == "Keep"


def test_update_rolls_back_on_failure(failing_vm, failing_store):
    task = failing_vm.add_task("Keep", NOW)
    failing_store.fail_writes = True

    assert failing_vm.update_task(task, "Changed", NOW + timedelta(days=1)) is False

    cached = failing_vm.get_task(task.id)
    assert cached.name == "Keep"
    assert cached.due_date == NOW
    assert failing_vm.error_message is not None


def test_update_unknown_task(vm):
    with pytest.raises(TaskNotFoundError):
        vm.update_task(Task(name="Ghost", due_date=NOW, id=4242), "Name", NOW)


def test_update_unsaved_task(vm):
    with pytest.raises(TaskNotFoundError):
        vm.update_task(Task(name="Never saved", due_date=NOW), "Name", NOW)


def test_update_task_deleted_behind_our_back(vm, store):
    task = vm.add_task("Vanishing", NOW)
    store.delete(task)

    with pytest.raises(TaskNotFoundError):
        vm.update_task(task, "Renamed", NOW)

    # Cached copy restored to what the store last confirmed
    assert vm.get_task(task.id).name == "Vanishing"


# --- Toggle ---


def test_toggle_completion(vm, store):
    task = vm.add_task("Pay rent", NOW)

    assert vm.toggle_completion(task)
    assert vm.get_task(task.id).completed is True
    assert store.get(task.id).completed is True

    assert vm.toggle_completion(vm.get_task(task.id))
    assert vm.get_task(task.id).completed is False
    assert store.get(task.id).completed is False


def test_toggle_reorders_today(vm):
    first = vm.add_task("Call dentist", NOW)
    vm.add_task("Pay rent", NOW)

    vm.toggle_completion(first)

    assert [(t.name, t.completed) for t in vm.filtered_today_tasks] == [
        ("Pay rent", False),
        ("Call dentist", True),
    ]


def test_toggle_rolls_back_on_write_failure(failing_vm, failing_store):
    task = failing_vm.add_task("Call dentist", NOW)
    failing_store.fail_writes = True

    assert failing_vm.toggle_completion(task) is False

    assert failing_vm.get_task(task.id).completed is False
    assert failing_store.get(task.id).completed is False
    assert "Failed to save task" in failing_vm.error_message


def test_completed_task_leaves_previous(vm):
    task = vm.add_task("Overdue", NOW - timedelta(days=2))
    assert [t.id for t in vm.previous_incomplete_tasks] == [task.id]

    vm.toggle_completion(task)

    assert vm.previous_incomplete_tasks == []


# --- Move to today ---


def test_move_to_today(vm, clock):
    task = vm.add_task("Overdue", NOW - timedelta(days=3))
    clock.advance(minutes=5)

    assert vm.move_to_today(task)

    moved = vm.get_task(task.id)
    assert moved.due_date == NOW + timedelta(minutes=5)
    assert moved in vm.today_tasks
    assert vm.previous_incomplete_tasks == []


def test_move_to_today_rolls_back(failing_vm, failing_store):
    due = NOW - timedelta(days=3)
    task = failing_vm.add_task("Overdue", due)
    failing_store.fail_writes = True

    assert failing_vm.move_to_today(task) is False
    assert failing_vm.get_task(task.id).due_date == due


# --- Delete ---


def test_delete_task(vm, store):
    keep = vm.add_task("Keep", NOW)
    drop = vm.add_task("Drop", NOW)

    assert vm.delete_task(drop)

    assert [t.id for t in vm.all_tasks] == [keep.id]
    assert store.count() == 1


def test_delete_tasks_batch(vm, store):
    a = vm.add_task("A", NOW)
    b = vm.add_task("B", NOW)
    c = vm.add_task("C", NOW)

    assert vm.delete_tasks([a, c])

    assert [t.id for t in vm.all_tasks] == [b.id]


def test_delete_tasks_empty_is_noop(vm):
    vm.add_task("A", NOW)
    assert vm.delete_tasks([])
    assert len(vm.all_tasks) == 1


def test_delete_failure_keeps_tasks(failing_vm, failing_store):
    task = failing_vm.add_task("Stay", NOW)
    failing_store.fail_writes = True

    assert failing_vm.delete_task(task) is False

    assert [t.id for t in failing_vm.all_tasks] == [task.id]
    assert failing_store.count() == 1


def test_delete_tasks_at_uses_filtered_view(vm):
    vm.add_task("Buy milk", NOW)
    bread = vm.add_task("Buy bread", NOW)
    vm.add_task("Call mum", NOW)

    vm.update_today_search("buy")
    visible = vm.filtered_today_tasks
    index = [t.id for t in visible].index(bread.id)

    assert vm.delete_tasks_at([index], TaskList.TODAY)

    names = sorted(t.name for t in vm.all_tasks)
    assert names == ["Buy milk", "Call mum"]


# --- Search ---


def test_search_per_partition(vm):
    vm.add_task("Buy Milk", NOW)
    vm.add_task("Walk dog", NOW)
    vm.add_task("Old milk receipt", NOW - timedelta(days=2))

    vm.update_today_search("milk")
    assert [t.name for t in vm.filtered_today_tasks] == ["Buy Milk"]
    # Other partitions keep their own search text
    assert len(vm.filtered_weekly_tasks) == 3

    vm.update_previous_search("RECEIPT")
    assert [t.name for t in vm.filtered_previous_tasks] == ["Old milk receipt"]

    vm.update_weekly_search("dog")
    assert [t.name for t in vm.filtered_weekly_tasks] == ["Walk dog"]


def test_search_survives_refresh(vm):
    vm.add_task("Buy Milk", NOW)
    vm.add_task("Walk dog", NOW)
    vm.update_search(TaskList.TODAY, "dog")

    vm.refresh()

    assert vm.search_text(TaskList.TODAY) == "dog"
    assert [t.name for t in vm.filtered(TaskList.TODAY)] == ["Walk dog"]


def test_clearing_search_shows_everything(vm):
    vm.add_task("Buy Milk", NOW)
    vm.add_task("Walk dog", NOW)
    vm.update_today_search("dog")
    vm.update_today_search("")

    assert len(vm.filtered_today_tasks) == 2


def test_search_does_not_touch_store(failing_vm, failing_store):
    failing_vm.add_task("Buy Milk", NOW)
    failing_store.fail_writes = True
    failing_store.fail_reads = True

    failing_vm.update_today_search("milk")

    assert [t.name for t in failing_vm.filtered_today_tasks] == ["Buy Milk"]
    assert failing_vm.error_message is None


# --- Observation and serialization ---


def test_subscribers_notified_after_changes(vm):
    seen = []
    unsubscribe = vm.subscribe(lambda model: seen.append(len(model.all_tasks)))

    vm.add_task("One", NOW)
    vm.refresh()
    vm.update_today_search("o")

    assert seen == [1, 1, 1]

    unsubscribe()
    vm.add_task("Two", NOW)
    assert seen == [1, 1, 1]


def test_subscriber_may_start_next_operation(vm):
    """Notification runs after the operation finished, so refresh is allowed."""
    calls = []

    def on_change(model):
        calls.append("changed")
        if len(calls) == 1:
            model.refresh()

    vm.subscribe(on_change)
    vm.add_task("One", NOW)

    assert calls == ["changed", "changed"]


def test_overlapping_operation_rejected(vm, store):
    """A store that calls back into the view-model mid-write is refused."""
    task = vm.add_task("One", NOW)
    original_update = store.update

    def reentrant_update(t):
        vm.refresh()
        original_update(t)

    store.update = reentrant_update

    with pytest.raises(MasonError):
        vm.toggle_completion(task)

    assert vm.is_loading is False


def test_clear_error(failing_vm, failing_store):
    failing_store.fail_writes = True
    failing_vm.add_task("x", NOW)
    assert failing_vm.error_message

    failing_vm.clear_error()
    assert failing_vm.error_message is None


def test_last_error_wins(failing_vm, failing_store):
    failing_vm.add_task("x", NOW)
    failing_store.fail_writes = True
    failing_vm.add_task("y", NOW)
    failing_store.fail_writes = False
    failing_store.fail_reads = True
    failing_vm.refresh()

    assert failing_vm.error_message.startswith("Failed to fetch tasks")


# --- Timezone-aware input ---


def test_to_local_naive():
    aware = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)
    converted = to_local_naive(aware)

    assert converted.tzinfo is None
    assert converted == aware.astimezone().replace(tzinfo=None)
    assert to_local_naive(NOW) is NOW


def test_add_aware_date_keeps_refresh_working(vm, store):
    aware = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)
    vm.add_task("Two days ago", NOW - timedelta(days=2))

    task = vm.add_task("Call dentist", aware)

    assert vm.refresh() is True
    assert vm.error_message is None
    assert task.due_date.tzinfo is None
    assert store.get(task.id).due_date == aware.astimezone().replace(tzinfo=None)
    assert all(t.due_date.tzinfo is None for t in vm.all_tasks)


def test_update_with_aware_date(vm, store):
    task = vm.add_task("Reschedule me", NOW)
    aware = datetime(2026, 10, 25, 18, 30, tzinfo=timezone(timedelta(hours=-5)))

    assert vm.update_task(task, "Reschedule me", aware)

    assert store.get(task.id).due_date.tzinfo is None
    assert vm.refresh() is True


def test_aware_clock(store):
    def aware_clock():
        return datetime(2026, 10, 21, 12, 0, tzinfo=timezone.utc)

    model = TaskViewModel(store, clock=aware_clock)
    store.insert(Task(name="Naive", due_date=NOW - timedelta(days=3)))

    assert model.refresh() is True
    assert model.reference_now.tzinfo is None

    task = model.add_task("Now-ish")
    assert task.due_date.tzinfo is None
    assert model.move_to_today(model.previous_incomplete_tasks[0])
    assert model.previous_incomplete_tasks == []
