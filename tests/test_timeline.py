from datetime import time

import pytest

from timeflow.errors import UnknownTaskId
from timeflow.schema import Task
from timeflow.timeline import TimelineStore


def sample_tasks():
    return [
        Task(3, time(14, 0), time(15, 0), "Competitor analysis", "work"),
        Task(1, time(9, 0), time(10, 0), "Team sync", "work"),
        Task(2, time(10, 0), time(12, 0), "Write report", "work"),
        Task(4, time(16, 0), time(17, 0), "Gym", "health"),
        Task(5, time(12, 0), time(13, 0), "Lunch", "life"),
        Task(6, time(20, 0), time(21, 0), "Read", "growth"),
    ]


def test_replace_all_orders_by_start():
    store = TimelineStore(sample_tasks())
    assert [task.id for task in store] == [1, 2, 5, 3, 4, 6]
    assert len(store) == 6


def test_toggle_twice_restores_status():
    store = TimelineStore(sample_tasks())
    before = store.snapshot()
    toggled = store.toggle_status(2)
    assert toggled is not None and toggled.is_completed
    assert store.completed_count == 1
    store.toggle_status(2)
    assert store.snapshot() == before


def test_toggle_unknown_id_is_a_no_op():
    store = TimelineStore(sample_tasks())
    events = []
    store.subscribe(events.append)
    before = store.snapshot()
    assert store.toggle_status(99) is None
    assert store.snapshot() == before
    assert events == []
    with pytest.raises(UnknownTaskId):
        store.require(99)


def test_completion_ratio():
    assert TimelineStore().completion_ratio() == 0.0

    store = TimelineStore(sample_tasks())
    for task_id in (1, 2, 3, 5):
        store.toggle_status(task_id)
    assert store.completed_count == 4
    assert store.total_count == 6
    assert store.completion_ratio() == pytest.approx(4 / 6)


def test_subscribers_see_each_mutation():
    store = TimelineStore()
    events = []
    unsubscribe = store.subscribe(events.append)
    store.replace_all(sample_tasks())
    store.toggle_status(1)
    assert len(events) == 2
    assert events[-1][0].is_completed

    unsubscribe()
    store.clear()
    assert len(events) == 2
    assert len(store) == 0


def test_duplicate_ids_rejected():
    tasks = sample_tasks()
    tasks.append(Task(1, time(21, 0), time(22, 0), "Journal", "growth"))
    store = TimelineStore()
    with pytest.raises(ValueError):
        store.replace_all(tasks)
    assert len(store) == 0
