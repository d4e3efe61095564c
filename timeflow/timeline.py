"""Owner of today's timeline and its completion state."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, Optional

from timeflow.errors import UnknownTaskId
from timeflow.schema import Task

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Task, ...]], None]


class TimelineStore:
    """Mutable, chronologically ordered collection of the day's tasks.

    Listeners registered with ``subscribe`` receive the new snapshot after
    every mutation.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: list[Task] = []
        self._listeners: list[Listener] = []
        if tasks:
            self.replace_all(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(tuple(self._tasks))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Replace the whole timeline with ``tasks`` (sorted by start time, stable)."""

        incoming = sorted(tasks, key=lambda task: task.start_time)
        ids = [task.id for task in incoming]
        if len(set(ids)) != len(ids):
            raise ValueError("Task ids must be unique within a timeline")
        self._tasks = incoming
        self._notify()

    def clear(self) -> None:
        self._tasks = []
        self._notify()

    def get(self, task_id: int) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def require(self, task_id: int) -> Task:
        task = self.get(task_id)
        if task is None:
            raise UnknownTaskId(task_id)
        return task

    def toggle_status(self, task_id: int) -> Optional[Task]:
        """Flip a task between pending and completed.

        Unknown ids are ignored and return ``None``.
        """

        try:
            task = self.require(task_id)
        except UnknownTaskId:
            logger.debug("Ignoring toggle for unknown task id %r", task_id)
            return None
        toggled = task.toggled()
        self._tasks[self._tasks.index(task)] = toggled
        self._notify()
        return toggled

    def snapshot(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def total_count(self) -> int:
        return len(self._tasks)

    @property
    def completed_count(self) -> int:
        return sum(1 for task in self._tasks if task.is_completed)

    def completion_ratio(self) -> float:
        """Completed over total; 0.0 for an empty timeline."""

        if not self._tasks:
            return 0.0
        return self.completed_count / self.total_count
