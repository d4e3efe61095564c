"""Error conditions raised by the planning and review core."""

from __future__ import annotations


class TimeflowError(Exception):
    """Base class for recoverable planning/review failures."""


class NoSchedulableContent(TimeflowError, ValueError):
    """No clause of the plan text carried a usable time anchor."""

    def __init__(self, message: str = "No schedulable activity found in the plan text") -> None:
        super().__init__(message)
        self.tasks: list = []


class InvalidRange(TimeflowError, ValueError):
    """A time range could not be turned into a duration."""


class InsufficientInput(TimeflowError, ValueError):
    """Review analysis was requested with neither tasks nor narrative."""


class UnknownTaskId(TimeflowError, KeyError):
    """A task id is not present on the current timeline."""
