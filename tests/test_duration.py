from datetime import time

import pytest

from timeflow.duration import duration, format_hours, parse_clock, safe_duration
from timeflow.errors import InvalidRange
from timeflow.schema import Task


def test_duration_fractional_and_whole_hours():
    assert duration("09:00", "10:30") == 1.5
    assert duration("09:00", "10:00") == 1
    assert isinstance(duration("09:00", "10:00"), int)
    assert duration(time(9, 0), time(9, 20)) == 0.3


def test_duration_rejects_end_before_start():
    with pytest.raises(InvalidRange):
        duration("23:00", "01:00")


def test_safe_duration_falls_back_to_one_hour():
    assert safe_duration("23:00", "01:00") == 1
    assert safe_duration("bad", "10:00") == 1
    assert safe_duration("23:00", "01:00", fallback=0.5) == 0.5


def test_format_hours():
    assert format_hours(2) == "2"
    assert format_hours(2.0) == "2"
    assert format_hours(1.5) == "1.5"


def test_parse_clock_malformed():
    with pytest.raises(InvalidRange):
        parse_clock("25:00")


def test_task_validation():
    with pytest.raises(ValueError):
        Task(1, time(10, 0), time(9, 0), "Backwards")
    with pytest.raises(ValueError):
        Task(1, time(9, 0), time(10, 0), "Chores", category="errands")
    with pytest.raises(ValueError):
        Task(1, time(9, 0), time(10, 0), "  ")
    task = Task(1, time(9, 0), time(10, 0), "Standup")
    assert task.status == "pending"
    assert task.toggled().is_completed
    assert task.window == "09:00-10:00"
