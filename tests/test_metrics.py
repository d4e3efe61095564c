from datetime import time

import pytest

from timeflow.metrics import compute_metrics
from timeflow.schema import Task


def sample_tasks():
    return [
        Task(1, time(9, 0), time(10, 0), "Team sync", "work", "completed"),
        Task(2, time(10, 0), time(12, 0), "Report", "work"),
        Task(3, time(16, 0), time(16, 30), "Run", "health", "completed"),
        Task(4, time(20, 0), time(21, 0), "Read", "growth"),
    ]


def test_compute_metrics():
    metrics = compute_metrics(sample_tasks())
    assert metrics["total_tasks"] == 4
    assert metrics["completed_tasks"] == 2
    assert metrics["completion_rate"] == 0.5
    assert metrics["planned_hours"] == pytest.approx(4.5)
    assert metrics["completed_hours"] == pytest.approx(1.5)
    assert metrics["hours_by_category"] == {"work": 3.0, "life": 0.0, "health": 0.5, "growth": 1.0}
    assert metrics["completion_by_category"] == {"work": 0.5, "health": 1.0, "growth": 0.0}
    assert sum(metrics["category_share"].values()) == pytest.approx(1.0)


def test_compute_metrics_empty():
    metrics = compute_metrics([])
    assert metrics["completion_rate"] == 0.0
    assert metrics["planned_hours"] == 0.0
    assert set(metrics["hours_by_category"]) == {"work", "life", "health", "growth"}
