"""Timeline statistics for the profile view."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from timeflow.duration import safe_duration
from timeflow.schema import CATEGORIES, Task


def completion_ratio(tasks: Iterable[Task]) -> float:
    tasks = list(tasks)
    if not tasks:
        return 0.0
    return sum(1 for task in tasks if task.is_completed) / len(tasks)


def compute_metrics(tasks: Iterable[Task]) -> dict:
    """Compute completion, focus hours and category distribution."""

    tasks = list(tasks)
    if not tasks:
        return {
            "total_tasks": 0,
            "completed_tasks": 0,
            "completion_rate": 0.0,
            "planned_hours": 0.0,
            "completed_hours": 0.0,
            "hours_by_category": {category: 0.0 for category in CATEGORIES},
            "completion_by_category": {},
            "category_share": {category: 0.0 for category in CATEGORIES},
        }

    hours_by_category = defaultdict(float)
    done_by_category = defaultdict(int)
    total_by_category = defaultdict(int)
    completed_hours = 0.0
    for task in tasks:
        hours = float(safe_duration(task.start_time, task.end_time))
        hours_by_category[task.category] += hours
        total_by_category[task.category] += 1
        if task.is_completed:
            done_by_category[task.category] += 1
            completed_hours += hours

    planned_hours = sum(hours_by_category.values())
    return {
        "total_tasks": len(tasks),
        "completed_tasks": sum(done_by_category.values()),
        "completion_rate": completion_ratio(tasks),
        "planned_hours": planned_hours,
        "completed_hours": completed_hours,
        "hours_by_category": {category: hours_by_category[category] for category in CATEGORIES},
        "completion_by_category": {
            category: done_by_category[category] / total
            for category, total in sorted(total_by_category.items(), key=lambda item: CATEGORIES.index(item[0]))
        },
        "category_share": {
            category: (hours_by_category[category] / planned_hours if planned_hours else 0.0)
            for category in CATEGORIES
        },
    }
