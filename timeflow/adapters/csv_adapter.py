"""CSV adapter for exporting and re-importing a timeline."""

from __future__ import annotations

import csv
from typing import Sequence

from timeflow.duration import format_clock, parse_clock
from timeflow.errors import InvalidRange
from timeflow.schema import Task

FIELDS = ["id", "start_time", "end_time", "title", "category", "status"]
_REQUIRED_FIELDS = {"id", "start_time", "end_time", "title"}


def _parse_row(row: dict, row_number: int) -> Task:
    missing = sorted(field for field in _REQUIRED_FIELDS if not row.get(field))
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    try:
        start_time = parse_clock(row["start_time"])
        end_time = parse_clock(row["end_time"])
    except InvalidRange as exc:
        raise ValueError(f"Row {row_number}: malformed time") from exc

    try:
        task_id = int(row["id"])
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: invalid id '{row['id']}'") from exc

    try:
        return Task(
            id=task_id,
            start_time=start_time,
            end_time=end_time,
            title=row["title"].strip(),
            category=(row.get("category") or "work").strip(),
            status=(row.get("status") or "pending").strip(),
        )
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: {exc}") from exc


def parse(file_path: str) -> list[Task]:
    """Parse a CSV file into timeline tasks."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        tasks: list[Task] = []
        for row_number, row in enumerate(reader, start=2):
            tasks.append(_parse_row(row, row_number))
        return tasks


def dump_timeline(file_path: str, tasks: Sequence[Task]) -> None:
    """Write tasks to CSV in timeline order."""

    with open(file_path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDS)
        writer.writeheader()
        for task in tasks:
            writer.writerow(
                {
                    "id": task.id,
                    "start_time": format_clock(task.start_time),
                    "end_time": format_clock(task.end_time),
                    "title": task.title,
                    "category": task.category,
                    "status": task.status,
                }
            )
