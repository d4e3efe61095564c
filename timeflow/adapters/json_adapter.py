"""JSON adapter for a saved session: the timeline plus the latest review report."""

from __future__ import annotations

import json
from typing import Optional, Sequence

from timeflow.duration import format_clock, parse_clock
from timeflow.errors import InvalidRange
from timeflow.schema import Insight, ReviewReport, Task

FORMAT_VERSION = 1

_REQUIRED_FIELDS = {"id", "start_time", "end_time", "title"}
_INSIGHT_FIELDS = ("title", "detail", "category", "window")


def task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "start_time": format_clock(task.start_time),
        "end_time": format_clock(task.end_time),
        "title": task.title,
        "category": task.category,
        "status": task.status,
    }


def report_to_dict(report: ReviewReport) -> dict:
    return {
        "completed_count": report.completed_count,
        "total_count": report.total_count,
        "score": report.score,
        "highlights": [{name: getattr(item, name) for name in _INSIGHT_FIELDS} for item in report.highlights],
        "suggestions": [{name: getattr(item, name) for name in _INSIGHT_FIELDS} for item in report.suggestions],
        "summary": report.summary,
    }


def _parse_item(item: dict, index: int) -> Task:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")
    missing = sorted(field for field in _REQUIRED_FIELDS if item.get(field) in (None, ""))
    if missing:
        raise ValueError(f"Item {index}: missing required fields {missing}")

    try:
        start_time = parse_clock(str(item["start_time"]))
        end_time = parse_clock(str(item["end_time"]))
    except InvalidRange as exc:
        raise ValueError(f"Item {index}: malformed time") from exc

    try:
        task_id = int(item["id"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Item {index}: invalid id") from exc

    try:
        return Task(
            id=task_id,
            start_time=start_time,
            end_time=end_time,
            title=str(item["title"]).strip(),
            category=str(item.get("category") or "work").strip(),
            status=str(item.get("status") or "pending").strip(),
        )
    except ValueError as exc:
        raise ValueError(f"Item {index}: {exc}") from exc


def _parse_insights(items, key: str) -> tuple[Insight, ...]:
    if not isinstance(items, list):
        raise ValueError(f"Report field '{key}' must be a list")
    insights = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict) or not item.get("title"):
            raise ValueError(f"Report {key} {index}: missing title")
        insights.append(
            Insight(
                title=str(item["title"]),
                detail=str(item.get("detail") or ""),
                category=item.get("category"),
                window=item.get("window"),
            )
        )
    return tuple(insights)


def _parse_report(payload: dict) -> ReviewReport:
    if not isinstance(payload, dict):
        raise ValueError("Report must be an object")
    try:
        completed = int(payload["completed_count"])
        total = int(payload["total_count"])
        score = int(payload["score"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Report: missing or invalid counts/score") from exc
    if not 0 <= score <= 100 or not 0 <= completed <= total:
        raise ValueError("Report: counts or score out of range")
    return ReviewReport(
        completed_count=completed,
        total_count=total,
        score=score,
        highlights=_parse_insights(payload.get("highlights", []), "highlights"),
        suggestions=_parse_insights(payload.get("suggestions", []), "suggestions"),
        summary=str(payload.get("summary") or ""),
    )


def dumps_session(tasks: Sequence[Task], report: Optional[ReviewReport] = None) -> str:
    payload = {
        "version": FORMAT_VERSION,
        "tasks": [task_to_dict(task) for task in tasks],
        "report": report_to_dict(report) if report is not None else None,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def loads_session(text: str) -> tuple[list[Task], Optional[ReviewReport]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Session file is not valid JSON") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("tasks"), list):
        raise ValueError("JSON payload must be an object with a 'tasks' list")

    tasks = [_parse_item(item, i) for i, item in enumerate(payload["tasks"], start=1)]
    if len({task.id for task in tasks}) != len(tasks):
        raise ValueError("Duplicate task ids in session file")
    report = payload.get("report")
    return tasks, (_parse_report(report) if report is not None else None)


def dump_session(file_path: str, tasks: Sequence[Task], report: Optional[ReviewReport] = None) -> None:
    """Write the timeline and the latest report to ``file_path``."""

    with open(file_path, "w", encoding="utf-8") as handle:
        handle.write(dumps_session(tasks, report))


def load_session(file_path: str) -> tuple[list[Task], Optional[ReviewReport]]:
    """Read a session written by ``dump_session``."""

    with open(file_path, encoding="utf-8") as handle:
        return loads_session(handle.read())
