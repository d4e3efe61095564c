import json
from datetime import time

import pytest

from timeflow.adapters.csv_adapter import dump_timeline, parse
from timeflow.adapters.json_adapter import dump_session, load_session, loads_session
from timeflow.review import analyze_review
from timeflow.schema import Task


def sample_tasks():
    return [
        Task(1, time(9, 0), time(10, 0), "Team sync", "work", "completed"),
        Task(2, time(10, 0), time(12, 0), "写完项目报告", "work"),
        Task(3, time(20, 0), time(21, 0), "Read", "growth"),
    ]


def test_json_session_survives_save_and_load(tmp_path):
    tasks = sample_tasks()
    report = analyze_review(tasks, "The team sync ran on time.")
    path = tmp_path / "session.json"
    dump_session(str(path), tasks, report)

    loaded_tasks, loaded_report = load_session(str(path))
    assert loaded_tasks == tasks
    assert loaded_report == report
    assert "写完项目报告" in path.read_text(encoding="utf-8")


def test_json_session_without_report():
    payload = {"version": 1, "tasks": [{"id": 1, "start_time": "09:00", "end_time": "10:00", "title": "Sync"}]}
    tasks, report = loads_session(json.dumps(payload))
    assert report is None
    assert tasks[0].category == "work"
    assert tasks[0].status == "pending"


def test_json_rejects_bad_items():
    with pytest.raises(ValueError, match="Item 1"):
        loads_session(json.dumps({"tasks": [{"id": 1, "start_time": "09:00", "title": "No end"}]}))
    with pytest.raises(ValueError, match="Item 1"):
        loads_session(json.dumps({"tasks": [{"id": 1, "start_time": "10:00", "end_time": "09:00", "title": "Backwards"}]}))
    with pytest.raises(ValueError, match="not valid JSON"):
        loads_session("{")
    with pytest.raises(ValueError, match="Duplicate"):
        loads_session(
            json.dumps(
                {
                    "tasks": [
                        {"id": 1, "start_time": "09:00", "end_time": "10:00", "title": "A"},
                        {"id": 1, "start_time": "11:00", "end_time": "12:00", "title": "B"},
                    ]
                }
            )
        )


def test_json_rejects_out_of_range_report():
    payload = {"tasks": [], "report": {"completed_count": 0, "total_count": 0, "score": 140}}
    with pytest.raises(ValueError, match="out of range"):
        loads_session(json.dumps(payload))


def test_csv_timeline_survives_dump_and_parse(tmp_path):
    path = tmp_path / "timeline.csv"
    dump_timeline(str(path), sample_tasks())
    assert parse(str(path)) == sample_tasks()


def test_csv_reports_bad_rows(tmp_path):
    path = tmp_path / "timeline.csv"
    path.write_text(
        "id,start_time,end_time,title,category,status\n"
        "1,09:00,10:00,Sync,work,pending\n"
        "2,25:00,26:00,Nope,work,pending\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="Row 3"):
        parse(str(path))

    path.write_text("id,start_time,end_time,title\n1,09:00,10:00,Sync\n", encoding="utf-8")
    assert parse(str(path))[0].category == "work"
