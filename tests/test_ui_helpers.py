from ui_demo_streamlit.app import SAMPLE_PLAN, SAMPLE_REVIEW, run_session


def test_run_session_end_to_end():
    payload = run_session(SAMPLE_PLAN, SAMPLE_REVIEW, completed_ids=[1, 2, 3])
    assert payload["planning_state"] == "presenting"
    assert payload["review_state"] == "result"
    assert payload["error"] is None
    assert [row["time"] for row in payload["timeline"]] == [
        "09:00-10:00",
        "10:00-12:00",
        "12:00-13:00",
        "14:00-15:00",
        "16:00-17:00",
        "19:00-20:00",
    ]
    assert payload["timeline"][0]["done"] is True
    assert payload["metrics"]["completed_tasks"] == 3
    assert payload["report"]["progress"] == "3/6"
    assert 0 <= payload["report"]["score"] <= 100


def test_run_session_reports_unschedulable_plan():
    payload = run_session("just vibes")
    assert payload["planning_state"] == "capturing"
    assert payload["error"]
    assert payload["timeline"] == []
    assert payload["report"] is None
