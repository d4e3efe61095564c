"""Streamlit demo UI for timeflow."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional, Sequence

from timeflow.controller import PlanningState, PlanReviewController, ReviewState, ScriptedSpeechCapture, SessionContext
from timeflow.duration import format_hours, safe_duration
from timeflow.metrics import compute_metrics
from timeflow.schema import ReviewReport, Task

SAMPLE_PLAN = "9am team sync for one hour, then two hours writing the report. Lunch at noon, 2pm competitor analysis, 4pm gym run, read a book in the evening."
SAMPLE_REVIEW = "The team sync was on time but the report went slowly and dragged until 1pm. Competitor analysis was half done, went to the gym, read for 30 minutes tonight."

CATEGORY_LABELS = {"work": "Work", "life": "Life", "health": "Health", "growth": "Growth"}


def timeline_rows(tasks: Sequence[Task]) -> list[dict[str, Any]]:
    """Flatten tasks into table rows."""

    return [
        {
            "id": task.id,
            "time": task.window,
            "title": task.title,
            "category": CATEGORY_LABELS[task.category],
            "hours": format_hours(safe_duration(task.start_time, task.end_time)),
            "done": task.is_completed,
        }
        for task in tasks
    ]


def report_payload(report: ReviewReport) -> dict[str, Any]:
    return {
        "score": report.score,
        "progress": f"{report.completed_count}/{report.total_count}",
        "summary": report.summary,
        "highlights": [f"{item.title}: {item.detail}" for item in report.highlights],
        "suggestions": [f"{item.title}: {item.detail}" for item in report.suggestions],
    }


async def _drive(controller: PlanReviewController, plan_text: str, review_text: str, completed_ids: Iterable[int]) -> None:
    controller.set_plan_text(plan_text)
    await controller.generate()
    if controller.planning_state is not PlanningState.PRESENTING:
        return
    for task_id in completed_ids:
        controller.toggle_status(task_id)
    if review_text.strip():
        controller.set_review_text(review_text)
        await controller.analyze()


def run_session(plan_text: str, review_text: str = "", completed_ids: Iterable[int] = ()) -> dict[str, Any]:
    """Run plan -> toggle -> review end to end and return a UI-friendly payload."""

    controller = PlanReviewController(SessionContext.start())
    asyncio.run(_drive(controller, plan_text, review_text, completed_ids))
    report: Optional[ReviewReport] = controller.report
    return {
        "planning_state": controller.planning_state.value,
        "review_state": controller.review_state.value,
        "error": controller.context.planning.error or controller.context.review.error,
        "timeline": timeline_rows(controller.tasks),
        "metrics": compute_metrics(controller.tasks),
        "report": report_payload(report) if report is not None else None,
    }


def _controller(st) -> PlanReviewController:
    if "controller" not in st.session_state:
        st.session_state["controller"] = PlanReviewController(SessionContext.start())
    return st.session_state["controller"]


def _plan_tab(st, controller: PlanReviewController) -> None:
    flow = controller.context.planning
    if flow.state is PlanningState.CAPTURING:
        st.subheader("What do you want to do today?")
        text = st.text_area("Plan", value=flow.text, placeholder="e.g. 9am meeting, then two hours on the report")
        controller.set_plan_text(text)
        c1, c2 = st.columns([1, 3])
        if c1.button("Dictate sample"):
            asyncio.run(controller.capture_plan_speech(ScriptedSpeechCapture([SAMPLE_PLAN])))
            st.rerun()
        if c2.button("Generate today's plan", type="primary", disabled=not flow.can_generate):
            with st.spinner("Planning..."):
                asyncio.run(controller.generate())
            st.rerun()
        if flow.error:
            st.error(flow.error)
        return

    tasks = controller.tasks
    done = sum(1 for task in tasks if task.is_completed)
    st.subheader("Today's schedule")
    st.progress(done / len(tasks) if tasks else 0.0)
    for row in timeline_rows(tasks):
        checked = st.checkbox(
            f"{row['time']}  {row['title']}  [{row['category']}, {row['hours']} h]",
            value=row["done"],
            key=f"task-{row['id']}",
        )
        if checked != row["done"]:
            controller.toggle_status(row["id"])
            st.rerun()
    if st.button("Edit plan"):
        controller.edit()
        st.rerun()


def _review_tab(st, controller: PlanReviewController) -> None:
    flow = controller.context.review
    if flow.state is ReviewState.RESULT and controller.report is not None:
        payload = report_payload(controller.report)
        st.metric("Efficiency score", f"{payload['score']}/100", payload["progress"])
        st.write(payload["summary"])
        st.write("**Highlights**")
        for line in payload["highlights"]:
            st.success(line)
        st.write("**Suggestions**")
        for line in payload["suggestions"]:
            st.warning(line)
        if st.button("Retry"):
            controller.retry()
            st.rerun()
        return

    tasks = controller.tasks
    done = sum(1 for task in tasks if task.is_completed)
    st.subheader("Daily review")
    st.caption(f"Completed {done}/{len(tasks)}. How did today go?")
    text = st.text_area("Review", value=flow.text)
    controller.set_review_text(text)
    c1, c2 = st.columns([1, 3])
    if c1.button("Dictate review"):
        asyncio.run(controller.capture_review_speech(ScriptedSpeechCapture([SAMPLE_REVIEW])))
        st.rerun()
    if c2.button("Analyze", type="primary", disabled=not flow.can_analyze):
        with st.spinner("Comparing plan and reality..."):
            asyncio.run(controller.analyze())
        st.rerun()
    if flow.error:
        st.error(flow.error)


def _profile_tab(st, controller: PlanReviewController) -> None:
    metrics = compute_metrics(controller.tasks)
    c1, c2, c3 = st.columns(3)
    c1.metric("Completion", f"{metrics['completion_rate'] * 100:.0f}%")
    c2.metric("Planned hours", format_hours(round(metrics["planned_hours"], 1)))
    c3.metric("Focus hours", format_hours(round(metrics["completed_hours"], 1)))
    st.bar_chart({CATEGORY_LABELS[name]: hours for name, hours in metrics["hours_by_category"].items()})


def main() -> None:
    import streamlit as st

    st.set_page_config(page_title="TimeFlow Demo", layout="centered")
    st.title("TimeFlow")
    controller = _controller(st)

    plan, review, profile = st.tabs(["Plan", "Review", "Profile"])
    try:
        with plan:
            _plan_tab(st, controller)
        with review:
            _review_tab(st, controller)
        with profile:
            _profile_tab(st, controller)
    except ValueError as exc:
        st.error(f"Input error: {exc}")


if __name__ == "__main__":
    main()
