import asyncio
import threading
from datetime import time

import pytest

from timeflow.config import Settings
from timeflow.controller import (
    PlanningState,
    PlanReviewController,
    ReviewState,
    ScriptedSpeechCapture,
    SessionContext,
    append_utterance,
)
from timeflow.parsing import RuleBasedScheduleParser
from timeflow.review import ReviewAnalyzer
from timeflow.schema import Task

PLAN = "9am team sync for one hour, then two hours writing the report"
REVIEW = "The team sync ran on time. The report took longer than planned."


class BlockingParser:
    """Parser that waits for ``release`` so tests can observe the generating state."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def parse(self, raw_text):
        self.calls += 1
        self.release.wait(2)
        return RuleBasedScheduleParser().parse(raw_text)


class BlockingAnalyzer(ReviewAnalyzer):
    def __init__(self):
        super().__init__()
        self.release = threading.Event()
        self.snapshots = []

    def analyze(self, snapshot, narrative):
        self.snapshots.append(snapshot)
        self.release.wait(2)
        return super().analyze(snapshot, narrative)


class BrokenParser:
    def parse(self, raw_text):
        raise RuntimeError("parser crashed")


class BrokenAnalyzer(ReviewAnalyzer):
    def analyze(self, snapshot, narrative):
        raise RuntimeError("analyzer crashed")


class SilentSpeech:
    async def capture_utterance(self):
        await asyncio.sleep(1)
        return "too late"


def existing_task():
    return Task(7, time(8, 0), time(9, 0), "Breakfast", "life")


@pytest.mark.asyncio
async def test_generate_presents_timeline():
    controller = PlanReviewController()
    assert controller.planning_state is PlanningState.CAPTURING
    controller.set_plan_text(PLAN)
    assert await controller.generate() is True
    assert controller.planning_state is PlanningState.PRESENTING
    assert [task.title for task in controller.tasks] == ["Team sync", "Writing the report"]


@pytest.mark.asyncio
async def test_generate_without_text_stays_capturing():
    controller = PlanReviewController()
    controller.set_plan_text("   ")
    assert await controller.generate() is False
    assert controller.planning_state is PlanningState.CAPTURING
    assert controller.context.planning.error


@pytest.mark.asyncio
async def test_failed_generation_keeps_previous_tasks():
    controller = PlanReviewController()
    controller.set_plan_text(PLAN)
    await controller.generate()
    assert controller.edit() is True
    assert len(controller.tasks) == 2

    controller.set_plan_text("nothing much really")
    assert await controller.generate() is False
    assert controller.planning_state is PlanningState.CAPTURING
    assert "times" in controller.context.planning.error
    assert len(controller.tasks) == 2


@pytest.mark.asyncio
async def test_planning_starts_presenting_with_existing_tasks():
    context = SessionContext.start(tasks=[existing_task()])
    assert context.planning.state is PlanningState.PRESENTING
    assert await context.planning.generate() is False


@pytest.mark.asyncio
async def test_retrigger_while_generating_is_ignored_and_toggle_still_works():
    parser = BlockingParser()
    context = SessionContext.start(parser=parser, tasks=[existing_task()])
    controller = PlanReviewController(context)
    controller.edit()
    controller.set_plan_text(PLAN)
    try:
        pending = asyncio.create_task(controller.generate())
        await asyncio.sleep(0.05)
        assert controller.planning_state is PlanningState.GENERATING
        assert context.planning.can_generate is False
        assert await controller.generate() is False

        toggled = controller.toggle_status(7)
        assert toggled.is_completed
    finally:
        parser.release.set()
    assert await pending is True
    assert parser.calls == 1
    assert controller.planning_state is PlanningState.PRESENTING
    assert [task.id for task in controller.tasks] == [1, 2]


@pytest.mark.asyncio
async def test_generation_timeout_returns_to_capturing():
    parser = BlockingParser()
    context = SessionContext.start(settings=Settings(generation_timeout=0.05), parser=parser)
    controller = PlanReviewController(context)
    controller.set_plan_text(PLAN)
    try:
        assert await controller.generate() is False
    finally:
        parser.release.set()
    assert controller.planning_state is PlanningState.CAPTURING
    assert "too long" in context.planning.error
    assert controller.tasks == ()


@pytest.mark.asyncio
async def test_cancel_generation():
    parser = BlockingParser()
    controller = PlanReviewController(SessionContext.start(parser=parser))
    controller.set_plan_text(PLAN)
    try:
        pending = asyncio.create_task(controller.generate())
        await asyncio.sleep(0.05)
        assert controller.context.planning.cancel() is True
        assert await pending is False
    finally:
        parser.release.set()
    assert controller.planning_state is PlanningState.CAPTURING
    assert "cancelled" in controller.context.planning.error
    assert controller.context.planning.cancel() is False


@pytest.mark.asyncio
async def test_review_result_and_retry():
    controller = PlanReviewController()
    controller.set_plan_text(PLAN)
    await controller.generate()
    controller.toggle_status(1)

    assert await controller.analyze() is None
    assert controller.review_state is ReviewState.CAPTURING

    controller.set_review_text(REVIEW)
    report = await controller.analyze()
    assert controller.review_state is ReviewState.RESULT
    assert controller.report is report
    assert (report.completed_count, report.total_count) == (1, 2)

    assert controller.retry() is True
    assert controller.review_state is ReviewState.CAPTURING
    assert controller.report is None
    assert controller.retry() is False


@pytest.mark.asyncio
async def test_toggle_during_analysis_uses_snapshot_from_start():
    analyzer = BlockingAnalyzer()
    context = SessionContext.start(analyzer=analyzer, tasks=[existing_task()])
    controller = PlanReviewController(context)
    controller.set_review_text("Breakfast went fine.")
    try:
        pending = asyncio.create_task(controller.analyze())
        await asyncio.sleep(0.05)
        assert controller.review_state is ReviewState.ANALYZING
        assert await controller.analyze() is None
        controller.toggle_status(7)
    finally:
        analyzer.release.set()
    report = await pending
    assert report.completed_count == 0
    assert controller.tasks[0].is_completed
    assert len(analyzer.snapshots) == 1


@pytest.mark.asyncio
async def test_speech_appends_to_typed_text():
    controller = PlanReviewController()
    controller.set_plan_text("9am standup")
    assert await controller.capture_plan_speech(ScriptedSpeechCapture(["then emails for an hour"])) is True
    assert controller.context.planning.text == "9am standup then emails for an hour"
    assert controller.context.planning.listening is False


@pytest.mark.asyncio
async def test_speech_timeout_keeps_text():
    context = SessionContext.start(settings=Settings(capture_timeout=0.05))
    controller = PlanReviewController(context)
    controller.set_review_text("Long day.")
    assert await controller.capture_review_speech(SilentSpeech()) is False
    assert context.review.text == "Long day."
    assert context.review.error


@pytest.mark.asyncio
async def test_speech_ignored_outside_capturing():
    context = SessionContext.start(tasks=[existing_task()])
    controller = PlanReviewController(context)
    assert await controller.capture_plan_speech(ScriptedSpeechCapture(["ignored"])) is False
    assert context.planning.text == ""


def test_append_utterance():
    assert append_utterance("", " hello ") == "hello"
    assert append_utterance("typed", "spoken") == "typed spoken"
    assert append_utterance("typed", "") == "typed"


def test_close_clears_session():
    context = SessionContext.start(tasks=[existing_task()])
    context.close()
    assert context.closed
    assert len(context.timeline) == 0


@pytest.mark.asyncio
async def test_parser_crash_returns_to_capturing():
    controller = PlanReviewController(SessionContext.start(parser=BrokenParser()))
    controller.set_plan_text(PLAN)
    assert await controller.generate() is False
    assert controller.planning_state is PlanningState.CAPTURING
    assert controller.context.planning.error

    controller.context.planning.parser = RuleBasedScheduleParser()
    assert await controller.generate() is True


@pytest.mark.asyncio
async def test_analyzer_crash_returns_to_capturing():
    controller = PlanReviewController(SessionContext.start(analyzer=BrokenAnalyzer(), tasks=[existing_task()]))
    controller.set_review_text("Breakfast went fine.")
    assert await controller.analyze() is None
    assert controller.review_state is ReviewState.CAPTURING
    assert controller.context.review.error
    assert controller.report is None


@pytest.mark.asyncio
async def test_cancelling_the_caller_returns_to_capturing():
    parser = BlockingParser()
    controller = PlanReviewController(SessionContext.start(parser=parser))
    controller.set_plan_text(PLAN)
    try:
        pending = asyncio.create_task(controller.generate())
        await asyncio.sleep(0.05)
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending
    finally:
        parser.release.set()
    assert controller.planning_state is PlanningState.CAPTURING
    assert controller.context.planning.busy is False
    assert await controller.generate() is True
