"""Planning and review flows driven by user actions.

Both flows are small state machines with one asynchronous suspension point
each (schedule generation, review analysis). The blocking work runs in a
worker thread under a timeout; while it is in flight, re-triggering the
same action is ignored, but other actions (such as toggling a task) remain
available.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Protocol

from timeflow.config import Settings
from timeflow.errors import InsufficientInput, NoSchedulableContent
from timeflow.parsing import RuleBasedScheduleParser, ScheduleParser, parse_schedule
from timeflow.review import ReviewAnalyzer
from timeflow.schema import ReviewReport, Task
from timeflow.timeline import TimelineStore

logger = logging.getLogger(__name__)


class PlanningState(Enum):
    CAPTURING = "capturing"
    GENERATING = "generating"
    PRESENTING = "presenting"


class ReviewState(Enum):
    CAPTURING = "capturing"
    ANALYZING = "analyzing"
    RESULT = "result"


class SpeechCapture(Protocol):
    """Black-box speech collaborator that eventually yields text."""

    async def capture_utterance(self) -> str:
        ...


class ScriptedSpeechCapture:
    """Replays canned utterances after a short delay, like a simulated microphone."""

    def __init__(self, utterances: Iterable[str], delay: float = 0.0) -> None:
        self._utterances = list(utterances)
        self.delay = delay

    async def capture_utterance(self) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self._utterances:
            return ""
        return self._utterances.pop(0)


def append_utterance(text: str, utterance: str) -> str:
    """Append captured speech to typed text, separated by one space."""

    utterance = (utterance or "").strip()
    if not utterance:
        return text
    return f"{text} {utterance}" if text else utterance


class _Flow:
    """Text capture, speech capture and in-flight bookkeeping shared by both flows."""

    capturing_state: Enum

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.text = ""
        self.error: Optional[str] = None
        self.listening = False
        self._inflight: Optional[asyncio.Future] = None
        self._cancelled = False

    @property
    def busy(self) -> bool:
        return self._inflight is not None

    def set_text(self, text: str) -> None:
        self.text = text or ""

    def append_text(self, text: str) -> None:
        self.text = append_utterance(self.text, text)

    async def capture_speech(self, speech: SpeechCapture) -> bool:
        """Append one utterance from ``speech``; only while capturing."""

        if self.state is not self.capturing_state or self.listening:
            return False
        self.listening = True
        try:
            utterance = await asyncio.wait_for(speech.capture_utterance(), self.settings.capture_timeout)
        except asyncio.TimeoutError:
            logger.warning("Speech capture timed out after %.1fs", self.settings.capture_timeout)
            self.error = "Didn't catch that. Please try again or type instead."
            return False
        finally:
            self.listening = False
        self.append_text(utterance)
        return True

    def cancel(self) -> bool:
        """Cancel the in-flight operation, if any."""

        if self._inflight is None:
            return False
        self._cancelled = True
        self._inflight.cancel()
        return True

    async def _run(self, func, *args, timeout: float):
        self._cancelled = False
        self._inflight = asyncio.ensure_future(asyncio.wait_for(asyncio.to_thread(func, *args), timeout))
        try:
            return await self._inflight
        finally:
            self._inflight = None

    def _fail(self, message: str) -> None:
        self.error = message
        self.state = self.capturing_state


class PlanningFlow(_Flow):
    """``Capturing -> Generating -> Presenting``, with ``edit`` going back to capturing."""

    capturing_state = PlanningState.CAPTURING

    def __init__(self, timeline: TimelineStore, parser: ScheduleParser, settings: Settings) -> None:
        super().__init__(settings)
        self.timeline = timeline
        self.parser = parser
        self.state = PlanningState.PRESENTING if len(timeline) else PlanningState.CAPTURING

    @property
    def can_generate(self) -> bool:
        return self.state is PlanningState.CAPTURING and bool(self.text.strip()) and not self.busy

    async def generate(self) -> bool:
        """Parse the captured text and, on success, replace the timeline."""

        if self.state is not PlanningState.CAPTURING or self.busy:
            logger.debug("Ignoring generate in state %s", self.state.value)
            return False
        text = self.text.strip()
        if not text:
            self.error = "Tell me about your day first."
            return False

        self.state = PlanningState.GENERATING
        self.error = None
        try:
            tasks = await self._run(parse_schedule, text, self.parser, timeout=self.settings.generation_timeout)
            self.timeline.replace_all(tasks)
        except NoSchedulableContent:
            self._fail("I couldn't find any times in that plan. Try adding when each activity starts.")
            return False
        except asyncio.TimeoutError:
            logger.warning("Schedule generation timed out after %.1fs", self.settings.generation_timeout)
            self._fail("Planning took too long. Please try again.")
            return False
        except asyncio.CancelledError:
            if not self._cancelled:
                self.state = PlanningState.CAPTURING
                raise
            self._fail("Planning was cancelled.")
            return False
        except Exception:
            logger.exception("Schedule generation failed")
            self._fail("Something went wrong while planning. Please try again.")
            return False

        self.state = PlanningState.PRESENTING
        return True

    def edit(self) -> bool:
        """Return to capturing; the current tasks stay until the next generation succeeds."""

        if self.state is not PlanningState.PRESENTING:
            return False
        self.state = PlanningState.CAPTURING
        self.error = None
        return True


class ReviewFlow(_Flow):
    """``Capturing -> Analyzing -> Result``, with ``retry`` going back to capturing."""

    capturing_state = ReviewState.CAPTURING

    def __init__(self, timeline: TimelineStore, analyzer: ReviewAnalyzer, settings: Settings) -> None:
        super().__init__(settings)
        self.timeline = timeline
        self.analyzer = analyzer
        self.state = ReviewState.CAPTURING
        self.report: Optional[ReviewReport] = None

    @property
    def can_analyze(self) -> bool:
        return self.state is ReviewState.CAPTURING and bool(self.text.strip()) and not self.busy

    async def analyze(self) -> Optional[ReviewReport]:
        """Score the narrative against the timeline as it is right now."""

        if self.state is not ReviewState.CAPTURING or self.busy:
            logger.debug("Ignoring analyze in state %s", self.state.value)
            return None
        text = self.text.strip()
        if not text:
            self.error = "Tell me how the day went first."
            return None

        self.state = ReviewState.ANALYZING
        self.error = None
        snapshot = self.timeline.snapshot()
        try:
            report = await self._run(self.analyzer.analyze, snapshot, text, timeout=self.settings.analysis_timeout)
        except InsufficientInput as exc:
            self._fail(str(exc))
            return None
        except asyncio.TimeoutError:
            logger.warning("Review analysis timed out after %.1fs", self.settings.analysis_timeout)
            self._fail("Analysis took too long. Please try again.")
            return None
        except asyncio.CancelledError:
            if not self._cancelled:
                self.state = ReviewState.CAPTURING
                raise
            self._fail("Analysis was cancelled.")
            return None
        except Exception:
            logger.exception("Review analysis failed")
            self._fail("Something went wrong while analyzing. Please try again.")
            return None

        self.report = report
        self.state = ReviewState.RESULT
        return report

    def retry(self) -> bool:
        """Discard the report and go back to capturing."""

        if self.state is not ReviewState.RESULT:
            return False
        self.report = None
        self.error = None
        self.state = ReviewState.CAPTURING
        return True


@dataclass
class SessionContext:
    """Everything one user session owns: timeline, flows and settings."""

    settings: Settings
    timeline: TimelineStore
    planning: PlanningFlow
    review: ReviewFlow
    closed: bool = field(default=False)

    @classmethod
    def start(
        cls,
        settings: Optional[Settings] = None,
        parser: Optional[ScheduleParser] = None,
        analyzer: Optional[ReviewAnalyzer] = None,
        tasks: Iterable[Task] = (),
    ) -> "SessionContext":
        settings = settings or Settings()
        timeline = TimelineStore(tasks)
        parser = parser or RuleBasedScheduleParser(settings.default_duration_minutes)
        analyzer = analyzer or ReviewAnalyzer(settings)
        return cls(
            settings=settings,
            timeline=timeline,
            planning=PlanningFlow(timeline, parser, settings),
            review=ReviewFlow(timeline, analyzer, settings),
        )

    def close(self) -> None:
        self.planning.cancel()
        self.review.cancel()
        self.timeline.clear()
        self.review.report = None
        self.closed = True


class PlanReviewController:
    """Actions the presentation layer may request."""

    def __init__(self, context: Optional[SessionContext] = None) -> None:
        self.context = context or SessionContext.start()

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.context.timeline.snapshot()

    @property
    def report(self) -> Optional[ReviewReport]:
        return self.context.review.report

    @property
    def planning_state(self) -> PlanningState:
        return self.context.planning.state

    @property
    def review_state(self) -> ReviewState:
        return self.context.review.state

    def toggle_status(self, task_id: int) -> Optional[Task]:
        return self.context.timeline.toggle_status(task_id)

    def set_plan_text(self, text: str) -> None:
        self.context.planning.set_text(text)

    def set_review_text(self, text: str) -> None:
        self.context.review.set_text(text)

    async def capture_plan_speech(self, speech: SpeechCapture) -> bool:
        return await self.context.planning.capture_speech(speech)

    async def capture_review_speech(self, speech: SpeechCapture) -> bool:
        return await self.context.review.capture_speech(speech)

    async def generate(self) -> bool:
        return await self.context.planning.generate()

    def edit(self) -> bool:
        return self.context.planning.edit()

    async def analyze(self) -> Optional[ReviewReport]:
        return await self.context.review.analyze()

    def retry(self) -> bool:
        return self.context.review.retry()
