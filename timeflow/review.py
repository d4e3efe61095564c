"""Plan-versus-execution scoring and insight generation."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional, Sequence

from timeflow.config import ScoringWeights, Settings
from timeflow.errors import InsufficientInput
from timeflow.features import NEGATIVE_KINDS, POSITIVE_KINDS, NarrativeSignal, extract_signals
from timeflow.lexicon import cue_category
from timeflow.metrics import completion_ratio
from timeflow.schema import CATEGORIES, Insight, ReviewReport, Task

logger = logging.getLogger(__name__)


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def tally_signals(tasks: Sequence[Task], signals: Sequence[NarrativeSignal]) -> dict:
    """Collapse signals into per-task kinds; each (task, kind) pair counts once."""

    known = {task.id for task in tasks}
    by_task: dict[int, set] = defaultdict(set)
    until: dict[int, int] = {}
    unmatched: set = set()
    extras: list[NarrativeSignal] = []
    for signal in signals:
        if "extra" in signal.kinds and signal.task_id is None:
            extras.append(signal)
        if signal.task_id in known:
            by_task[signal.task_id].update(signal.kinds)
            if signal.until is not None:
                until[signal.task_id] = max(until.get(signal.task_id, 0), signal.until)
        else:
            unmatched.update(signal.kinds - {"extra"})

    counts = defaultdict(int)
    for kinds in by_task.values():
        for kind in kinds:
            counts[kind] += 1
    for kind in unmatched:
        counts[kind] += 1

    completed = {task.id for task in tasks if task.is_completed}
    contradictions = sorted(
        task_id for task_id, kinds in by_task.items() if task_id in completed and kinds & {"skipped", "partial"}
    )
    return {
        "by_task": {task_id: frozenset(kinds) for task_id, kinds in sorted(by_task.items())},
        "until": until,
        "counts": dict(counts),
        "extras": extras,
        "contradictions": contradictions,
    }


def narrative_ratio(signals: Sequence[NarrativeSignal]) -> float:
    """Completion estimate from the narrative alone, used when there is no timeline."""

    positive = sum(1 for signal in signals if signal.kinds & POSITIVE_KINDS and not signal.kinds & NEGATIVE_KINDS)
    negative = sum(1 for signal in signals if signal.kinds & NEGATIVE_KINDS)
    if positive + negative == 0:
        return 0.5
    return positive / (positive + negative)


def score_review(
    tasks: Sequence[Task],
    signals: Sequence[NarrativeSignal],
    weights: Optional[ScoringWeights] = None,
    return_components: bool = False,
):
    """Compute a bounded 0-100 review score.

    The completion term scales with the completion ratio; the narrative term
    starts from ``weights.neutral`` and moves with the narrative signals.
    """

    weights = weights or ScoringWeights()
    tally = tally_signals(tasks, signals)
    counts = tally["counts"]

    ratio = completion_ratio(tasks) if tasks else narrative_ratio(signals)
    completion_points = weights.completion * ratio

    bonus = (
        weights.early * counts.get("early", 0)
        + weights.done * min(counts.get("done", 0), weights.max_done_mentions)
        + weights.extra * len(tally["extras"])
    )
    penalty = (
        weights.delay * counts.get("delay", 0)
        + weights.skipped * counts.get("skipped", 0)
        + weights.partial * counts.get("partial", 0)
        + weights.contradiction * len(tally["contradictions"])
    )
    narrative_points = max(0.0, min(weights.narrative, weights.neutral + bonus - penalty))
    score = int(round(max(0.0, min(100.0, completion_points + narrative_points))))

    if return_components:
        return {
            "score": score,
            "ratio": ratio,
            "completion_points": completion_points,
            "narrative_points": narrative_points,
            "bonus": bonus,
            "penalty": penalty,
            "tally": tally,
        }
    return score


def _highlights(tasks: Sequence[Task], tally: dict) -> list[Insight]:
    highlights = []
    for task in tasks:
        if "early" in tally["by_task"].get(task.id, ()):
            highlights.append(
                Insight(f"On track: {task.title}", f"{task.title} ({task.window}) went to plan.", task.category, task.window)
            )

    groups: dict[str, list[Task]] = defaultdict(list)
    for task in tasks:
        groups[task.category].append(task)
    candidates = [category for category in CATEGORIES if any(task.is_completed for task in groups[category])]
    if candidates:
        def strength(category: str):
            done = sum(1 for task in groups[category] if task.is_completed)
            return (done / len(groups[category]), done, -CATEGORIES.index(category))

        best = max(candidates, key=strength)
        done_tasks = [task for task in groups[best] if task.is_completed]
        first = done_tasks[0]
        highlights.append(
            Insight(
                f"Strong {best} follow-through",
                f"You completed {len(done_tasks)} of {len(groups[best])} {best} task(s), "
                f"starting with {first.title} at {first.start_time:%H:%M}.",
                best,
                first.window,
            )
        )

    for signal in tally["extras"]:
        category = cue_category(signal.clause)
        detail = f"You also fit in something unplanned: \"{signal.clause}\"."
        anchor = next((task for task in tasks if task.category == category), tasks[0] if tasks else None)
        if anchor is None:
            highlights.append(Insight("Bonus activity", detail, category))
            continue
        detail += f" It came on top of {anchor.title} ({anchor.window})."
        highlights.append(Insight("Bonus activity", detail, category or anchor.category, anchor.window))

    if not highlights:
        if tasks:
            window = f"{tasks[0].start_time:%H:%M}-{max(task.end_time for task in tasks):%H:%M}"
            highlights.append(
                Insight(
                    "Day mapped out",
                    f"You planned {len(tasks)} task(s) between {window}; reviewing them is the first step.",
                    tasks[0].category,
                    window,
                )
            )
        else:
            highlights.append(
                Insight("Reflected on the day", "You put the day into words; that is the habit that makes plans stick.")
            )
    return highlights


def _suggestions(tasks: Sequence[Task], tally: dict, signals: Sequence[NarrativeSignal], buffer_minutes: int) -> list[Insight]:
    suggestions = []
    by_task = tally["by_task"]
    for task in tasks:
        if "delay" in by_task.get(task.id, ()):
            until = tally["until"].get(task.id)
            ran = f" until {_hhmm(until)}" if until is not None and until > task.end_minutes else ""
            suggestions.append(
                Insight(
                    f"Add buffer after {task.title}",
                    f"{task.title} ({task.window}) ran late{ran}; leave {buffer_minutes} minutes before the next block.",
                    task.category,
                    task.window,
                )
            )

    contradictions = set(tally["contradictions"])
    for task in tasks:
        kinds = by_task.get(task.id, ())
        if "partial" in kinds:
            title = f"Split up {task.title}"
            detail = f"{task.title} ({task.window}) was only partly done; break it into smaller blocks."
        elif "skipped" in kinds:
            title = f"Rethink {task.title}"
            detail = f"{task.title} ({task.window}) did not happen; move it to a slot with more energy or drop it."
        else:
            continue
        if task.id in contradictions:
            detail += " It is marked completed, so double-check its status."
        suggestions.append(Insight(title, detail, task.category, task.window))

    for previous, following in zip(tasks, tasks[1:]):
        gap = following.start_minutes - previous.end_minutes
        if 0 <= gap < buffer_minutes:
            window = f"{previous.start_time:%H:%M}-{following.end_time:%H:%M}"
            suggestions.append(
                Insight(
                    f"Breathing room around {following.start_time:%H:%M}",
                    f"{previous.title} and {following.title} are back to back; "
                    f"keep {buffer_minutes} minutes between them.",
                    following.category,
                    window,
                )
            )
            break

    for category in CATEGORIES:
        pending = [task for task in tasks if task.category == category and not task.is_completed]
        if pending:
            first = pending[0]
            suggestions.append(
                Insight(
                    f"Revisit {category}",
                    f"{len(pending)} {category} task(s) still open, starting with {first.title} at {first.start_time:%H:%M}.",
                    category,
                    first.window,
                )
            )

    if not tasks:
        for signal in signals:
            if signal.kinds & NEGATIVE_KINDS:
                suggestions.append(
                    Insight("Protect the plan", f"You mentioned a slip: \"{signal.clause}\".", cue_category(signal.clause))
                )
                break

    if not suggestions:
        if tasks:
            last = tasks[-1]
            suggestions.append(
                Insight(
                    f"Keep the {last.category} rhythm",
                    f"Everything landed; repeat today's timing for {last.title} ({last.window}) tomorrow.",
                    last.category,
                    last.window,
                )
            )
        else:
            suggestions.append(
                Insight("Plan before you review", "Capture a timeline tomorrow so the review can compare plan and reality.")
            )
    return suggestions


def build_insights(
    tasks: Sequence[Task],
    signals: Sequence[NarrativeSignal],
    settings: Optional[Settings] = None,
) -> tuple[tuple[Insight, ...], tuple[Insight, ...]]:
    """Return ``(highlights, suggestions)``, each capped at ``settings.max_insights``."""

    settings = settings or Settings()
    tally = tally_signals(tasks, signals)
    highlights = _highlights(tasks, tally)[: settings.max_insights]
    suggestions = _suggestions(tasks, tally, signals, settings.buffer_minutes)[: settings.max_insights]
    return tuple(highlights), tuple(suggestions)


class ReviewAnalyzer:
    """Compares a timeline snapshot with the review narrative."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def analyze(self, snapshot: Sequence[Task], narrative: str) -> ReviewReport:
        tasks = tuple(sorted(snapshot, key=lambda task: task.start_time))
        text = (narrative or "").strip()
        if not tasks and not text:
            raise InsufficientInput("A review needs a timeline or a narrative")

        signals = extract_signals(tasks, text, self.settings.match_threshold) if text else []
        score = score_review(tasks, signals, self.settings.weights)
        highlights, suggestions = build_insights(tasks, signals, self.settings)
        completed = sum(1 for task in tasks if task.is_completed)

        summary = f"Completed {completed}/{len(tasks)} planned tasks, score {score}/100."
        summary += f" Strength: {highlights[0].title}. Next: {suggestions[0].title}."
        logger.info("Review scored %d (%d/%d completed)", score, completed, len(tasks))
        return ReviewReport(
            completed_count=completed,
            total_count=len(tasks),
            score=score,
            highlights=highlights,
            suggestions=suggestions,
            summary=summary,
        )


def analyze_review(snapshot: Sequence[Task], narrative: str, settings: Optional[Settings] = None) -> ReviewReport:
    return ReviewAnalyzer(settings).analyze(snapshot, narrative)
