"""Turn free-form plan text into an ordered batch of tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from timeflow.config import DEFAULT_DURATION_MINUTES
from timeflow.duration import END_OF_DAY, from_minutes
from timeflow.errors import NoSchedulableContent
from timeflow.lexicon import infer_category
from timeflow.schema import Task
from timeflow.text import ClauseScan, ClockMention, clean_title, resolve_clock, scan_clause, split_clauses

logger = logging.getLogger(__name__)


class ScheduleParser(Protocol):
    """Strategy interface: plan text in, chronologically sorted tasks out."""

    def parse(self, raw_text: str) -> list[Task]:
        ...


@dataclass
class _Draft:
    text: str
    title: str
    sequenced: bool
    start: Optional[ClockMention]
    end: Optional[ClockMention]
    duration_minutes: Optional[int]
    hint: Optional[str]
    anchor: Optional[int]


def _draft(scan: ClauseScan, sequenced: bool) -> _Draft:
    day_part = scan.day_part
    return _Draft(
        text=scan.text,
        title=clean_title(scan.remainder()),
        sequenced=sequenced,
        start=scan.start,
        end=scan.end,
        duration_minutes=scan.duration_minutes,
        hint=day_part.meridiem if day_part else None,
        anchor=day_part.anchor if day_part else None,
    )


def _merge_into(target: _Draft, fragment: _Draft) -> None:
    if target.end is None and target.duration_minutes is None:
        target.end = fragment.end
        target.duration_minutes = fragment.duration_minutes


def _inherit_start(target: _Draft, fragment: _Draft) -> None:
    if target.start is None and target.anchor is None:
        target.start = fragment.start
        target.end = target.end or fragment.end
        target.anchor = fragment.anchor
    target.hint = target.hint or fragment.hint
    if target.duration_minutes is None:
        target.duration_minutes = fragment.duration_minutes


def _resolve_start(draft: _Draft, cursor: Optional[int]) -> Optional[int]:
    if draft.start is not None:
        return resolve_clock(draft.start, draft.hint, cursor)
    if draft.anchor is not None:
        return draft.anchor
    if cursor is not None and (draft.sequenced or draft.duration_minutes):
        return cursor
    return None


def _resolve_end(draft: _Draft, start: int, default_minutes: int) -> int:
    if draft.end is not None:
        end = resolve_clock(draft.end, draft.hint, start)
        if end is not None and end <= start and draft.end.meridiem is None and end + 720 < 24 * 60:
            end += 720
        if end is not None and end > start:
            return min(end, END_OF_DAY)
    minutes = draft.duration_minutes or default_minutes
    return min(start + minutes, END_OF_DAY)


class RuleBasedScheduleParser:
    """Pattern-based parser for English and Chinese plan text.

    Each clause with a clock time, a day part, or a sequencing cue becomes
    one task. Clauses without an end time or duration last
    ``default_duration_minutes``.
    """

    def __init__(self, default_duration_minutes: int = DEFAULT_DURATION_MINUTES) -> None:
        if default_duration_minutes <= 0:
            raise ValueError("default_duration_minutes must be positive")
        self.default_duration_minutes = default_duration_minutes

    def _drafts(self, raw_text: str) -> list[_Draft]:
        drafts: list[_Draft] = []
        pending: Optional[_Draft] = None
        for clause, sequenced in split_clauses(raw_text):
            draft = _draft(scan_clause(clause), sequenced)
            if not draft.title:
                if drafts and draft.start is None and draft.anchor is None:
                    _merge_into(drafts[-1], draft)
                elif draft.start is not None or draft.anchor is not None:
                    pending = draft
                continue
            if pending is not None:
                _inherit_start(draft, pending)
                draft.sequenced = draft.sequenced or pending.sequenced
                pending = None
            drafts.append(draft)
        return drafts

    def parse(self, raw_text: str) -> list[Task]:
        if not raw_text or not raw_text.strip():
            return []

        timed: list[tuple[int, int, _Draft]] = []
        cursor: Optional[int] = None
        for draft in self._drafts(raw_text):
            start = _resolve_start(draft, cursor)
            if start is None or start >= END_OF_DAY:
                logger.debug("Skipping clause without a usable time anchor: %r", draft.text)
                continue
            end = _resolve_end(draft, start, self.default_duration_minutes)
            timed.append((start, end, draft))
            cursor = end

        timed.sort(key=lambda item: item[0])
        tasks = []
        for index, (start, end, draft) in enumerate(timed, start=1):
            category = infer_category(draft.text)
            tasks.append(
                Task(
                    id=index,
                    start_time=from_minutes(start),
                    end_time=from_minutes(end),
                    title=draft.title or f"{category.capitalize()} block",
                    category=category,
                )
            )
        return tasks


def parse_schedule(raw_text: str, parser: Optional[ScheduleParser] = None) -> list[Task]:
    """Parse plan text, raising ``NoSchedulableContent`` when nothing is schedulable."""

    strategy = parser or RuleBasedScheduleParser()
    tasks = strategy.parse(raw_text or "")
    if not tasks:
        raise NoSchedulableContent()
    logger.info("Parsed %d task(s) from plan text", len(tasks))
    return tasks
