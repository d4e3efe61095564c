"""Clock helpers and task duration calculation."""

from __future__ import annotations

import logging
from datetime import time
from typing import Union

from timeflow.config import FALLBACK_DURATION_HOURS
from timeflow.errors import InvalidRange

logger = logging.getLogger(__name__)

ClockValue = Union[time, str]

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = MINUTES_PER_DAY - 1


def parse_clock(value: str) -> time:
    """Parse ``HH:MM`` into a ``time``."""

    try:
        hour_text, minute_text = value.strip().split(":")
        return time(int(hour_text), int(minute_text))
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidRange(f"Malformed clock value '{value}'") from exc


def format_clock(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def to_minutes(value: ClockValue) -> int:
    clock = parse_clock(value) if isinstance(value, str) else value
    return clock.hour * 60 + clock.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidRange(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def duration(start: ClockValue, end: ClockValue) -> Union[int, float]:
    """Return elapsed hours between two same-day clock values.

    Whole hours come back as ``int``; anything else is rounded to one decimal.
    Raises ``InvalidRange`` when ``end`` is before ``start``.
    """

    diff = to_minutes(end) - to_minutes(start)
    if diff < 0:
        raise InvalidRange(f"End {end} is before start {start}")
    hours = diff / 60.0
    if hours.is_integer():
        return int(hours)
    return round(hours, 1)


def safe_duration(start: ClockValue, end: ClockValue, fallback: float = FALLBACK_DURATION_HOURS) -> Union[int, float]:
    """Like ``duration`` but substitutes ``fallback`` for degenerate ranges."""

    try:
        return duration(start, end)
    except InvalidRange as exc:
        logger.debug("Using fallback duration %s: %s", fallback, exc)
        return fallback


def format_hours(value: Union[int, float]) -> str:
    """Render hours as ``"2"`` or ``"1.5"``."""

    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"
