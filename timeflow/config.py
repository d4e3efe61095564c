"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

# Used when a plan clause states neither an end time nor a duration.
DEFAULT_DURATION_MINUTES = 60
# Substituted for durations that cannot be computed (e.g. ranges across midnight).
FALLBACK_DURATION_HOURS = 1

_ENV_PREFIX = "TIMEFLOW_"


@dataclass(frozen=True)
class ScoringWeights:
    """Tunable weights for the review score.

    ``completion`` and ``narrative`` split the 100 points; the remaining
    values move the narrative term up or down from ``neutral``.
    """

    completion: float = 70.0
    narrative: float = 30.0
    neutral: float = 20.0
    early: float = 3.0
    done: float = 1.0
    extra: float = 4.0
    delay: float = 4.0
    skipped: float = 6.0
    partial: float = 3.0
    contradiction: float = 5.0
    max_done_mentions: int = 3


@dataclass(frozen=True)
class Settings:
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES
    generation_timeout: float = 5.0
    analysis_timeout: float = 5.0
    capture_timeout: float = 10.0
    match_threshold: float = 0.35
    buffer_minutes: int = 15
    max_insights: int = 3
    weights: ScoringWeights = field(default_factory=ScoringWeights)


_ENV_FIELDS = {
    "DEFAULT_DURATION_MINUTES": ("default_duration_minutes", int),
    "GENERATION_TIMEOUT": ("generation_timeout", float),
    "ANALYSIS_TIMEOUT": ("analysis_timeout", float),
    "CAPTURE_TIMEOUT": ("capture_timeout", float),
    "MATCH_THRESHOLD": ("match_threshold", float),
    "BUFFER_MINUTES": ("buffer_minutes", int),
    "MAX_INSIGHTS": ("max_insights", int),
}


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build ``Settings`` from ``TIMEFLOW_*`` variables, falling back to defaults."""

    environ = os.environ if env is None else env
    overrides = {}
    for suffix, (name, kind) in _ENV_FIELDS.items():
        key = _ENV_PREFIX + suffix
        raw = environ.get(key)
        if raw in (None, ""):
            continue
        try:
            value = kind(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be a {kind.__name__}, got '{raw}'") from exc
        if value <= 0:
            raise ValueError(f"{key} must be positive, got '{raw}'")
        overrides[name] = value
    return replace(Settings(), **overrides)


def configure_logging(level: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> None:
    """Configure root logging for scripts and demos."""

    environ = os.environ if env is None else env
    name = (level or environ.get(_ENV_PREFIX + "LOG_LEVEL") or "WARNING").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{name}'")
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
