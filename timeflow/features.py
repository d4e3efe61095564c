"""Narrative signal extraction and task matching."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from timeflow.lexicon import SIGNAL_CUES, cue_category, has_cue
from timeflow.schema import Task
from timeflow.text import resolve_clock, scan_clause, split_clauses

logger = logging.getLogger(__name__)

NEGATIVE_KINDS = frozenset({"delay", "skipped", "partial"})
POSITIVE_KINDS = frozenset({"early", "done", "extra"})

_CATEGORY_BOOST = 0.3
_TIME_BOOST = 0.3
_STOPWORDS = {"the", "and", "for", "with", "from", "into", "about", "some", "my", "our", "your", "this", "that"}


@dataclass(frozen=True)
class NarrativeSignal:
    """One narrative clause with the cue kinds it carries and the task it refers to."""

    clause: str
    kinds: frozenset
    task_id: Optional[int] = None
    proximity: float = 0.0
    until: Optional[int] = None
    inherited: bool = False


def detect_kinds(clause: str) -> frozenset:
    """Return the signal kinds found in ``clause``.

    ``partial`` outranks ``skipped``, which outranks ``done``/``early``.
    """

    found = {kind for kind, cues in SIGNAL_CUES.items() if has_cue(clause, cues)}
    if "partial" in found:
        found -= {"skipped", "done"}
    elif "skipped" in found:
        found -= {"done", "early"}
    return frozenset(found)


def keywords(title: str) -> set[str]:
    """Words (ASCII, 3+ letters) and CJK bigrams used for containment matching."""

    lowered = title.lower()
    words = {word for word in re.findall(r"[a-z][a-z'-]{2,}", lowered) if word not in _STOPWORDS}
    for run in re.findall(r"[一-鿿]+", lowered):
        if len(run) == 1:
            words.add(run)
        words.update(run[i:i + 2] for i in range(len(run) - 1))
    return words


def _lexical_matrix(clauses: Sequence[str], titles: Sequence[str]) -> np.ndarray:
    try:
        vectorizer = TfidfVectorizer(analyzer="char_wb", ngram_range=(2, 3), lowercase=True)
        matrix = vectorizer.fit_transform(list(titles) + list(clauses))
    except ValueError:
        # empty vocabulary
        return np.zeros((len(clauses), len(titles)))
    return cosine_similarity(matrix[len(titles):], matrix[: len(titles)])


def _clause_minutes(clause: str) -> list[int]:
    scan = scan_clause(clause)
    hint = scan.day_part.meridiem if scan.day_part else None
    minutes = [resolve_clock(mention, hint) for mention in scan.clocks]
    minutes = [value for value in minutes if value is not None]
    if not minutes and scan.day_part is not None:
        minutes.append(scan.day_part.anchor)
    return minutes


def proximity_scores(clause: str, tasks: Sequence[Task], lexical: np.ndarray) -> np.ndarray:
    """Score how closely ``clause`` refers to each task."""

    lowered = clause.lower()
    category = cue_category(clause)
    minutes = _clause_minutes(clause)
    scores = np.zeros(len(tasks))
    for index, task in enumerate(tasks):
        contained = 1.0 if any(word in lowered for word in keywords(task.title)) else 0.0
        score = max(float(lexical[index]), contained)
        if category is not None and category == task.category:
            score += _CATEGORY_BOOST
        if any(task.start_minutes <= value < task.end_minutes for value in minutes):
            score += _TIME_BOOST
        scores[index] = score
    return scores


def extract_signals(tasks: Sequence[Task], narrative: str, threshold: float = 0.35) -> list[NarrativeSignal]:
    """Split the narrative into clauses and attach each signalled clause to a task.

    A clause that matches no task but carries a delay/skip/progress cue is
    attributed to the task of the clause before it. Clauses with an ``extra``
    cue stay unattached: they describe unplanned activity.
    """

    clauses = [clause for clause, _ in split_clauses(narrative)]
    if not clauses:
        return []
    titles = [task.title for task in tasks]
    lexical = _lexical_matrix(clauses, titles) if tasks else np.zeros((len(clauses), 0))

    signals: list[NarrativeSignal] = []
    previous_task: Optional[int] = None
    for row, clause in enumerate(clauses):
        kinds = detect_kinds(clause)
        task_id = None
        proximity = 0.0
        inherited = False
        if tasks:
            scores = proximity_scores(clause, tasks, lexical[row])
            best = int(np.argmax(scores))
            if scores[best] >= threshold:
                task_id = tasks[best].id
                proximity = float(scores[best])
        if task_id is None and kinds and "extra" not in kinds and previous_task is not None:
            task_id = previous_task
            inherited = True
        if task_id is not None:
            previous_task = task_id
        if not kinds:
            continue

        until = None
        if "delay" in kinds:
            minutes = _clause_minutes(clause)
            until = max(minutes) if minutes else None
        logger.debug("Clause %r -> task %s kinds %s", clause, task_id, sorted(kinds))
        signals.append(
            NarrativeSignal(
                clause=clause,
                kinds=kinds,
                task_id=task_id,
                proximity=round(proximity, 6),
                until=until,
                inherited=inherited,
            )
        )
    return signals
