"""Cue vocabularies for category inference and narrative signals.

ASCII cues match at the start of a word (``run`` matches ``running``),
CJK cues match anywhere in the text.
"""

from __future__ import annotations

import re
from functools import lru_cache

from timeflow.schema import CATEGORIES

CATEGORY_CUES = {
    "work": (
        "meeting", "sync", "standup", "stand-up", "report", "email", "inbox", "code", "coding",
        "review", "client", "project", "presentation", "slides", "deck", "analysis", "research",
        "deadline", "interview", "call with", "1:1", "spec", "deploy", "debug",
        "会议", "组会", "开会", "例会", "报告", "项目", "分析", "邮件", "工作", "代码", "客户", "方案", "汇报",
    ),
    "life": (
        "lunch", "dinner", "breakfast", "brunch", "eat", "cook", "rest", "nap", "break", "shopping",
        "groceries", "laundry", "clean", "chores", "family", "friends", "date", "sleep", "commute",
        "午休", "午餐", "午饭", "晚饭", "晚餐", "早饭", "早餐", "吃饭", "休息", "购物", "家务", "做饭",
        "睡", "买菜", "打扫", "通勤",
    ),
    "health": (
        "gym", "run", "jog", "workout", "exercise", "yoga", "swim", "walk", "hike", "bike", "cycling",
        "stretch", "meditat", "doctor", "dentist", "pilates", "training",
        "健身", "跑步", "跑", "锻炼", "运动", "瑜伽", "游泳", "散步", "冥想", "体检", "拉伸",
    ),
    "growth": (
        "read", "book", "study", "learn", "course", "lecture", "tutorial", "practice", "piano",
        "guitar", "language", "podcast", "journal", "homework", "class",
        "读书", "阅读", "读", "书", "学习", "课程", "练习", "英语", "充电", "网课", "背单词",
    ),
}

# Precedence between kinds found in one clause is applied by features.detect_kinds.
SIGNAL_CUES = {
    "partial": (
        "half", "partly", "partially", "halfway", "part of", "some of", "not finish", "didn't finish",
        "did not finish", "unfinished",
        "一半", "部分", "没做完", "没写完", "没完成", "未完成",
    ),
    "skipped": (
        "skip", "missed", "miss ", "didn't", "did not", "never", "cancel", "gave up", "forgot",
        "couldn't", "could not", "no time", "dropped",
        "没", "取消", "放弃", "跳过", "忘", "未",
    ),
    "delay": (
        "late", "delay", "behind", "overran", "ran over", "ran long", "took longer", "longer than",
        "slow", "procrastinat", "postpone", "pushed back", "dragged",
        "拖", "推迟", "延迟", "晚了", "慢", "超时", "耽误",
    ),
    "early": (
        "early", "ahead", "on time", "on schedule", "as planned", "quick", "faster", "smoothly",
        "按时", "提前", "准时", "顺利", "很快",
    ),
    "done": (
        "done", "finish", "completed", "complete", "did ", "went", "wrapped up", "got through",
        "nailed", "managed",
        "完成", "搞定", "做完", "写完", "去了", "开了", "读了", "做了", "跑了", "结束",
    ),
    "extra": (
        "also", "additionally", "extra", "unplanned", "bonus", "on top of", "squeezed in",
        "额外", "顺便", "另外", "还抽空",
    ),
}

_ASCII = re.compile(r"^[\x00-\x7f]+$")


@lru_cache(maxsize=None)
def _cue_pattern(cue: str) -> re.Pattern:
    if _ASCII.match(cue):
        return re.compile(r"(?<![a-z])" + re.escape(cue), re.IGNORECASE)
    return re.compile(re.escape(cue))


def count_hits(text: str, cues: tuple[str, ...]) -> int:
    """Count how many distinct cues occur in ``text``."""

    return sum(1 for cue in cues if _cue_pattern(cue).search(text))


def has_cue(text: str, cues: tuple[str, ...]) -> bool:
    return any(_cue_pattern(cue).search(text) for cue in cues)


def category_hits(text: str) -> dict[str, int]:
    return {category: count_hits(text, CATEGORY_CUES[category]) for category in CATEGORIES}


def infer_category(text: str, default: str = "work") -> str:
    """Classify text into a category by cue hits; ties follow ``CATEGORIES`` order."""

    hits = category_hits(text)
    best = max(CATEGORIES, key=lambda category: (hits[category], -CATEGORIES.index(category)))
    return best if hits[best] else default


def cue_category(text: str) -> str | None:
    """Like ``infer_category`` but ``None`` when no cue matched."""

    hits = category_hits(text)
    if not any(hits.values()):
        return None
    return infer_category(text)
