"""Clause segmentation and time-expression extraction for English and Chinese text."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

from timeflow.duration import MINUTES_PER_DAY

_CN_DIGITS = {"零": 0, "一": 1, "二": 2, "两": 2, "三": 3, "四": 4, "五": 5, "六": 6, "七": 7, "八": 8, "九": 9}
_EN_NUMBERS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

_CN_NUM = r"[零一二两三四五六七八九十]{1,3}"
_HOUR = rf"(?:\d{{1,2}}|{_CN_NUM})"
_EN_NUM = r"\d+(?:\.\d+)?|" + "|".join(sorted(_EN_NUMBERS, key=len, reverse=True))
_UNIT_GUARD = r"(?!\s*(?:hours?|hrs?|h\b|minutes?|mins?|%))"

_RANGE_EN = re.compile(
    r"\b(from\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\s*(?:-|–|~|to|until|till)\s*"
    r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b" + _UNIT_GUARD,
    re.IGNORECASE,
)
_RANGE_CN = re.compile(
    rf"({_HOUR})[点點](?:(半)|(\d{{1,2}})分?)?\s*(?:-|–|~|到|至)\s*({_HOUR})[点點](?:(半)|(\d{{1,2}})分?)?"
)
_CLOCK_12 = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
_CLOCK_24 = re.compile(r"\b(\d{1,2}):(\d{2})\b")
_CLOCK_CN = re.compile(rf"(?<![有差])({_HOUR})[点點](?![点點])(?:(半)|(\d{{1,2}})分(?!钟)|(\d{{1,2}})(?![\d分小个]))?")
_AT_HOUR = re.compile(r"\bat\s+(\d{1,2})\b(?!:)" + _UNIT_GUARD, re.IGNORECASE)
_NOON = re.compile(r"\b(noon|midday)\b", re.IGNORECASE)

_HALF_HOUR_EN = re.compile(r"\bhalf\s+an?\s+hour\b", re.IGNORECASE)
_DURATION_EN = re.compile(
    rf"\b({_EN_NUM})(\s+and\s+a\s+half)?\s*-?\s*(hours?|hrs?|h|minutes?|mins?)\b(\s+and\s+a\s+half)?",
    re.IGNORECASE,
)
_DURATION_CN = re.compile(rf"(?:(\d+(?:\.\d+)?|{_CN_NUM})\s*个?\s*(半)?|(半)\s*个?)\s*(?:小时|钟头)")
_MINUTES_CN = re.compile(rf"(\d+|{_CN_NUM})\s*分钟")

_DAY_PARTS = {
    "morning": ("am", 9 * 60),
    "afternoon": ("pm", 14 * 60),
    "evening": ("pm", 19 * 60),
    "tonight": ("pm", 20 * 60),
    "night": ("pm", 20 * 60),
    "上午": ("am", 9 * 60),
    "早上": ("am", 8 * 60),
    "早晨": ("am", 8 * 60),
    "清晨": ("am", 7 * 60),
    "中午": ("noon", 12 * 60),
    "下午": ("pm", 14 * 60),
    "傍晚": ("pm", 18 * 60),
    "晚上": ("pm", 20 * 60),
    "今晚": ("pm", 20 * 60),
}
_DAY_PART = re.compile(
    r"\b(morning|afternoon|evening|tonight|night)\b|(上午|早上|早晨|清晨|中午|下午|傍晚|晚上|今晚)",
    re.IGNORECASE,
)

_BOUNDARY = re.compile(r"[。;!?\n]+|[,、]|\.(?!\d)")
_CONNECTOR = re.compile(
    r"\b(?:and\s+then|then|after\s+that|afterwards|followed\s+by)\b|然后|接着|之后|随后",
    re.IGNORECASE,
)
_MERIDIEM_DOTS = re.compile(r"\b([ap])\.m\.?", re.IGNORECASE)
_CJK_GAP = re.compile(r"(?<=[一-鿿])\s+(?=[一-鿿])")
_CJK = re.compile(r"[一-鿿]")

_EN_FILLER = {
    "then", "and", "also", "after", "that", "afterwards", "i", "i'll", "ill", "i'm", "im", "will",
    "want", "wanna", "to", "need", "have", "has", "going", "gonna", "spend", "spending", "start",
    "starting", "begin", "for", "at", "from", "in", "on", "the", "a", "an", "about", "around",
    "roughly", "approximately", "approx", "until", "till", "by", "of", "with", "today", "tomorrow",
    "this", "some", "my", "do", "plus", "next", "first", "finally", "later", "be", "should",
    "would", "like", "gotta", "or", "so",
}
_CN_FILLER = (
    "今天", "明天", "我想", "我要", "我会", "我得", "打算", "准备", "需要", "大概", "大约",
    "然后", "接着", "开始", "一下", "左右",
)
_CN_LEADING = ("要", "想", "花", "先", "再", "去", "做", "吧")
_CN_INNER = ("一会儿", "会儿", "一下")
_PUNCT = " \t,.;:!?-–~&()[]\"'“”‘’、，。"


def cn_number(text: str) -> Optional[int]:
    """Parse small Chinese numerals such as ``两``, ``十二`` or ``二十``."""

    if not text:
        return None
    if text.isdigit():
        return int(text)
    if "十" in text:
        left, _, right = text.partition("十")
        if left and left not in _CN_DIGITS or right and right not in _CN_DIGITS:
            return None
        tens = _CN_DIGITS[left] if left else 1
        ones = _CN_DIGITS[right] if right else 0
        return tens * 10 + ones
    if len(text) == 1:
        return _CN_DIGITS.get(text)
    return None


def parse_number(token: str) -> Optional[float]:
    """Parse digits, English number words or Chinese numerals."""

    token = token.strip().lower()
    try:
        return float(token)
    except ValueError:
        pass
    if token in _EN_NUMBERS:
        return float(_EN_NUMBERS[token])
    value = cn_number(token)
    return float(value) if value is not None else None


def normalize(text: str) -> str:
    """Fold full-width characters, spell ``a.m.`` as ``am`` and collapse spaces."""

    folded = unicodedata.normalize("NFKC", text or "")
    folded = _MERIDIEM_DOTS.sub(lambda m: m.group(1) + "m", folded)
    return re.sub(r"[ \t]+", " ", folded).strip()


def has_cjk(text: str) -> bool:
    return bool(_CJK.search(text))


def split_clauses(text: str) -> list[tuple[str, bool]]:
    """Split text into ``(clause, sequenced)`` pairs.

    ``sequenced`` is true when the clause follows a connector such as
    ``then`` or ``然后``.
    """

    clauses: list[tuple[str, bool]] = []
    for fragment in _BOUNDARY.split(normalize(text)):
        sequenced = False
        position = 0
        for match in _CONNECTOR.finditer(fragment):
            piece = fragment[position:match.start()].strip(_PUNCT)
            if piece:
                clauses.append((piece, sequenced))
            sequenced = True
            position = match.end()
        piece = fragment[position:].strip(_PUNCT)
        if piece:
            clauses.append((piece, sequenced))
    return clauses


@dataclass(frozen=True)
class ClockMention:
    """A clock time as written; the hour may still need am/pm resolution."""

    hour: int
    minute: int
    meridiem: Optional[str]
    span: tuple[int, int]


@dataclass(frozen=True)
class DayPart:
    name: str
    meridiem: str
    anchor: int


@dataclass
class ClauseScan:
    """Time expressions found in a single clause."""

    text: str
    start: Optional[ClockMention] = None
    end: Optional[ClockMention] = None
    duration_minutes: Optional[int] = None
    day_part: Optional[DayPart] = None
    clocks: list[ClockMention] = field(default_factory=list)
    spans: list[tuple[int, int]] = field(default_factory=list)

    def overlaps(self, span: tuple[int, int]) -> bool:
        return any(span[0] < end and start < span[1] for start, end in self.spans)

    @property
    def has_time(self) -> bool:
        return self.start is not None or self.day_part is not None

    def remainder(self) -> str:
        """Clause text with every matched time expression removed."""

        pieces = []
        position = 0
        for start, end in sorted(self.spans):
            pieces.append(self.text[position:start])
            position = max(position, end)
        pieces.append(self.text[position:])
        return re.sub(r"\s+", " ", " ".join(pieces)).strip()


def _valid(hour: Optional[int], minute: int, meridiem: Optional[str]) -> bool:
    if hour is None or not 0 <= minute < 60:
        return False
    if meridiem in ("am", "pm"):
        return 1 <= hour <= 12
    return 0 <= hour < 24


def _mention(hour: Optional[int], minute: int, meridiem: Optional[str], span) -> Optional[ClockMention]:
    meridiem = meridiem.lower() if meridiem else None
    if not _valid(hour, minute, meridiem):
        return None
    return ClockMention(hour, minute, meridiem, span)


def _cn_minute(half: Optional[str], *digits: Optional[str]) -> int:
    if half:
        return 30
    for value in digits:
        if value:
            return int(value)
    return 0


def _range_en(match: re.Match) -> Optional[tuple[ClockMention, ClockMention]]:
    explicit_from, h1, m1, ap1, h2, m2, ap2 = match.groups()
    if not (explicit_from or ap1 or ap2 or m1 or m2):
        return None
    start = _mention(int(h1), int(m1 or 0), ap1, match.span(2))
    end = _mention(int(h2), int(m2 or 0), ap2, match.span(5))
    if start is None or end is None:
        return None
    return start, end


def _range_cn(match: re.Match) -> Optional[tuple[ClockMention, ClockMention]]:
    h1, half1, m1, h2, half2, m2 = match.groups()
    start = _mention(cn_number(h1), _cn_minute(half1, m1), None, match.span(1))
    end = _mention(cn_number(h2), _cn_minute(half2, m2), None, match.span(4))
    if start is None or end is None:
        return None
    return start, end


def _clock_12(match: re.Match) -> Optional[ClockMention]:
    return _mention(int(match.group(1)), int(match.group(2) or 0), match.group(3), match.span())


def _clock_24(match: re.Match) -> Optional[ClockMention]:
    return _mention(int(match.group(1)), int(match.group(2)), None, match.span())


def _clock_cn(match: re.Match) -> Optional[ClockMention]:
    hour, half, minute, bare_minute = match.groups()
    return _mention(cn_number(hour), _cn_minute(half, minute, bare_minute), None, match.span())


def _at_hour(match: re.Match) -> Optional[ClockMention]:
    return _mention(int(match.group(1)), 0, None, match.span())


def _noon(match: re.Match) -> Optional[ClockMention]:
    return _mention(12, 0, None, match.span())


_RANGES = ((_RANGE_EN, _range_en), (_RANGE_CN, _range_cn))
_CLOCKS = (
    (_CLOCK_12, _clock_12),
    (_CLOCK_24, _clock_24),
    (_CLOCK_CN, _clock_cn),
    (_AT_HOUR, _at_hour),
    (_NOON, _noon),
)


def _duration_en(match: re.Match) -> Optional[int]:
    number = parse_number(match.group(1))
    if number is None:
        return None
    if match.group(2) or match.group(4):
        number += 0.5
    unit = match.group(3).lower()
    return int(round(number * 60)) if unit.startswith("h") else int(round(number))


def _duration_cn(match: re.Match) -> Optional[int]:
    number_text, half, bare_half = match.groups()
    if bare_half:
        return 30
    number = parse_number(number_text) if number_text else None
    if number is None:
        return None
    if half:
        number += 0.5
    return int(round(number * 60))


def _minutes_cn(match: re.Match) -> Optional[int]:
    number = parse_number(match.group(1))
    return int(number) if number is not None else None


_DURATIONS = (
    (_HALF_HOUR_EN, lambda match: 30),
    (_DURATION_EN, _duration_en),
    (_DURATION_CN, _duration_cn),
    (_MINUTES_CN, _minutes_cn),
)


def scan_clause(text: str) -> ClauseScan:
    """Find clock times, ranges, durations and day parts in ``text``."""

    scan = ClauseScan(text=text)
    for pattern, build in _RANGES:
        for match in pattern.finditer(text):
            if scan.overlaps(match.span()):
                continue
            parsed = build(match)
            if parsed is None:
                continue
            if scan.start is None:
                scan.start, scan.end = parsed
            scan.clocks.extend(parsed)
            scan.spans.append(match.span())

    for pattern, build in _DURATIONS:
        for match in pattern.finditer(text):
            if scan.overlaps(match.span()):
                continue
            minutes = build(match)
            if not minutes or minutes <= 0:
                continue
            scan.spans.append(match.span())
            if scan.duration_minutes is None:
                scan.duration_minutes = minutes

    for pattern, build in _CLOCKS:
        for match in pattern.finditer(text):
            if scan.overlaps(match.span()):
                continue
            mention = build(match)
            if mention is None:
                continue
            scan.clocks.append(mention)
            scan.spans.append(match.span())

    scan.clocks.sort(key=lambda mention: mention.span)
    if scan.start is None and scan.clocks:
        scan.start = scan.clocks[0]

    for match in _DAY_PART.finditer(text):
        if scan.overlaps(match.span()):
            continue
        scan.spans.append(match.span())
        if scan.day_part is None:
            name = (match.group(1) or match.group(2)).lower()
            meridiem, anchor = _DAY_PARTS[name]
            scan.day_part = DayPart(name, meridiem, anchor)
    return scan


def resolve_clock(mention: ClockMention, hint: Optional[str] = None, cursor: Optional[int] = None) -> Optional[int]:
    """Turn a clock mention into minutes after midnight.

    ``hint`` is the meridiem of a day part in the same clause; ``cursor`` is
    the end of the previous activity, used to read bare hours as afternoon.
    """

    hour, minute = mention.hour, mention.minute
    meridiem = mention.meridiem or hint
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    elif meridiem == "noon" and 1 <= hour <= 5:
        hour += 12
    elif meridiem is None and 1 <= hour < 12:
        if cursor is not None:
            if hour * 60 + minute < cursor and (hour + 12) * 60 + minute < MINUTES_PER_DAY:
                hour += 12
        elif hour < 7:
            hour += 12
    if not 0 <= hour < 24:
        return None
    return hour * 60 + minute


def clean_title(text: str) -> str:
    """Strip filler words and punctuation left around an activity name."""

    title = text
    for inner in _CN_INNER:
        title = title.replace(inner, " ")
    title = _CJK_GAP.sub("", re.sub(r"\s+", " ", title)).strip(_PUNCT)

    changed = True
    while changed and title:
        changed = False
        tokens = title.split()
        while tokens and tokens[0].lower().strip(_PUNCT) in _EN_FILLER:
            tokens.pop(0)
            changed = True
        while tokens and tokens[-1].lower().strip(_PUNCT) in _EN_FILLER:
            tokens.pop()
            changed = True
        title = " ".join(tokens).strip(_PUNCT)
        for word in _CN_FILLER:
            if title.startswith(word):
                title = title[len(word):].strip(_PUNCT)
                changed = True
            if title.endswith(word):
                title = title[: -len(word)].strip(_PUNCT)
                changed = True
        for char in _CN_LEADING:
            if title.startswith(char) and len(title) - len(char) >= 2:
                title = title[len(char):].strip(_PUNCT)
                changed = True

    if title[:1].isascii() and title[:1].isalpha():
        title = title[0].upper() + title[1:]
    return title
