"""Local parsing of pasted agenda tables.

Turns free-form text copied from a spreadsheet, chat message or document
into structured agenda items. Rows may be tab-delimited, separated by runs
of spaces, or single-space separated in the ``<time> <title> <duration>
<speaker> [<level>]`` shape.

Parsing never raises for malformed input: rows that cannot yield a title
and a duration are dropped, and sanity problems are reported by
``validate_agenda_items`` as plain strings.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from speechtimer_cli.models.agenda import AgendaImport, AgendaItemCreate
from speechtimer_cli.utils.classifier import classify_session
from speechtimer_cli.utils.duration import (
    DEFAULT_DURATION_SECONDS,
    format_duration,
    normalize_duration,
)

TIME_TOKEN = r"\d{1,2}[:：]\d{2}(?:[:：]\d{2})?"
_DURATION_MARKER = r"(?:分钟|分|秒钟|秒|minutes?|mins?|seconds?|secs?|m|s)"
_DURATION_CHARS = r"[\d\-'’′″\":：+]"
DURATION_TOKEN = (
    rf"\d{_DURATION_CHARS}*{_DURATION_MARKER}?"
    rf"(?:\+\d{_DURATION_CHARS}*{_DURATION_MARKER}?)*"
)

_TIME_COLUMN_RE = re.compile(rf"^{TIME_TOKEN}$")
_TIME_SEARCH_RE = re.compile(r"(\d{1,2})[:：](\d{2})(?:[:：](\d{2}))?")
_SINGLE_SPACE_ROW_RE = re.compile(
    rf"^(?:(?P<time>{TIME_TOKEN})\s+)?"
    rf"(?P<title>.+?)\s+"
    rf"(?P<duration>{DURATION_TOKEN})"
    rf"(?:\s+(?P<rest>.+))?$",
    re.IGNORECASE,
)
_MULTI_SPACE_RE = re.compile(r"(?: |　){2,}")
_PARENTHESIZED_RE = re.compile(r"[(（][^)）]*[)）]")
_LEVEL_RE = re.compile(r"^(?=[A-Z0-9]*[A-Z])[A-Z0-9]{1,5}$")
_DIVIDER_DECORATION = "-=—–_*#【】[]<>《》 \t　"

HEADER_TIME_MARKERS = frozenset({"时间", "开始时间", "计划时间", "time", "start"})
HEADER_ITEM_MARKERS = frozenset(
    {"项目", "议程", "环节", "内容", "议程项目", "item", "agenda", "title", "session", "segment"}
)
SECTION_TITLES = frozenset(
    {
        "议程",
        "会议议程",
        "议程安排",
        "会议流程",
        "流程",
        "上半场",
        "下半场",
        "第一部分",
        "第二部分",
        "第三部分",
        "agenda",
        "schedule",
        "program",
        "programme",
        "part 1",
        "part 2",
        "part 3",
        "part one",
        "part two",
        "part three",
        "section 1",
        "section 2",
        "section 3",
    }
)


def is_time_token(value: str) -> bool:
    """Return whether a column holds an ``HH:MM`` or ``HH:MM:SS`` time."""
    return bool(_TIME_COLUMN_RE.match(value.strip()))


def parse_scheduled_time(value: str | None) -> str | None:
    """Parse a time column into canonical ``HH:MM:SS``.

    Malformed or out-of-range times give ``None`` rather than an error.
    """
    if not value:
        return None

    match = _TIME_SEARCH_RE.search(value)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def clean_speaker(raw: str | None) -> tuple[str | None, str | None]:
    """Strip parenthesized notes and a trailing level tag from a speaker cell.

    Returns:
        Tuple of (speaker or None, level tag found at the end or None)
    """
    text = _PARENTHESIZED_RE.sub("", raw or "").strip()
    level = None
    tokens = text.split()
    if len(tokens) >= 2 and _LEVEL_RE.match(tokens[-1]):
        level = tokens[-1]
        text = " ".join(tokens[:-1])
    return (text or None), level


class AgendaTextParser:
    """Parse pasted agenda text into agenda items."""

    def __init__(self, default_duration: int = DEFAULT_DURATION_SECONDS):
        """Initialize the parser.

        Args:
            default_duration: Seconds used when a duration cell is unreadable
        """
        self.default_duration = default_duration

    def parse(self, text: str) -> list[AgendaItemCreate]:
        """Parse a block of text, one agenda row per line, keeping line order."""
        items: list[AgendaItemCreate] = []
        for line in (text or "").splitlines():
            if not line.strip():
                continue
            if self.is_header(line) or self.is_section_marker(line):
                continue
            item = self.parse_line(line)
            if item is not None:
                items.append(item)
        return items

    def is_header(self, line: str) -> bool:
        """Detect a column header row such as ``时间<TAB>项目<TAB>时长``."""
        cells = [cell.lower() for cell in line.split()]
        if len(cells) < 2:
            return False
        has_time = any(cell in HEADER_TIME_MARKERS for cell in cells)
        has_item = any(cell in HEADER_ITEM_MARKERS for cell in cells)
        return has_time and has_item

    def is_section_marker(self, line: str) -> bool:
        """Detect divider lines (``-----``, ``=====``) and bare section titles."""
        stripped = line.strip()
        core = stripped.strip(_DIVIDER_DECORATION)
        if not core:
            return True
        normalized = " ".join(core.lower().rstrip(":：").split())
        return normalized in SECTION_TITLES

    def split_columns(self, line: str) -> list[str]:
        """Split a row into trimmed, non-empty column values."""
        if "\t" in line:
            parts = re.split(r"\t+", line)
        elif _MULTI_SPACE_RE.search(line.strip()):
            parts = _MULTI_SPACE_RE.split(line.strip())
        else:
            parts = self._split_single_spaced(line.strip())
        return [part.strip() for part in parts if part and part.strip()]

    def _split_single_spaced(self, line: str) -> list[str]:
        match = _SINGLE_SPACE_ROW_RE.match(line)
        if not match:
            return line.split()

        columns: list[str] = []
        if match.group("time"):
            columns.append(match.group("time"))
        columns.append(match.group("title"))
        columns.append(match.group("duration"))

        rest = (match.group("rest") or "").split()
        if len(rest) >= 2 and _LEVEL_RE.match(rest[-1]):
            columns.append(" ".join(rest[:-1]))
            columns.append(rest[-1])
        elif rest:
            columns.append(" ".join(rest))
        return columns

    def map_columns(self, columns: list[str]) -> dict[str, str | None] | None:
        """Assign column values to fields by position.

        Returns None when fewer than two columns are available.
        """
        fields: dict[str, str | None] = {
            "time": None,
            "title": None,
            "duration": None,
            "speaker": None,
            "level": None,
        }
        count = len(columns)
        if count < 2:
            return None

        if count >= 4:
            if is_time_token(columns[0]):
                fields["time"], fields["title"], fields["duration"], fields["speaker"] = columns[:4]
                if count > 4:
                    fields["level"] = columns[4]
            else:
                fields["title"], fields["duration"], fields["speaker"], fields["level"] = columns[:4]
        elif count == 3:
            if is_time_token(columns[0]):
                fields["time"], fields["title"], fields["duration"] = columns
            else:
                fields["title"], fields["duration"], fields["speaker"] = columns
        else:
            fields["title"], fields["duration"] = columns
        return fields

    def parse_line(self, line: str) -> AgendaItemCreate | None:
        """Parse a single row; None when the row cannot form an item."""
        fields = self.map_columns(self.split_columns(line))
        if fields is None:
            return None

        title = (fields["title"] or "").strip()
        duration = normalize_duration(fields["duration"], default=self.default_duration)
        speaker, trailing_level = clean_speaker(fields["speaker"])
        level = (fields["level"] or "").strip() or trailing_level

        return AgendaItemCreate(
            title=title,
            duration=duration,
            category=classify_session(title, duration),
            speaker=speaker,
            scheduled_time=parse_scheduled_time(fields["time"]),
            level=level,
        )


def validate_agenda_items(items: Iterable[AgendaItemCreate]) -> list[str]:
    """Collect human-readable problems for assembled items (1-based numbering)."""
    errors: list[str] = []
    for index, item in enumerate(items, start=1):
        if not item.title.strip():
            errors.append(f"Item {index}: missing title")
        if item.duration <= 0:
            errors.append(f"Item {index}: invalid duration")
    return errors


def parse_agenda_text(
    text: str, default_duration: int = DEFAULT_DURATION_SECONDS
) -> list[AgendaItemCreate]:
    """Convenience function to parse pasted agenda text.

    Example:
        >>> items = parse_agenda_text("19:20\\t备稿演讲\\t5-7'\\t陈演讲者\\tCC")
        >>> items[0].duration, items[0].scheduled_time
        (360, '19:20:00')
    """
    return AgendaTextParser(default_duration=default_duration).parse(text)


def parse_agenda(text: str, default_duration: int = DEFAULT_DURATION_SECONDS) -> AgendaImport:
    """Parse and validate in one step."""
    items = parse_agenda_text(text, default_duration=default_duration)
    return AgendaImport(items=items, errors=validate_agenda_items(items))


def format_agenda_text(items: Iterable[AgendaItemCreate]) -> str:
    """Render items as tab-delimited rows that parse back to the same items."""
    lines: list[str] = []
    for item in items:
        columns: list[str] = []
        if item.scheduled_time:
            columns.append(item.scheduled_time)
        columns.append(item.title)
        columns.append(format_duration(item.duration))
        if item.speaker or item.level:
            # "()" reads back as no speaker and keeps the level in its column.
            columns.append(item.speaker or "()")
            if item.level:
                columns.append(item.level)
        lines.append("\t".join(columns))
    return "\n".join(lines)
