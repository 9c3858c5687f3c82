"""Duration token normalization for pasted agenda schedules.

Turns tokens such as ``5-7分钟``, ``8'``, ``3:30``, ``420秒`` or ``2'+2'+2'``
into whole seconds. Unrecognised input falls back to a default of three
minutes.
"""

from __future__ import annotations

import re
from collections.abc import Callable

DEFAULT_DURATION_SECONDS = 180

_MINUTE_MARKER = r"(?:分钟|分|minutes?|mins?|m|')"
_SECOND_MARKER = r'(?:秒钟|秒|seconds?|secs?|s|")'

_RANGE_RE = re.compile(rf"(\d+)-(\d+){_MINUTE_MARKER}?")
_MINUTES_RE = re.compile(rf"(\d+){_MINUTE_MARKER}")
_CLOCK_RE = re.compile(r"(\d+):(\d{1,2})")
_SECONDS_RE = re.compile(rf"(\d+){_SECOND_MARKER}")
_BARE_RE = re.compile(r"\d+")

# Typographic quotes, primes and full-width punctuation seen in pasted tables.
_TRANSLATION = str.maketrans(
    {
        "’": "'",
        "‘": "'",
        "′": "'",
        "＇": "'",
        "｀": "'",
        "`": "'",
        "″": '"',
        "”": '"',
        "“": '"',
        "＂": '"',
        "：": ":",
        "＋": "+",
        "－": "-",
        "—": "-",
        "–": "-",
        "~": "-",
        "～": "-",
    }
)


def _midpoint_minutes(low: int, high: int) -> int:
    # Half rounds up: "2-3" is three minutes, not two.
    return (low + high + 1) // 2


def _from_range(match: re.Match[str]) -> int:
    return _midpoint_minutes(int(match.group(1)), int(match.group(2))) * 60


def _from_minutes(match: re.Match[str]) -> int:
    return int(match.group(1)) * 60


def _from_clock(match: re.Match[str]) -> int:
    return int(match.group(1)) * 60 + int(match.group(2))


def _from_seconds(match: re.Match[str]) -> int:
    return int(match.group(1))


# Order matters: the first pattern that matches decides the value.
_SINGLE_FORMS: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], int], bool], ...] = (
    (_RANGE_RE, _from_range, False),
    (_MINUTES_RE, _from_minutes, False),
    (_CLOCK_RE, _from_clock, False),
    (_SECONDS_RE, _from_seconds, False),
    (_BARE_RE, _from_minutes, True),
)


def clean_duration_token(token: str) -> str:
    """Strip whitespace and normalize quotes so patterns see one spelling."""
    compact = re.sub(r"\s+", "", token or "")
    return compact.translate(_TRANSLATION).lower()


def _parse_single(token: str) -> int | None:
    for pattern, convert, anchored in _SINGLE_FORMS:
        match = pattern.fullmatch(token) if anchored else pattern.search(token)
        if match:
            return convert(match)
    return None


def _parse_composite(token: str) -> int | None:
    if "+" not in token:
        return None

    segments = token.split("+")
    if len(segments) < 2:
        return None

    total = 0
    for segment in segments:
        value = _parse_single(segment)
        if value is None:
            return None
        total += value
    return total


def normalize_duration(token: str | None, default: int = DEFAULT_DURATION_SECONDS) -> int:
    """Convert a raw duration token into seconds.

    Recognised forms, tried in order:

    1. ``A+B+C`` where every segment is itself a recognised form (summed)
    2. ``N-M`` with an optional minute marker (midpoint, in minutes)
    3. ``N`` followed by a minute marker (``分钟``, ``min``, ``'``)
    4. ``MM:SS``
    5. ``N`` followed by a seconds marker (``秒``, ``s``, ``"``)
    6. a bare integer, read as minutes

    Args:
        token: Raw duration text from an agenda column
        default: Value returned when nothing matches

    Returns:
        Duration in whole seconds
    """
    cleaned = clean_duration_token(token or "")
    if not cleaned:
        return default

    composite = _parse_composite(cleaned)
    if composite is not None:
        return composite

    single = _parse_single(cleaned)
    if single is not None:
        return single

    return default


def format_duration(seconds: int) -> str:
    """Format seconds as a token that normalize_duration reads back unchanged."""
    seconds = max(0, int(seconds))
    if seconds % 60 == 0:
        return f"{seconds // 60}'"
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_clock(seconds: int) -> str:
    """Format a signed second count as ``M:SS`` (``-1:05`` when in overtime)."""
    sign = "-" if seconds < 0 else ""
    value = abs(int(seconds))
    return f"{sign}{value // 60}:{value % 60:02d}"
