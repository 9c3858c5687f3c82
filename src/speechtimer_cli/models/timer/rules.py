"""Stage-signal thresholds (green/yellow/red/white cards) per session category."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from speechtimer_cli.models.agenda import SessionCategory

Phase = Literal["normal", "green", "yellow", "red", "white"]

DEFAULT_WHITE_GRACE_SECONDS = 30


@dataclass(frozen=True)
class PhaseRules:
    """Thresholds expressed as seconds remaining when each stage begins.

    Negative values mean overtime: ``white=-30`` shows the white card thirty
    seconds after the target is reached.
    """

    green: int
    yellow: int
    red: int = 0
    white: int | None = None

    def __post_init__(self) -> None:
        if not self.green >= self.yellow >= self.red:
            raise ValueError("phase thresholds must satisfy green >= yellow >= red")
        if self.white is not None and self.white > self.red:
            raise ValueError("white threshold must not exceed red threshold")

    def as_dict(self) -> dict[str, int | None]:
        """Convert to dictionary."""
        return {
            "green": self.green,
            "yellow": self.yellow,
            "red": self.red,
            "white": self.white,
        }


# (green, yellow) seconds remaining; red is always the target itself.
_PRESET_THRESHOLDS: dict[SessionCategory, tuple[int, int]] = {
    SessionCategory.PREPARED_SPEECH: (120, 60),
    SessionCategory.LONG_EVALUATION: (120, 60),
    SessionCategory.SHORT_EVALUATION: (60, 30),
    SessionCategory.SHARE_HOST: (300, 120),
    # Only a yellow warning: a green card at zero would be hidden by red anyway.
    SessionCategory.OTHER: (30, 30),
}

# Categories that show a white card once the grace period is used up.
DEFAULT_WHITE_CARD_CATEGORIES = frozenset(
    {SessionCategory.PREPARED_SPEECH, SessionCategory.LONG_EVALUATION}
)


def preset_rules(
    category: SessionCategory | str,
    white_grace_seconds: int | None = DEFAULT_WHITE_GRACE_SECONDS,
    white_card_categories: Iterable[SessionCategory | str] | None = None,
) -> PhaseRules:
    """Return the preset thresholds for a session category.

    Args:
        category: Session category
        white_grace_seconds: Overtime allowed before the white card; ``None``
            or ``0`` disables the white card
        white_card_categories: Categories that get a white card; defaults to
            prepared speeches and long evaluations

    Returns:
        PhaseRules for the category
    """
    category = SessionCategory(category)
    green, yellow = _PRESET_THRESHOLDS[category]
    if white_card_categories is None:
        white_categories = DEFAULT_WHITE_CARD_CATEGORIES
    else:
        white_categories = frozenset(SessionCategory(c) for c in white_card_categories)

    white = None
    if category in white_categories and white_grace_seconds:
        white = -abs(int(white_grace_seconds))
    return PhaseRules(green=green, yellow=yellow, red=0, white=white)


def parse_rules_override(text: str) -> PhaseRules:
    """Parse ``"green,yellow,red[,white]"`` (seconds remaining) into rules.

    Raises:
        ValueError: If the text is malformed or the thresholds are out of order
    """
    parts = [part.strip() for part in text.split(",") if part.strip()]
    if len(parts) not in (3, 4):
        raise ValueError("expected green,yellow,red[,white] in seconds")
    values = [int(part) for part in parts]
    white = values[3] if len(values) == 4 else None
    return PhaseRules(green=values[0], yellow=values[1], red=values[2], white=white)


def compute_phase(elapsed: int, target: int, rules: PhaseRules) -> Phase:
    """Return the single stage that applies after ``elapsed`` seconds.

    Checked in priority order: white, red, yellow, green, normal.
    """
    remaining = target - elapsed
    if rules.white is not None and remaining <= rules.white:
        return "white"
    if remaining <= rules.red:
        return "red"
    if remaining <= rules.yellow:
        return "yellow"
    if remaining <= rules.green:
        return "green"
    return "normal"
