"""Timing analysis over the completion records of a session."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from speechtimer_cli.models.agenda import AgendaItem, CompletionRecord

UNDER_USED_RATIO = 0.8
WELL_OVER_RATIO = 1.1

Verdict = Literal["under_used", "well_over", "slightly_over", "on_time"]


@dataclass(frozen=True)
class ItemAnalysis:
    item_id: str
    title: str
    speaker: str | None
    planned: int
    actual: int
    usage: float | None
    verdict: Verdict


@dataclass(frozen=True)
class TimingSummary:
    """Session-wide timing figures; rates are whole percentages."""

    total_items: int
    planned_total: int
    recorded_items: int
    on_time_items: int
    overtime_items: int
    undertime_items: int
    on_time_rate: int
    overtime_rate: int
    undertime_rate: int
    items: list[ItemAnalysis] = field(default_factory=list)


def usage_ratio(planned: int, actual: int) -> float | None:
    """Fraction of the planned duration actually used.

    Returns ``None`` when time was used against a zero plan.
    """
    if planned <= 0:
        return None if actual > 0 else 1.0
    return actual / planned


def classify_usage(usage: float | None, is_overtime: bool) -> Verdict:
    if usage is None:
        return "well_over"
    if usage < UNDER_USED_RATIO:
        return "under_used"
    if usage > WELL_OVER_RATIO:
        return "well_over"
    if is_overtime:
        return "slightly_over"
    return "on_time"


def _percent(count: int, total: int) -> int:
    if total == 0:
        return 0
    # Half-up rounding, matching how the rates are shown on screen.
    return int(count * 100 / total + 0.5)


def summarize_timing(
    agenda: Iterable[AgendaItem], records: Iterable[CompletionRecord]
) -> TimingSummary:
    """Summarize how well the agenda kept to time.

    When an item was timed more than once, its latest record counts.
    Usage is measured against the duration planned when the item was timed.
    Records for items no longer on the agenda count towards the on-time and
    overtime figures but have no per-item analysis.
    """
    items = list(agenda)
    latest: dict[str, CompletionRecord] = {}
    for record in records:
        latest[record.item_id] = record

    by_id = {item.id: item for item in items}
    overtime = sum(1 for record in latest.values() if record.is_overtime)
    on_time = len(latest) - overtime
    undertime = 0
    for item_id, record in latest.items():
        if item_id not in by_id:
            continue
        usage = usage_ratio(record.planned_duration, record.actual_duration)
        if usage is not None and usage < UNDER_USED_RATIO:
            undertime += 1

    analyses = []
    for item in items:
        record = latest.get(item.id)
        if record is None:
            continue
        usage = usage_ratio(record.planned_duration, record.actual_duration)
        analyses.append(
            ItemAnalysis(
                item_id=item.id,
                title=item.title,
                speaker=item.speaker,
                planned=record.planned_duration,
                actual=record.actual_duration,
                usage=usage,
                verdict=classify_usage(usage, record.is_overtime),
            )
        )

    recorded = len(latest)
    return TimingSummary(
        total_items=len(items),
        planned_total=sum(item.duration for item in items),
        recorded_items=recorded,
        on_time_items=on_time,
        overtime_items=overtime,
        undertime_items=undertime,
        on_time_rate=_percent(on_time, recorded),
        overtime_rate=_percent(overtime, recorded),
        undertime_rate=_percent(undertime, recorded),
        items=analyses,
    )
