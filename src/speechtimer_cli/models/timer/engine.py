"""Timer state machine for a single agenda item.

A ``TimerInstance`` owns its elapsed-seconds clock and advances only when the
caller ticks it. Commands return ``TimerActionResult`` values instead of
raising, and phase changes are reported as events for a notifier to render.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Union

from speechtimer_cli.models.agenda import AgendaItem, CompletionRecord, SessionCategory
from speechtimer_cli.models.timer.rules import (
    DEFAULT_WHITE_GRACE_SECONDS,
    Phase,
    PhaseRules,
    compute_phase,
    preset_rules,
)
from speechtimer_cli.models.timer.state import TimerSnapshot

TimerStatus = Literal["not_started", "running", "paused", "stopped"]
TimerAction = Literal["start", "pause", "stop", "reset"]

REASON_STARTED = "started"
REASON_RESUMED = "resumed"
REASON_PAUSED = "paused"
REASON_STOPPED = "stopped"
REASON_RESET = "reset"
REASON_ALREADY_RUNNING = "already_running"
REASON_NOT_RUNNING = "not_running"
REASON_NOT_STARTED = "not_started"
REASON_TIMER_STOPPED = "timer_stopped"
REASON_NO_TIMER = "no_timer"


@dataclass(frozen=True)
class TimerActionResult:
    """Outcome of a timer command; rejected commands leave state unchanged."""

    action: str
    accepted: bool
    reason: str
    status: TimerStatus | None
    record: CompletionRecord | None = None


@dataclass(frozen=True)
class TimerTicked:
    item_id: str
    elapsed: int
    remaining: int
    phase: Phase


@dataclass(frozen=True)
class PhaseChanged:
    item_id: str
    previous: Phase
    current: Phase
    elapsed: int


@dataclass(frozen=True)
class TimerCompleted:
    item_id: str
    record: CompletionRecord


TimerEvent = Union[TimerTicked, PhaseChanged, TimerCompleted]


@dataclass(frozen=True)
class ScheduleOffset:
    """Difference between an item's planned and actual start, in minutes."""

    is_late: bool
    is_early: bool
    minutes: int


def schedule_offset(scheduled_time: str | None, started_at: datetime) -> ScheduleOffset | None:
    """Compare a planned ``HH:MM[:SS]`` start with the actual start time.

    Only hours and minutes are compared. Returns None when no valid planned
    time is available.
    """
    if not scheduled_time:
        return None
    parts = scheduled_time.split(":")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        return None

    diff = (started_at.hour * 60 + started_at.minute) - (hours * 60 + minutes)
    return ScheduleOffset(is_late=diff > 0, is_early=diff < 0, minutes=abs(diff))


class TimerInstance:
    """Countdown for one agenda item with stage-signal phases."""

    def __init__(
        self,
        item_id: str,
        target_duration: int,
        *,
        category: SessionCategory | str = SessionCategory.OTHER,
        rules: PhaseRules | None = None,
        white_grace_seconds: int | None = DEFAULT_WHITE_GRACE_SECONDS,
        white_card_categories: Iterable[SessionCategory | str] | None = None,
        title: str = "",
    ):
        """Initialize the timer.

        Args:
            item_id: Identity of the agenda item being timed
            target_duration: Planned duration in seconds
            category: Session category selecting the preset rules
            rules: Custom thresholds replacing the preset
            white_grace_seconds: Overtime grace for the preset white card
            white_card_categories: Categories whose preset has a white card
            title: Item title, for display
        """
        if target_duration < 0:
            raise ValueError("target_duration must not be negative")

        self.item_id = item_id
        self.title = title
        self.category = SessionCategory(category)
        self.white_grace_seconds = white_grace_seconds
        self.white_card_categories = white_card_categories
        self.started_at: datetime | None = None

        self._target = int(target_duration)
        self._custom_rules = rules
        self._elapsed = 0
        self._status: TimerStatus = "not_started"
        self._has_started = False
        self._last_phase: Phase = "normal"

    @classmethod
    def from_item(
        cls,
        item: AgendaItem,
        *,
        rules: PhaseRules | None = None,
        white_grace_seconds: int | None = DEFAULT_WHITE_GRACE_SECONDS,
        white_card_categories: Iterable[SessionCategory | str] | None = None,
    ) -> TimerInstance:
        """Create a timer for an agenda item."""
        return cls(
            item.id,
            item.duration,
            category=item.category,
            rules=rules,
            white_grace_seconds=white_grace_seconds,
            white_card_categories=white_card_categories,
            title=item.title,
        )

    @property
    def status(self) -> TimerStatus:
        return self._status

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def has_started(self) -> bool:
        return self._has_started

    @property
    def target_duration(self) -> int:
        return self._target

    @property
    def remaining(self) -> int:
        """Seconds left until the target; negative once in overtime."""
        return self._target - self._elapsed

    @property
    def rules(self) -> PhaseRules:
        """Active thresholds: the custom override or the category preset."""
        if self._custom_rules is not None:
            return self._custom_rules
        return preset_rules(
            self.category, self.white_grace_seconds, self.white_card_categories
        )

    @property
    def has_custom_rules(self) -> bool:
        return self._custom_rules is not None

    @property
    def phase(self) -> Phase:
        return compute_phase(self._elapsed, self._target, self.rules)

    @property
    def is_running(self) -> bool:
        return self._status == "running"

    @property
    def is_stopped(self) -> bool:
        return self._status == "stopped"

    @property
    def is_overtime(self) -> bool:
        return self._elapsed > self._target

    @property
    def overtime_amount(self) -> int:
        return max(0, self._elapsed - self._target)

    def start(self, now: datetime | None = None) -> TimerActionResult:
        """Start from not-started, or resume from paused."""
        if self._status == "stopped":
            return self._reject("start", REASON_TIMER_STOPPED)
        if self._status == "running":
            return self._reject("start", REASON_ALREADY_RUNNING)

        reason = REASON_RESUMED if self._status == "paused" else REASON_STARTED
        if self.started_at is None and now is not None:
            self.started_at = now
        self._status = "running"
        self._has_started = True
        return self._accept("start", reason)

    def pause(self) -> TimerActionResult:
        if self._status != "running":
            reason = REASON_TIMER_STOPPED if self._status == "stopped" else REASON_NOT_RUNNING
            return self._reject("pause", reason)
        self._status = "paused"
        return self._accept("pause", REASON_PAUSED)

    def stop(self, now: datetime | None = None) -> TimerActionResult:
        """Stop the timer for good and produce its completion record."""
        if self._status == "stopped":
            return self._reject("stop", REASON_TIMER_STOPPED)
        if self._status == "not_started":
            return self._reject("stop", REASON_NOT_STARTED)

        self._status = "stopped"
        record = CompletionRecord(
            item_id=self.item_id,
            planned_duration=self._target,
            actual_duration=self._elapsed,
            is_overtime=self.is_overtime,
            overtime_amount=self.overtime_amount,
            completed_at=now,
        )
        return self._accept("stop", REASON_STOPPED, record=record)

    def reset(self) -> TimerActionResult:
        """Return to zero and not-started. Rejected once stopped."""
        if self._status == "stopped":
            return self._reject("reset", REASON_TIMER_STOPPED)

        self._elapsed = 0
        self._status = "not_started"
        self._has_started = False
        self._last_phase = "normal"
        self.started_at = None
        return self._accept("reset", REASON_RESET)

    def tick(self, seconds: int = 1) -> list[TimerEvent]:
        """Advance a running timer by whole seconds.

        Every second is evaluated separately, so each threshold crossed
        yields exactly one ``PhaseChanged`` in order. A ``TimerTicked``
        closes the batch. Non-running timers ignore ticks.
        """
        if self._status != "running" or seconds <= 0:
            return []

        events: list[TimerEvent] = []
        for _ in range(int(seconds)):
            self._elapsed += 1
            current = self.phase
            if current != self._last_phase:
                events.append(
                    PhaseChanged(
                        item_id=self.item_id,
                        previous=self._last_phase,
                        current=current,
                        elapsed=self._elapsed,
                    )
                )
                self._last_phase = current

        events.append(
            TimerTicked(
                item_id=self.item_id,
                elapsed=self._elapsed,
                remaining=self.remaining,
                phase=self._last_phase,
            )
        )
        return events

    def set_rules(self, rules: PhaseRules | None) -> bool:
        """Install custom thresholds, or ``None`` to go back to the preset."""
        if self._status == "stopped":
            return False
        self._custom_rules = rules
        return True

    def set_category(self, category: SessionCategory | str) -> bool:
        if self._status == "stopped":
            return False
        self.category = SessionCategory(category)
        return True

    def set_target(self, seconds: int) -> bool:
        if self._status == "stopped" or seconds < 0:
            return False
        self._target = int(seconds)
        return True

    def restore(self, elapsed: int, running: bool) -> None:
        """Resume from recovered progress without replaying earlier cues."""
        self._elapsed = max(0, int(elapsed))
        self._status = "running" if running else "paused"
        self._has_started = True
        self._last_phase = self.phase

    def snapshot(self, now: datetime) -> TimerSnapshot:
        """Capture progress for the snapshot store."""
        return TimerSnapshot(
            item_id=self.item_id,
            elapsed=self._elapsed,
            running=self._status == "running",
            has_started=self._has_started,
            snapshot_at=now.isoformat(),
        )

    def _accept(
        self, action: str, reason: str, record: CompletionRecord | None = None
    ) -> TimerActionResult:
        return TimerActionResult(
            action=action, accepted=True, reason=reason, status=self._status, record=record
        )

    def _reject(self, action: str, reason: str) -> TimerActionResult:
        return TimerActionResult(action=action, accepted=False, reason=reason, status=self._status)
