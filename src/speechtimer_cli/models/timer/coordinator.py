"""Coordinator holding the independent timers of an agenda session."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from speechtimer_cli.models.agenda import AgendaItem, CompletionRecord, SessionCategory
from speechtimer_cli.models.timer.engine import (
    REASON_NO_TIMER,
    TimerActionResult,
    TimerCompleted,
    TimerEvent,
    TimerInstance,
)
from speechtimer_cli.models.timer.personal import PersonalSubTimer, PersonalTimerSet
from speechtimer_cli.models.timer.rules import DEFAULT_WHITE_GRACE_SECONDS, PhaseRules
from speechtimer_cli.models.timer.state import (
    DEFAULT_STALENESS_SECONDS,
    MemorySnapshotStore,
    RecoveryDecision,
    SnapshotStore,
    decide_recovery,
)
from speechtimer_cli.utils.classifier import is_impromptu
from speechtimer_cli.utils.logger import get_logger

TimerListener = Callable[[TimerEvent], None]


class TimerCoordinator:
    """Keeps at most one active timer per agenda item and checkpoints them.

    Any number of timers may run at once. Each owns the snapshot key of its
    agenda item; progress is saved on every state change and running tick
    and dropped on stop or reset.
    """

    def __init__(
        self,
        store: SnapshotStore | None = None,
        *,
        staleness_seconds: int = DEFAULT_STALENESS_SECONDS,
        white_grace_seconds: int | None = DEFAULT_WHITE_GRACE_SECONDS,
        white_card_categories: Iterable[SessionCategory | str] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.store = store if store is not None else MemorySnapshotStore()
        self.staleness_seconds = staleness_seconds
        self.white_grace_seconds = white_grace_seconds
        self.white_card_categories = white_card_categories
        self._logger = logger or get_logger("coordinator")

        self._timers: dict[str, TimerInstance] = {}
        self._personal: dict[str, PersonalTimerSet] = {}
        self._recoveries: dict[str, RecoveryDecision] = {}
        self._records: list[CompletionRecord] = []
        self._listeners: list[TimerListener] = []

    # Lifecycle

    def open(
        self, item: AgendaItem, now: datetime, rules: PhaseRules | None = None
    ) -> TimerInstance | None:
        """Create the item's timer, recovering progress from its snapshot.

        Returns None when the item already has a timer that is not stopped.
        """
        existing = self._timers.get(item.id)
        if existing is not None and not existing.is_stopped:
            self._logger.warning("Timer for item %s is already open", item.id)
            return None

        timer = TimerInstance.from_item(
            item,
            rules=rules,
            white_grace_seconds=self.white_grace_seconds,
            white_card_categories=self.white_card_categories,
        )
        decision = decide_recovery(self.store.load(item.id), now, self.staleness_seconds)
        self._recoveries[item.id] = decision

        if decision.action != "none":
            timer.restore(decision.elapsed, running=decision.action == "resume_running")
            self._logger.info(
                "Recovered timer %s: %s at %ss (gap %ss%s)",
                item.id,
                decision.action,
                decision.elapsed,
                decision.gap_seconds,
                ", stale" if decision.stale else "",
            )
            self._checkpoint(timer, now)

        self._timers[item.id] = timer
        if is_impromptu(item.title, item.category):
            self._personal[item.id] = PersonalTimerSet()
        else:
            self._personal.pop(item.id, None)
        return timer

    def close(self, item_id: str, now: datetime | None = None, forget: bool = False) -> bool:
        """Drop an item's timer from the session without touching the others.

        The snapshot is kept so the timer can be recovered later, unless
        ``forget`` is set.
        """
        timer = self._timers.pop(item_id, None)
        self._personal.pop(item_id, None)
        if timer is None:
            return False

        if forget:
            self.store.delete(item_id)
        elif now is not None and not timer.is_stopped and timer.has_started:
            self._checkpoint(timer, now)
        self._logger.debug("Closed timer %s (forget=%s)", item_id, forget)
        return True

    def get(self, item_id: str) -> TimerInstance | None:
        return self._timers.get(item_id)

    def recovery_for(self, item_id: str) -> RecoveryDecision | None:
        """Recovery decision taken when the item's timer was last opened."""
        return self._recoveries.get(item_id)

    def active_ids(self) -> list[str]:
        return [item_id for item_id, timer in self._timers.items() if not timer.is_stopped]

    def running_ids(self) -> list[str]:
        return [item_id for item_id, timer in self._timers.items() if timer.is_running]

    @property
    def records(self) -> list[CompletionRecord]:
        return list(self._records)

    # Commands

    def start(self, item_id: str, now: datetime) -> TimerActionResult:
        timer = self._timers.get(item_id)
        if timer is None:
            return _missing("start")
        result = timer.start(now)
        if result.accepted:
            self._logger.info("Timer %s %s at %ss", item_id, result.reason, timer.elapsed)
            self._checkpoint(timer, now)
        return result

    def pause(self, item_id: str, now: datetime) -> TimerActionResult:
        timer = self._timers.get(item_id)
        if timer is None:
            return _missing("pause")
        result = timer.pause()
        if result.accepted:
            self._logger.info("Timer %s paused at %ss", item_id, timer.elapsed)
            self._checkpoint(timer, now)
        return result

    def stop(self, item_id: str, now: datetime) -> TimerActionResult:
        """Stop the item's timer, keep its record and drop its snapshot."""
        timer = self._timers.get(item_id)
        if timer is None:
            return _missing("stop")
        result = timer.stop(now)
        if result.accepted and result.record is not None:
            self._records.append(result.record)
            self.store.delete(item_id)
            self._logger.info(
                "Timer %s stopped: %ss of %ss (overtime %ss)",
                item_id,
                result.record.actual_duration,
                result.record.planned_duration,
                result.record.overtime_amount,
            )
            self._dispatch([TimerCompleted(item_id=item_id, record=result.record)])
        return result

    def reset(self, item_id: str, now: datetime | None = None) -> TimerActionResult:
        timer = self._timers.get(item_id)
        if timer is None:
            return _missing("reset")
        result = timer.reset()
        if result.accepted:
            self.store.delete(item_id)
            self._logger.info("Timer %s reset", item_id)
        return result

    def tick(self, now: datetime, seconds: int = 1) -> list[TimerEvent]:
        """Advance every running timer and personal sub-timer."""
        events: list[TimerEvent] = []
        for timer in list(self._timers.values()):
            if not timer.is_running:
                continue
            events.extend(timer.tick(seconds))
            self._checkpoint(timer, now)

        for personal in self._personal.values():
            personal.tick(seconds)

        self._dispatch(events)
        return events

    # Personal sub-timers

    def personal_timers(self, item_id: str) -> list[PersonalSubTimer] | None:
        """Sub-timers of an impromptu item; None for other items."""
        personal = self._personal.get(item_id)
        if personal is None:
            return None
        return personal.list()

    def add_personal_timer(self, item_id: str, name: str) -> PersonalSubTimer | None:
        personal = self._personal.get(item_id)
        if personal is None:
            return None
        return personal.add(name)

    def toggle_personal_timer(self, item_id: str, timer_id: str) -> PersonalSubTimer | None:
        personal = self._personal.get(item_id)
        if personal is None:
            return None
        return personal.toggle(timer_id)

    def reset_personal_timer(self, item_id: str, timer_id: str) -> PersonalSubTimer | None:
        personal = self._personal.get(item_id)
        if personal is None:
            return None
        return personal.reset(timer_id)

    def remove_personal_timer(self, item_id: str, timer_id: str) -> bool:
        personal = self._personal.get(item_id)
        if personal is None:
            return False
        return personal.remove(timer_id)

    # Events

    def subscribe(self, listener: TimerListener) -> Callable[[], None]:
        """Register an event listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, events: list[TimerEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    def _checkpoint(self, timer: TimerInstance, now: datetime) -> None:
        try:
            self.store.save(timer.snapshot(now))
        except RuntimeError as e:
            self._logger.error("Could not checkpoint timer %s: %s", timer.item_id, e)


def _missing(action: str) -> TimerActionResult:
    return TimerActionResult(action=action, accepted=False, reason=REASON_NO_TIMER, status=None)

