"""Lightweight per-speaker stopwatches used during impromptu segments."""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass
class PersonalSubTimer:
    """Stopwatch for one impromptu speaker. No phase rules apply."""

    id: str
    name: str
    elapsed: int = 0
    running: bool = False


class PersonalTimerSet:
    """Ordered collection of personal sub-timers for one agenda item."""

    def __init__(self):
        self._timers: list[PersonalSubTimer] = []

    def __len__(self) -> int:
        return len(self._timers)

    def __iter__(self):
        return iter(list(self._timers))

    def list(self) -> list[PersonalSubTimer]:
        return list(self._timers)

    def add(self, name: str) -> PersonalSubTimer | None:
        """Add a stopped-at-zero timer. Blank names are rejected."""
        name = (name or "").strip()
        if not name:
            return None
        timer = PersonalSubTimer(id=uuid.uuid4().hex[:12], name=name)
        self._timers.append(timer)
        return timer

    def get(self, timer_id: str) -> PersonalSubTimer | None:
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        return None

    def toggle(self, timer_id: str) -> PersonalSubTimer | None:
        timer = self.get(timer_id)
        if timer is not None:
            timer.running = not timer.running
        return timer

    def reset(self, timer_id: str) -> PersonalSubTimer | None:
        timer = self.get(timer_id)
        if timer is not None:
            timer.elapsed = 0
            timer.running = False
        return timer

    def remove(self, timer_id: str) -> bool:
        timer = self.get(timer_id)
        if timer is None:
            return False
        self._timers.remove(timer)
        return True

    def tick(self, seconds: int = 1) -> None:
        """Advance every running sub-timer."""
        if seconds <= 0:
            return
        for timer in self._timers:
            if timer.running:
                timer.elapsed += int(seconds)
