"""Renders phase-change cues outside the timer core."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from rich.console import Console

from speechtimer_cli.models.timer.engine import PhaseChanged, TimerEvent
from speechtimer_cli.models.timer.rules import Phase


@dataclass(frozen=True)
class PhaseCue:
    """Tone and message played when a timer enters a phase."""

    phase: Phase
    frequency_hz: int
    duration_seconds: float
    volume: float
    message: str
    style: str


PHASE_CUES: dict[Phase, PhaseCue] = {
    "green": PhaseCue("green", 800, 0.5, 0.3, "Green card", "bold black on green"),
    "yellow": PhaseCue("yellow", 1000, 0.8, 0.3, "Yellow card", "bold black on yellow"),
    "red": PhaseCue("red", 1200, 1.0, 0.5, "Red card: time is up", "bold white on red"),
    "white": PhaseCue("white", 1500, 0.3, 0.6, "White card: please wrap up", "bold black on white"),
}

CueSink = Callable[[PhaseCue, PhaseChanged], None]


def console_sink(console: Console) -> CueSink:
    """Sink that rings the terminal bell and prints the cue message."""

    def render(cue: PhaseCue, event: PhaseChanged) -> None:
        console.bell()
        console.print(f" {cue.message} ", style=cue.style)

    return render


class PhaseNotifier:
    """Timer listener that turns ``PhaseChanged`` events into cues.

    Entering ``normal`` (after an edit or reset) has no cue.
    """

    def __init__(self, sink: CueSink, enabled: bool = True):
        self.sink = sink
        self.enabled = enabled
        self.history: list[PhaseCue] = []

    def __call__(self, event: TimerEvent) -> None:
        if not isinstance(event, PhaseChanged):
            return
        cue = PHASE_CUES.get(event.current)
        if cue is None:
            return
        self.history.append(cue)
        if self.enabled:
            self.sink(cue, event)
