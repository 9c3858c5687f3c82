"""Timer mode - stage-signal countdowns for agenda items."""

from .coordinator import TimerCoordinator
from .engine import (
    PhaseChanged,
    TimerActionResult,
    TimerCompleted,
    TimerInstance,
    TimerTicked,
)
from .notifier import PhaseCue, PhaseNotifier
from .personal import PersonalSubTimer, PersonalTimerSet
from .rules import PhaseRules, compute_phase, preset_rules
from .state import FileSnapshotStore, MemorySnapshotStore, TimerSnapshot, decide_recovery

__all__ = [
    "TimerInstance",
    "TimerActionResult",
    "TimerTicked",
    "PhaseChanged",
    "TimerCompleted",
    "TimerCoordinator",
    "PhaseRules",
    "compute_phase",
    "preset_rules",
    "PersonalSubTimer",
    "PersonalTimerSet",
    "PhaseCue",
    "PhaseNotifier",
    "TimerSnapshot",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "decide_recovery",
]
