"""Unit tests for speechtimer_cli.models.timer.notifier."""

from io import StringIO

from rich.console import Console

from speechtimer_cli.models.timer.engine import PhaseChanged, TimerTicked
from speechtimer_cli.models.timer.notifier import PHASE_CUES, PhaseNotifier, console_sink


def _changed(current, previous="normal"):
    return PhaseChanged(item_id="a", previous=previous, current=current, elapsed=10)


class TestPhaseCues:
    def test_cue_parameters(self):
        assert (PHASE_CUES["green"].frequency_hz, PHASE_CUES["green"].duration_seconds) == (800, 0.5)
        assert (PHASE_CUES["yellow"].frequency_hz, PHASE_CUES["yellow"].duration_seconds) == (1000, 0.8)
        assert (PHASE_CUES["red"].frequency_hz, PHASE_CUES["red"].volume) == (1200, 0.5)
        assert (PHASE_CUES["white"].frequency_hz, PHASE_CUES["white"].volume) == (1500, 0.6)

    def test_no_cue_for_normal(self):
        assert "normal" not in PHASE_CUES


class TestPhaseNotifier:
    def test_phase_change_reaches_sink(self):
        calls = []
        notifier = PhaseNotifier(lambda cue, event: calls.append((cue.phase, event.elapsed)))
        notifier(_changed("yellow", "green"))
        assert calls == [("yellow", 10)]

    def test_ignores_ticks_and_normal(self):
        calls = []
        notifier = PhaseNotifier(lambda cue, event: calls.append(cue))
        notifier(TimerTicked(item_id="a", elapsed=1, remaining=59, phase="normal"))
        notifier(_changed("normal", "green"))
        assert calls == []
        assert notifier.history == []

    def test_disabled_keeps_history(self):
        calls = []
        notifier = PhaseNotifier(lambda cue, event: calls.append(cue), enabled=False)
        notifier(_changed("red", "yellow"))
        assert calls == []
        assert [cue.phase for cue in notifier.history] == ["red"]

    def test_console_sink_prints_message(self):
        output = StringIO()
        console = Console(file=output, width=80)
        sink = console_sink(console)
        sink(PHASE_CUES["red"], _changed("red", "yellow"))
        assert "Red card" in output.getvalue()
