"""Unit tests for speechtimer_cli.models.timer.coordinator."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from speechtimer_cli.models.agenda import AgendaItem, SessionCategory
from speechtimer_cli.models.timer.coordinator import TimerCoordinator
from speechtimer_cli.models.timer.engine import (
    REASON_NO_TIMER,
    PhaseChanged,
    TimerCompleted,
    TimerTicked,
)
from speechtimer_cli.models.timer.rules import PhaseRules
from speechtimer_cli.models.timer.state import (
    FileSnapshotStore,
    MemorySnapshotStore,
    TimerSnapshot,
)

NOW = datetime(2026, 3, 12, 19, 20, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return MemorySnapshotStore()


@pytest.fixture()
def coordinator(store):
    return TimerCoordinator(store)


def _later(seconds: int) -> datetime:
    return NOW + timedelta(seconds=seconds)


class TestOpenClose:
    def test_open_creates_fresh_timer(self, coordinator, speech_item):
        timer = coordinator.open(speech_item, NOW)
        assert timer.item_id == "speech1"
        assert timer.status == "not_started"
        assert timer.target_duration == 420
        assert coordinator.recovery_for("speech1").action == "none"

    def test_at_most_one_active_timer_per_item(self, coordinator, speech_item):
        first = coordinator.open(speech_item, NOW)
        assert coordinator.open(speech_item, NOW) is None
        assert coordinator.get("speech1") is first

    def test_reopen_after_stop(self, coordinator, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.stop("speech1", _later(5))
        timer = coordinator.open(speech_item, _later(10))
        assert timer.status == "not_started"

    def test_open_with_custom_rules(self, coordinator, speech_item):
        rules = PhaseRules(60, 30, 0)
        assert coordinator.open(speech_item, NOW, rules=rules).rules == rules

    def test_white_card_categories_apply_to_opened_timers(self, store, speech_item):
        coordinator = TimerCoordinator(store, white_card_categories=["other"])
        assert coordinator.open(speech_item, NOW).rules.white is None

    def test_close_keeps_other_timers(self, coordinator, speech_item, impromptu_item):
        coordinator.open(speech_item, NOW)
        coordinator.open(impromptu_item, NOW)
        assert coordinator.close("speech1")
        assert coordinator.get("speech1") is None
        assert coordinator.active_ids() == ["topics1"]

    def test_close_unknown(self, coordinator):
        assert not coordinator.close("missing")

    def test_close_keeps_snapshot(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(20), 20)
        coordinator.close("speech1", now=_later(20))
        assert store.load("speech1").elapsed == 20

    def test_close_forget_drops_snapshot(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.close("speech1", forget=True)
        assert store.load("speech1") is None


class TestConcurrentTimers:
    def test_timers_run_independently(self, coordinator, speech_item, impromptu_item):
        coordinator.open(speech_item, NOW)
        coordinator.open(impromptu_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(10), 10)
        coordinator.start("topics1", _later(10))
        coordinator.tick(_later(15), 5)

        assert coordinator.get("speech1").elapsed == 15
        assert coordinator.get("topics1").elapsed == 5
        assert sorted(coordinator.running_ids()) == ["speech1", "topics1"]

    def test_pausing_one_leaves_other_running(self, coordinator, speech_item, impromptu_item):
        coordinator.open(speech_item, NOW)
        coordinator.open(impromptu_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.start("topics1", NOW)
        coordinator.pause("speech1", _later(1))
        assert coordinator.running_ids() == ["topics1"]

    def test_commands_on_missing_timer(self, coordinator):
        for command in ("start", "pause", "stop"):
            result = getattr(coordinator, command)("missing", NOW)
            assert not result.accepted
            assert result.reason == REASON_NO_TIMER
            assert result.status is None
        assert coordinator.reset("missing").reason == REASON_NO_TIMER


class TestCheckpointing:
    def test_start_and_tick_checkpoint(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        assert store.load("speech1").running
        coordinator.tick(_later(3), 3)
        snapshot = store.load("speech1")
        assert snapshot.elapsed == 3
        assert snapshot.snapshot_datetime == _later(3)

    def test_pause_checkpoints(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(4), 4)
        coordinator.pause("speech1", _later(4))
        snapshot = store.load("speech1")
        assert not snapshot.running
        assert snapshot.has_started

    def test_stop_removes_snapshot_and_keeps_record(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(430), 430)
        result = coordinator.stop("speech1", _later(430))
        assert result.accepted
        assert store.load("speech1") is None
        assert coordinator.records == [result.record]
        assert result.record.overtime_amount == 10

    def test_reset_removes_snapshot(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.reset("speech1", _later(1))
        assert store.load("speech1") is None

    def test_rejected_command_does_not_checkpoint(self, coordinator, store, speech_item):
        coordinator.open(speech_item, NOW)
        coordinator.pause("speech1", NOW)
        assert store.load("speech1") is None

    def test_failed_checkpoint_is_logged(self, speech_item):
        store = MagicMock()
        store.load.return_value = None
        store.save.side_effect = RuntimeError("disk full")
        logger = MagicMock()
        coordinator = TimerCoordinator(store, logger=logger)
        coordinator.open(speech_item, NOW)
        assert coordinator.start("speech1", NOW).accepted
        logger.error.assert_called_once()


class TestRecovery:
    def test_recent_running_snapshot_resumes(self, store, speech_item):
        store.save(
            TimerSnapshot(
                item_id="speech1",
                elapsed=100,
                running=True,
                has_started=True,
                snapshot_at=(NOW - timedelta(seconds=60)).isoformat(),
            )
        )
        timer = TimerCoordinator(store).open(speech_item, NOW)
        assert timer.status == "running"
        assert timer.elapsed == 160

    def test_stale_snapshot_resumes_paused(self, store, speech_item):
        store.save(
            TimerSnapshot(
                item_id="speech1",
                elapsed=100,
                running=True,
                has_started=True,
                snapshot_at=(NOW - timedelta(seconds=600)).isoformat(),
            )
        )
        coordinator = TimerCoordinator(store)
        timer = coordinator.open(speech_item, NOW)
        assert timer.status == "paused"
        assert timer.elapsed == 100
        assert coordinator.recovery_for("speech1").stale

    def test_recovery_across_restart(self, tmp_path, speech_item):
        first = TimerCoordinator(FileSnapshotStore(tmp_path / "state"))
        first.open(speech_item, NOW)
        first.start("speech1", NOW)
        first.tick(_later(30), 30)

        second = TimerCoordinator(FileSnapshotStore(tmp_path / "state"))
        timer = second.open(speech_item, _later(90))
        assert timer.status == "running"
        assert timer.elapsed == 90

    def test_malformed_snapshot_opens_fresh_timer(self, tmp_path, speech_item):
        store = FileSnapshotStore(tmp_path / "state", logger=MagicMock())
        store.path_for("speech1").write_text(
            '{"item_id": "speech1", "elapsed": 30, "running": true, '
            '"has_started": true, "snapshot_at": "garbage"}',
            encoding="utf-8",
        )
        coordinator = TimerCoordinator(store)
        timer = coordinator.open(speech_item, NOW)
        assert timer.status == "not_started"
        assert coordinator.recovery_for("speech1").action == "none"

    def test_recovered_timer_does_not_replay_cues(self, store, speech_item):
        store.save(
            TimerSnapshot(
                item_id="speech1",
                elapsed=370,
                running=True,
                has_started=True,
                snapshot_at=NOW.isoformat(),
            )
        )
        coordinator = TimerCoordinator(store, white_grace_seconds=None)
        events = []
        coordinator.subscribe(events.append)
        coordinator.open(speech_item, NOW)
        coordinator.tick(_later(1))
        assert not [e for e in events if isinstance(e, PhaseChanged)]


class TestPersonalTimers:
    def test_only_impromptu_items_get_personal_timers(
        self, coordinator, speech_item, impromptu_item
    ):
        coordinator.open(speech_item, NOW)
        coordinator.open(impromptu_item, NOW)
        assert coordinator.personal_timers("speech1") is None
        assert coordinator.personal_timers("topics1") == []
        assert coordinator.add_personal_timer("speech1", "Alice") is None
        assert not coordinator.remove_personal_timer("speech1", "x")

    def test_impromptu_keyword_in_title(self, coordinator):
        item = AgendaItem(
            id="tt", title="Table Topics", duration=900, category=SessionCategory.OTHER
        )
        coordinator.open(item, NOW)
        assert coordinator.personal_timers("tt") == []

    def test_personal_timers_tick_independently(self, coordinator, impromptu_item):
        coordinator.open(impromptu_item, NOW)
        alice = coordinator.add_personal_timer("topics1", "Alice")
        coordinator.toggle_personal_timer("topics1", alice.id)
        coordinator.tick(_later(5), 5)
        assert coordinator.personal_timers("topics1")[0].elapsed == 5
        assert coordinator.get("topics1").elapsed == 0

    def test_reset_and_remove(self, coordinator, impromptu_item):
        coordinator.open(impromptu_item, NOW)
        alice = coordinator.add_personal_timer("topics1", "Alice")
        coordinator.toggle_personal_timer("topics1", alice.id)
        coordinator.tick(_later(5), 5)
        assert coordinator.reset_personal_timer("topics1", alice.id).elapsed == 0
        assert coordinator.remove_personal_timer("topics1", alice.id)
        assert coordinator.personal_timers("topics1") == []

    def test_close_discards_personal_timers(self, coordinator, impromptu_item):
        coordinator.open(impromptu_item, NOW)
        coordinator.add_personal_timer("topics1", "Alice")
        coordinator.close("topics1")
        assert coordinator.personal_timers("topics1") is None


class TestEvents:
    def test_listener_receives_ticks_phase_changes_and_completion(
        self, coordinator, speech_item
    ):
        events = []
        coordinator.subscribe(events.append)
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(300), 300)
        coordinator.stop("speech1", _later(300))

        assert isinstance(events[0], PhaseChanged)
        assert events[0].current == "green"
        assert isinstance(events[1], TimerTicked)
        assert isinstance(events[2], TimerCompleted)

    def test_unsubscribe(self, coordinator, speech_item):
        events = []
        unsubscribe = coordinator.subscribe(events.append)
        unsubscribe()
        unsubscribe()
        coordinator.open(speech_item, NOW)
        coordinator.start("speech1", NOW)
        coordinator.tick(_later(1))
        assert events == []
