"""Unit tests for speechtimer_cli.models.timer.report."""

import pytest

from speechtimer_cli.models.agenda import AgendaItem, CompletionRecord
from speechtimer_cli.models.timer.report import (
    classify_usage,
    summarize_timing,
    usage_ratio,
)


def _item(item_id, duration=300, title=None):
    return AgendaItem(id=item_id, title=title or item_id, duration=duration)


def _record(item_id, actual, planned=300):
    return CompletionRecord(
        item_id=item_id,
        planned_duration=planned,
        actual_duration=actual,
        is_overtime=actual > planned,
        overtime_amount=max(0, actual - planned),
    )


class TestUsage:
    def test_ratio(self):
        assert usage_ratio(300, 150) == 0.5

    def test_zero_planned(self):
        assert usage_ratio(0, 10) is None
        assert usage_ratio(0, 0) == 1.0

    @pytest.mark.parametrize(
        ("usage", "overtime", "verdict"),
        [
            (0.5, False, "under_used"),
            (0.8, False, "on_time"),
            (1.0, False, "on_time"),
            (1.05, True, "slightly_over"),
            (1.2, True, "well_over"),
            (None, True, "well_over"),
        ],
    )
    def test_classify(self, usage, overtime, verdict):
        assert classify_usage(usage, overtime) == verdict


class TestSummarizeTiming:
    def test_empty(self):
        summary = summarize_timing([], [])
        assert summary.recorded_items == 0
        assert summary.on_time_rate == 0
        assert summary.items == []

    def test_rates(self):
        agenda = [_item("a"), _item("b"), _item("c"), _item("d")]
        records = [_record("a", 290), _record("b", 360), _record("c", 100)]
        summary = summarize_timing(agenda, records)

        assert summary.total_items == 4
        assert summary.planned_total == 1200
        assert summary.recorded_items == 3
        assert summary.overtime_items == 1
        assert summary.on_time_items == 2
        assert summary.undertime_items == 1
        assert summary.on_time_rate == 67
        assert summary.overtime_rate == 33
        assert summary.undertime_rate == 33
        assert [a.verdict for a in summary.items] == ["on_time", "well_over", "under_used"]

    def test_latest_record_wins(self):
        summary = summarize_timing([_item("a")], [_record("a", 400), _record("a", 295)])
        assert summary.recorded_items == 1
        assert summary.overtime_items == 0
        assert summary.items[0].actual == 295

    def test_record_for_removed_item(self):
        summary = summarize_timing([_item("a")], [_record("gone", 400)])
        assert summary.recorded_items == 1
        assert summary.overtime_items == 1
        assert summary.items == []

    def test_usage_measured_against_planned_at_timing(self):
        # The item was shortened to 2' after being timed against 5'.
        summary = summarize_timing([_item("a", duration=120)], [_record("a", 290)])
        analysis = summary.items[0]
        assert analysis.planned == 300
        assert analysis.verdict == "on_time"
        assert summary.undertime_items == 0

    def test_zero_plan_with_time_used(self):
        summary = summarize_timing([_item("a", duration=0)], [_record("a", 30, planned=0)])
        assert summary.items[0].usage is None
        assert summary.items[0].verdict == "well_over"
        assert summary.undertime_items == 0
