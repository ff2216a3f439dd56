"""
Test cases for watcher models.
Tests validation, derived properties and serialization.
"""

import json
from datetime import timedelta

import pytest
from pydantic import ValidationError

from watcher.models import (
    ChangeType, CycleResult, DateSnapshot, ObservationRecord, PollerConfig,
    ReleaseEvent, SlotIdentifier, WatchedWindow
)


class TestSlotIdentifier:
    """Test cases for SlotIdentifier."""

    def test_valid_slot(self):
        slot = SlotIdentifier(time="18:30", hash="h1")
        assert slot.time == "18:30"
        assert slot.hash == "h1"

    def test_invalid_time_label(self):
        with pytest.raises(ValidationError):
            SlotIdentifier(time="6pm", hash="h1")

    def test_empty_hash_rejected(self):
        with pytest.raises(ValidationError):
            SlotIdentifier(time="18:30", hash="")


class TestDateSnapshot:
    """Test cases for DateSnapshot."""

    def test_derived_properties(self):
        snapshot = DateSnapshot(
            date="2026-03-12",
            days_out=11,
            slots=[SlotIdentifier(time="19:00", hash="h2"), SlotIdentifier(time="18:00", hash="h1")]
        )

        assert snapshot.slot_count == 2
        assert snapshot.slot_times == ["18:00", "19:00"]
        assert snapshot.hash_set == frozenset({"h1", "h2"})
        assert snapshot.label == "2026-03-12 (today+11)"
        assert snapshot.degraded is False

    def test_empty_snapshot(self):
        snapshot = DateSnapshot(date="2026-03-12", days_out=11)
        assert snapshot.slot_count == 0
        assert snapshot.slot_times == []

    def test_duplicate_hashes_rejected(self):
        with pytest.raises(ValidationError):
            DateSnapshot(
                date="2026-03-12",
                days_out=11,
                slots=[SlotIdentifier(time="18:00", hash="h1"), SlotIdentifier(time="19:00", hash="h1")]
            )

    def test_invalid_date_format(self):
        with pytest.raises(ValidationError):
            DateSnapshot(date="12/03/2026", days_out=11)

    def test_snapshot_is_immutable(self):
        snapshot = DateSnapshot(date="2026-03-12", days_out=11)
        with pytest.raises(ValidationError):
            snapshot.days_out = 12


class TestWatchedWindow:
    """Test cases for WatchedWindow."""

    def test_days_out_range(self):
        window = WatchedWindow(lookahead_start=11, lookahead_end=15)
        assert window.days_out == [11, 12, 13, 14, 15]
        assert len(window) == 5

    def test_single_day_window(self):
        window = WatchedWindow(lookahead_start=3, lookahead_end=3)
        assert window.days_out == [3]

    def test_inverted_window_rejected(self):
        with pytest.raises(ValidationError):
            WatchedWindow(lookahead_start=15, lookahead_end=11)


class TestPollerConfig:
    """Test cases for PollerConfig."""

    def test_defaults(self):
        config = PollerConfig()
        assert config.lookahead_start == 11
        assert config.lookahead_end == 15
        assert config.poll_interval_seconds == 60.0
        assert config.poll_jitter_seconds == 20.0
        assert config.min_poll_interval_seconds == 10.0
        assert config.max_polls is None
        assert config.dump_file is None

    def test_window_property(self):
        config = PollerConfig(lookahead_start=2, lookahead_end=4)
        assert config.window.days_out == [2, 3, 4]

    def test_invalid_gap_bounds(self):
        with pytest.raises(ValidationError):
            PollerConfig(request_gap_min_seconds=5, request_gap_max_seconds=1)

    def test_invalid_max_polls(self):
        with pytest.raises(ValidationError):
            PollerConfig(max_polls=0)


class TestRecordsAndEvents:
    """Test cases for ObservationRecord, ReleaseEvent and CycleResult."""

    def test_observation_record_serializes_to_one_line(self):
        record = ObservationRecord(
            date="2026-03-12",
            days_out=11,
            request={"operationName": "RestaurantsAvailability"},
            response={"data": {"availability": []}}
        )

        line = record.model_dump_json()
        assert "\n" not in line
        decoded = json.loads(line)
        assert decoded["date"] == "2026-03-12"
        assert decoded["response"] == {"data": {"availability": []}}
        assert decoded["error"] is None

    def test_release_event_requires_slots(self):
        with pytest.raises(ValidationError):
            ReleaseEvent(date="2026-03-12", days_out=11, slot_count=0)

    def test_release_event_defaults(self):
        event = ReleaseEvent(date="2026-03-12", days_out=11, slot_count=1, slot_times=["18:00"])
        assert event.event == "date-release"
        assert event.timestamp is not None

    def test_default_timestamps_are_utc(self):
        record = ObservationRecord(date="2026-03-12")
        event = ReleaseEvent(date="2026-03-12", days_out=11, slot_count=1)
        result = CycleResult(poll_number=1)

        for value in (record.timestamp, event.timestamp, result.run_timestamp):
            assert value.utcoffset() == timedelta(0)

    def test_cycle_result_defaults(self):
        result = CycleResult(poll_number=1)
        assert result.success is True
        assert result.releases == 0
        assert result.failed_dates == []
        assert result.errors == []

    def test_change_type_values(self):
        assert ChangeType.BASELINE == "baseline"
        assert ChangeType.NEW_DATE == "new_date"
        assert ChangeType.RELEASE == "release"
        assert ChangeType.DELTA == "delta"
        assert ChangeType.UNCHANGED == "unchanged"
