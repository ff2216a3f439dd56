"""
Test cases for the observation log.
"""

import json
from datetime import datetime

from watcher.models import ObservationRecord
from watcher.observation_log import ObservationLog


def record(date="2026-03-12", **kwargs):
    return ObservationRecord(
        timestamp=datetime(2026, 3, 1, 9, 30),
        date=date,
        days_out=11,
        request={"date": date},
        **kwargs
    )


class TestObservationLog:
    """Test cases for ObservationLog."""

    def test_append_writes_one_json_line_per_record(self, observation_log):
        assert observation_log.append(record(response={"data": {"availability": []}})) is True
        assert observation_log.append(record(date="2026-03-13", error="timeout")) is True

        lines = observation_log.path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2

        first, second = (json.loads(line) for line in lines)
        assert first["date"] == "2026-03-12"
        assert first["response"] == {"data": {"availability": []}}
        assert second["error"] == "timeout"
        assert observation_log.records_written == 2

    def test_append_never_rewrites_existing_lines(self, observation_log):
        observation_log.path.write_text('{"date": "2026-03-01"}\n', encoding="utf-8")

        observation_log.append(record())

        lines = observation_log.path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == '{"date": "2026-03-01"}'
        assert json.loads(lines[1])["date"] == "2026-03-12"

    def test_creates_parent_directories(self, tmp_path):
        log = ObservationLog(tmp_path / "nested" / "dir" / "obs.jsonl")
        assert log.append(record()) is True
        assert log.path.exists()

    def test_disabled_without_path(self):
        log = ObservationLog(None)

        assert log.path is None
        assert log.append(record()) is False
        assert log.records_written == 0

    def test_write_failure_is_swallowed(self, tmp_path):
        # A directory in place of the file makes open() fail
        target = tmp_path / "obs.jsonl"
        target.mkdir()
        log = ObservationLog(target)

        assert log.append(record()) is False
        assert log.failures == 1

    def test_unserializable_response_is_swallowed(self, observation_log):
        assert observation_log.append(record(response={"bad": object()})) is False
        assert observation_log.failures == 1
