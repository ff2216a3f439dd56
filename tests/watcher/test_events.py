"""
Test cases for the release event stream.
"""

import io
import json
from datetime import datetime

import pytest

from watcher.events import EventEmitter
from watcher.models import ReleaseEvent


class ClosedStream(io.StringIO):
    """Stream whose reader has gone away."""

    def write(self, text):
        raise BrokenPipeError("stdout closed")


@pytest.fixture
def event():
    return ReleaseEvent(
        timestamp=datetime(2026, 3, 1, 9, 30),
        date="2026-03-12",
        days_out=11,
        slot_count=2,
        slot_times=["18:00", "18:30"]
    )


class TestEventEmitter:
    """Test cases for EventEmitter."""

    def test_emit_writes_json_line(self, event_emitter, event_stream, event):
        assert event_emitter.emit(event) is True

        lines = event_stream.getvalue().splitlines()
        assert len(lines) == 1
        payload = json.loads(lines[0])
        assert payload["event"] == "date-release"
        assert payload["date"] == "2026-03-12"
        assert payload["days_out"] == 11
        assert payload["slot_count"] == 2
        assert payload["slot_times"] == ["18:00", "18:30"]
        assert event_emitter.emitted_count == 1

    def test_one_line_per_event(self, event_emitter, event_stream, event):
        event_emitter.emit(event)
        event_emitter.emit(event.model_copy(update={"date": "2026-03-13", "days_out": 12}))

        dates = [json.loads(line)["date"] for line in event_stream.getvalue().splitlines()]
        assert dates == ["2026-03-12", "2026-03-13"]

    def test_stream_failure_is_swallowed(self, event):
        emitter = EventEmitter(stream=ClosedStream())

        assert emitter.emit(event) is False
        assert emitter.failures == 1
        assert emitter.emitted_count == 0
