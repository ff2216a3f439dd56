"""
Pytest configuration and shared fixtures.
"""

import io
import random
from datetime import datetime

import pytest

from availability.models import AvailabilityResponse
from watcher.events import EventEmitter
from watcher.horizon import HorizonScheduler
from watcher.models import PollerConfig
from watcher.observation_log import ObservationLog

FIXED_NOW = datetime(2026, 3, 1, 9, 30)


def slot_entry(minutes, slot_hash, available=True, typename="AvailableSlot"):
    """One slot record as the availability endpoint returns it."""
    return {
        "isAvailable": available,
        "timeOffsetMinutes": minutes,
        "slotHash": slot_hash,
        "pointsType": "Standard",
        "pointsValue": 100,
        "slotAvailabilityToken": f"token-{slot_hash}",
        "attributes": ["default"],
        "isMandatory": False,
        "type": "Standard",
        "__typename": typename,
    }


def availability_payload(*entries):
    """Wrap slot records in the endpoint's response nesting."""
    return {
        "data": {
            "availability": [
                {
                    "restaurantId": 1234,
                    "availabilityDays": [
                        {"dayOffset": 0, "slots": list(entries)}
                    ],
                    "__typename": "RestaurantAvailability",
                }
            ]
        }
    }


class FakeAvailabilitySource:
    """
    Scriptable stand-in for the availability client.

    Responses are looked up by date; an Exception value is raised instead of
    returned. Dates without a scripted response have no slots.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    async def fetch_date(self, date):
        self.calls.append(date)
        value = self.responses.get(date, availability_payload())
        if isinstance(value, Exception):
            raise value
        return AvailabilityResponse(date=date, request={"date": date}, payload=value)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def payload_factory():
    return availability_payload


@pytest.fixture
def slot_factory():
    return slot_entry


@pytest.fixture
def poller_config():
    """Poller configuration with all delays set to zero."""
    return PollerConfig(
        lookahead_start=11,
        lookahead_end=15,
        poll_interval_seconds=0,
        poll_jitter_seconds=0,
        min_poll_interval_seconds=0,
        request_gap_min_seconds=0,
        request_gap_max_seconds=0,
    )


@pytest.fixture
def fixed_horizon(poller_config):
    """Horizon scheduler pinned to FIXED_NOW."""
    horizon = HorizonScheduler(poller_config, rng=random.Random(42))
    horizon.now = lambda: FIXED_NOW
    return horizon


@pytest.fixture
def watched_dates(fixed_horizon):
    return [w.date for w in fixed_horizon.watched_dates()]


@pytest.fixture
def fake_source():
    return FakeAvailabilitySource()


@pytest.fixture
def event_stream():
    return io.StringIO()


@pytest.fixture
def event_emitter(event_stream):
    return EventEmitter(stream=event_stream)


@pytest.fixture
def observation_log(tmp_path):
    return ObservationLog(tmp_path / "observations.jsonl")
