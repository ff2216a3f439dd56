"""
Models for horizon polling and change detection.

This module defines Pydantic models for:
- Normalized slot snapshots
- The watched lookahead window
- Observation log records
- Release events and change classifications
- Cycle results and poller configuration
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class ChangeType(str, Enum):
    """Outcome of comparing one date's snapshot with the previous one."""
    BASELINE = "baseline"
    NEW_DATE = "new_date"
    RELEASE = "release"
    DELTA = "delta"
    UNCHANGED = "unchanged"


class PollState(str, Enum):
    """States of the poll loop."""
    IDLE = "idle"
    FETCHING = "fetching_cycle"
    COMPARING = "comparing"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class SlotIdentifier(BaseModel):
    """One bookable slot: display time plus the site's stable slot hash."""
    time: str = Field(..., pattern=r"^\d{2,}:\d{2}$", description="Minute-of-day label (HH:MM)")
    hash: str = Field(..., min_length=1, description="Opaque stable slot identifier")

    class Config:
        """Pydantic configuration."""
        frozen = True


class DateSnapshot(BaseModel):
    """Normalized set of bookable slots observed for one date at one point in time."""
    date: str = Field(..., pattern=DATE_PATTERN, description="Calendar day (YYYY-MM-DD)")
    days_out: int = Field(..., description="Offset from today at capture time")
    slots: List[SlotIdentifier] = Field(default_factory=list)
    degraded: bool = Field(default=False, description="Fetch failed or payload was malformed")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @model_validator(mode="after")
    def validate_unique_hashes(self):
        """No two slots of one date share a hash."""
        hashes = [slot.hash for slot in self.slots]
        if len(hashes) != len(set(hashes)):
            raise ValueError("slot hashes must be unique within a date")
        return self

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    @property
    def slot_times(self) -> List[str]:
        return sorted(slot.time for slot in self.slots)

    @property
    def hash_set(self) -> frozenset:
        return frozenset(slot.hash for slot in self.slots)

    @property
    def label(self) -> str:
        return f"{self.date} (today+{self.days_out})"


class WatchedDate(BaseModel):
    """A single date inside the lookahead window."""
    date: str = Field(..., pattern=DATE_PATTERN)
    days_out: int

    class Config:
        """Pydantic configuration."""
        frozen = True


class WatchedWindow(BaseModel):
    """Contiguous days-out range polled every cycle."""
    lookahead_start: int = Field(..., ge=0)
    lookahead_end: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_bounds(self):
        """Window start never exceeds its end."""
        if self.lookahead_start > self.lookahead_end:
            raise ValueError("lookahead_start must not exceed lookahead_end")
        return self

    @property
    def days_out(self) -> List[int]:
        return list(range(self.lookahead_start, self.lookahead_end + 1))

    def __len__(self) -> int:
        return self.lookahead_end - self.lookahead_start + 1


class ObservationRecord(BaseModel):
    """One fetched observation, written once to the observation log."""
    timestamp: datetime = Field(default_factory=utc_now)
    date: str = Field(..., pattern=DATE_PATTERN)
    days_out: Optional[int] = Field(default=None)
    request: Dict[str, Any] = Field(default_factory=dict, description="Request description")
    response: Optional[Any] = Field(default=None, description="Full raw response")
    error: Optional[str] = Field(default=None, description="Fetch error, when the request failed")

    class Config:
        """Pydantic configuration."""
        frozen = True


class ReleaseEvent(BaseModel):
    """A date went from zero bookable slots to one or more."""
    event: str = Field(default="date-release")
    timestamp: datetime = Field(default_factory=utc_now)
    date: str = Field(..., pattern=DATE_PATTERN)
    days_out: int
    slot_count: int = Field(..., gt=0)
    slot_times: List[str] = Field(default_factory=list)


class ChangeResult(BaseModel):
    """Classification of one date's transition, with its payload."""
    change_type: ChangeType
    date: str
    days_out: int
    previous_count: Optional[int] = Field(default=None)
    current_count: int = Field(default=0)
    slot_times: List[str] = Field(default_factory=list)
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    event: Optional[ReleaseEvent] = Field(default=None)


class CycleResult(BaseModel):
    """Result of one fetch-and-compare cycle."""
    poll_number: int
    run_timestamp: datetime = Field(default_factory=utc_now)
    dates: List[str] = Field(default_factory=list)
    baseline: bool = Field(default=False)

    # Classification breakdown
    releases: int = Field(default=0)
    deltas: int = Field(default=0)
    new_dates: int = Field(default=0)
    unchanged: int = Field(default=0)
    failed_dates: List[str] = Field(default_factory=list)
    left_window: List[str] = Field(default_factory=list)

    changes: List[ChangeResult] = Field(default_factory=list)
    events: List[ReleaseEvent] = Field(default_factory=list)
    fingerprint: Optional[str] = Field(default=None)

    duration_seconds: float = Field(default=0.0)
    success: bool = Field(default=True)
    errors: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class PollerConfig(BaseModel):
    """Configuration for the poll loop."""
    # Window
    lookahead_start: int = Field(default=11, ge=0, description="First days-out value to watch")
    lookahead_end: int = Field(default=15, ge=0, description="Last days-out value to watch")
    timezone: Optional[str] = Field(default=None, description="Timezone that defines 'today'")

    # Cadence
    poll_interval_seconds: float = Field(default=60.0, ge=0)
    poll_jitter_seconds: float = Field(default=20.0, ge=0)
    min_poll_interval_seconds: float = Field(default=10.0, ge=0)
    request_gap_min_seconds: float = Field(default=1.0, ge=0)
    request_gap_max_seconds: float = Field(default=3.0, ge=0)
    max_polls: Optional[int] = Field(default=None, ge=1)

    # Observation log
    dump_file: Optional[str] = Field(default=None)

    @model_validator(mode="after")
    def validate_ranges(self):
        """Window and gap bounds are ordered."""
        if self.lookahead_start > self.lookahead_end:
            raise ValueError("lookahead_start must not exceed lookahead_end")
        if self.request_gap_min_seconds > self.request_gap_max_seconds:
            raise ValueError("request_gap_min_seconds must not exceed request_gap_max_seconds")
        return self

    @property
    def window(self) -> WatchedWindow:
        return WatchedWindow(
            lookahead_start=self.lookahead_start,
            lookahead_end=self.lookahead_end
        )
