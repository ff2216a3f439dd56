"""
Slot normalization for raw availability payloads.

Turns the data source's response for one date into a DateSnapshot of
bookable slots. Unexpected payload shapes degrade to an empty snapshot
instead of raising.
"""

from typing import Any, List, Optional, Tuple

import structlog

from watcher.models import DateSnapshot, SlotIdentifier

logger = structlog.get_logger(__name__)

AVAILABLE_SLOT_TYPE = "AvailableSlot"


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to an HH:MM label."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


class SlotNormalizer:
    """Extracts bookable slots from availability responses."""

    def __init__(self, slot_type: str = AVAILABLE_SLOT_TYPE):
        """
        Initialize the normalizer.

        Args:
            slot_type: Type tag that marks a bookable slot entry
        """
        self.slot_type = slot_type
        self.logger = logger.bind(component="slot_normalizer")

    def normalize(self, date: str, days_out: int, payload: Any) -> DateSnapshot:
        """
        Build a snapshot from one date's raw payload.

        Args:
            date: Date that was queried (YYYY-MM-DD)
            days_out: Offset of the date from today
            payload: Decoded response body

        Returns:
            DateSnapshot; flagged degraded when the payload shape was unexpected
        """
        entries = self._extract_entries(payload)
        if entries is None:
            self.logger.debug("Unexpected payload shape", date=date)
            return DateSnapshot(date=date, days_out=days_out, slots=[], degraded=True)

        slots = {}
        for entry in entries:
            slot = self._to_slot(entry)
            if slot is not None and slot.hash not in slots:
                slots[slot.hash] = slot

        ordered = sorted(slots.values(), key=lambda s: (s.time, s.hash))
        return DateSnapshot(date=date, days_out=days_out, slots=ordered)

    def _extract_entries(self, payload: Any) -> Optional[List[Any]]:
        """Flatten data.availability[0].availabilityDays[*].slots, or None if malformed."""
        if not isinstance(payload, dict):
            return None
        data = payload.get("data")
        if not isinstance(data, dict):
            return None
        availability = data.get("availability")
        if not isinstance(availability, list) or not availability:
            return None
        restaurant = availability[0]
        if not isinstance(restaurant, dict):
            return None
        days = restaurant.get("availabilityDays")
        if days is None:
            return []
        if not isinstance(days, list):
            return None

        entries: List[Any] = []
        for day in days:
            if isinstance(day, dict) and isinstance(day.get("slots"), list):
                entries.extend(day["slots"])
        return entries

    def _to_slot(self, entry: Any) -> Optional[SlotIdentifier]:
        """Map a bookable entry to a SlotIdentifier; anything else is dropped."""
        if not isinstance(entry, dict):
            return None
        if entry.get("isAvailable") is not True or entry.get("__typename") != self.slot_type:
            return None

        offset, slot_hash = self._slot_fields(entry)
        if offset is None or not slot_hash:
            return None
        return SlotIdentifier(time=minutes_to_time(offset), hash=slot_hash)

    @staticmethod
    def _slot_fields(entry: dict) -> Tuple[Optional[int], Optional[str]]:
        offset = entry.get("timeOffsetMinutes")
        if isinstance(offset, bool) or not isinstance(offset, (int, float)) or offset < 0:
            offset = None
        slot_hash = entry.get("slotHash")
        return offset, str(slot_hash) if slot_hash is not None else None
