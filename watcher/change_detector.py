"""
Change detection engine for per-date availability snapshots.

This module provides:
- Classification of a date's transition between two cycles
- Release detection (zero slots to some slots)
- Added/removed slot time computation for deltas

The detector performs no I/O; logging and event emission belong to the caller.
"""

from datetime import datetime
from typing import List, Optional, Tuple

import structlog

from watcher.fingerprinting import SnapshotFingerprinter
from watcher.models import ChangeResult, ChangeType, DateSnapshot, ReleaseEvent, utc_now

logger = structlog.get_logger(__name__)


class ChangeDetector:
    """Classifies the transition of one date between consecutive cycles."""

    def __init__(self, fingerprinter: Optional[SnapshotFingerprinter] = None):
        """
        Initialize change detector.

        Args:
            fingerprinter: Fingerprinter used to compare slot sets
        """
        self.fingerprinter = fingerprinter or SnapshotFingerprinter()
        self.logger = logger.bind(component="change_detector")

    def classify(
        self,
        previous: Optional[DateSnapshot],
        current: DateSnapshot,
        first_cycle: bool,
        timestamp: Optional[datetime] = None
    ) -> ChangeResult:
        """
        Classify a date's transition.

        Outcomes are checked in priority order: baseline, new date, release,
        delta, unchanged. A changed slot hash set with an unchanged count is a
        delta, even when no display time was added or removed.

        Args:
            previous: Stored snapshot for the date, None if the date was not tracked
            current: Snapshot from this cycle
            first_cycle: Whether this is the first cycle of the run
            timestamp: Capture time stamped on a release event

        Returns:
            ChangeResult with the classification and its payload
        """
        if current is None:
            raise ValueError("classify() requires a current snapshot")

        result = dict(
            date=current.date,
            days_out=current.days_out,
            previous_count=previous.slot_count if previous is not None else None,
            current_count=current.slot_count,
            slot_times=current.slot_times,
        )

        if previous is None:
            change_type = ChangeType.BASELINE if first_cycle else ChangeType.NEW_DATE
            return ChangeResult(change_type=change_type, **result)

        if previous.slot_count == 0 and current.slot_count > 0:
            event = ReleaseEvent(
                timestamp=timestamp or utc_now(),
                date=current.date,
                days_out=current.days_out,
                slot_count=current.slot_count,
                slot_times=current.slot_times,
            )
            self.logger.debug("Release detected", date=current.date, slot_count=current.slot_count)
            return ChangeResult(change_type=ChangeType.RELEASE, event=event, **result)

        if (previous.slot_count != current.slot_count
                or not self.fingerprinter.same_slots(previous, current)):
            added, removed = self.diff_times(previous, current)
            return ChangeResult(
                change_type=ChangeType.DELTA,
                added=added,
                removed=removed,
                **result
            )

        return ChangeResult(change_type=ChangeType.UNCHANGED, **result)

    @staticmethod
    def diff_times(previous: DateSnapshot, current: DateSnapshot) -> Tuple[List[str], List[str]]:
        """
        Slot times present now but not before, and before but not now.

        Returns:
            (added, removed), each sorted
        """
        old_times = set(previous.slot_times)
        new_times = set(current.slot_times)
        return sorted(new_times - old_times), sorted(old_times - new_times)
