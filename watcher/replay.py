"""
Offline replay of an observation log.

Reads the JSON Lines written by ObservationLog, groups records into cycles
by capture timestamp and reruns normalization and change detection, so a
past run can be audited without touching the site.
"""

import json
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import structlog
from pydantic import ValidationError

from watcher.change_detector import ChangeDetector
from watcher.models import ChangeResult, ChangeType, DateSnapshot, ObservationRecord
from watcher.normalizer import SlotNormalizer
from watcher.store import SnapshotStore

logger = structlog.get_logger(__name__)


class ObservationReplayer:
    """Replays logged observations through the normalizer and detector."""

    def __init__(
        self,
        normalizer: Optional[SlotNormalizer] = None,
        detector: Optional[ChangeDetector] = None
    ):
        self.normalizer = normalizer or SlotNormalizer()
        self.detector = detector or ChangeDetector()
        self.skipped_lines = 0
        self.logger = logger.bind(component="observation_replayer")

    def read_records(self, path: Union[str, Path]) -> Iterator[ObservationRecord]:
        """
        Yield records from a log file, skipping lines that do not parse.

        Args:
            path: Observation log path
        """
        with open(path, "r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield ObservationRecord(**json.loads(line))
                except (ValueError, TypeError, ValidationError) as e:
                    self.skipped_lines += 1
                    self.logger.warning(
                        "Skipping unreadable observation line",
                        line_number=line_number,
                        error=str(e)
                    )

    def group_cycles(self, records: Iterator[ObservationRecord]) -> List[List[ObservationRecord]]:
        """Group consecutive records that share a capture timestamp."""
        cycles: List[List[ObservationRecord]] = []
        for record in records:
            if cycles and cycles[-1][0].timestamp == record.timestamp:
                cycles[-1].append(record)
            else:
                cycles.append([record])
        return cycles

    def replay(self, path: Union[str, Path]) -> List[ChangeResult]:
        """
        Replay a log and return the non-silent changes it implies.

        Failed fetches and malformed payloads are skipped the same way the
        live loop skips them.

        Args:
            path: Observation log path

        Returns:
            Changes in log order, baselines and unchanged dates excluded
        """
        store = SnapshotStore()
        changes: List[ChangeResult] = []
        cycles = self.group_cycles(self.read_records(path))

        for index, cycle in enumerate(cycles):
            fresh: Dict[str, DateSnapshot] = {}
            for record in cycle:
                previous = store.get(record.date)
                snapshot = self._snapshot(record)
                if snapshot is None:
                    if previous is not None:
                        fresh[record.date] = previous
                    continue

                change = self.detector.classify(
                    previous, snapshot, first_cycle=index == 0, timestamp=record.timestamp
                )
                if change.change_type not in (ChangeType.BASELINE, ChangeType.UNCHANGED):
                    changes.append(change)
                fresh[record.date] = snapshot
            store.replace(fresh.values())

        self.logger.info(
            "Replay completed",
            path=str(path),
            cycles=len(cycles),
            changes=len(changes),
            skipped_lines=self.skipped_lines
        )
        return changes

    def _snapshot(self, record: ObservationRecord) -> Optional[DateSnapshot]:
        if record.error is not None:
            return None
        snapshot = self.normalizer.normalize(record.date, record.days_out or 0, record.response)
        return None if snapshot.degraded else snapshot
