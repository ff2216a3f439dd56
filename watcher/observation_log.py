"""
Append-only observation log.

Each fetched observation is written as one JSON line. A line is written
with a single call and earlier lines are never rewritten, so a crash can at
worst truncate the last line. Write failures are logged and swallowed:
detection never depends on the log.
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from watcher.models import ObservationRecord

logger = structlog.get_logger(__name__)


class ObservationLog:
    """JSON Lines sink for request/response observations."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize the observation log.

        Args:
            path: File to append to; None turns the log into a no-op
        """
        self.path = Path(path) if path else None
        self.records_written = 0
        self.failures = 0
        self.logger = logger.bind(component="observation_log")

    def append(self, record: ObservationRecord) -> bool:
        """
        Append one record.

        Args:
            record: Observation to write

        Returns:
            True if the record was written, False if logging is disabled or failed
        """
        if self.path is None:
            return False

        try:
            line = record.model_dump_json() + "\n"
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as handle:
                handle.write(line)
                handle.flush()
            self.records_written += 1
            return True

        except (OSError, ValueError) as e:
            self.failures += 1
            self.logger.warning(
                "Failed to write observation record",
                path=str(self.path),
                date=record.date,
                error=str(e)
            )
            return False
