"""
Release event stream.

This module provides:
- One JSON line per release event on the output stream
- A warning-level structured log line for the same event
- An in-memory history of emitted events for the current run

Write failures on the stream are logged and swallowed: detection state never
depends on the event sink.
"""

import sys
from typing import List, Optional, TextIO

import structlog

from watcher.models import ReleaseEvent

logger = structlog.get_logger(__name__)


class EventEmitter:
    """Writes release events to the outbound event stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Initialize the event emitter.

        Args:
            stream: Text stream for JSON lines (stdout when omitted)
        """
        self.stream = stream
        self.history: List[ReleaseEvent] = []
        self.failures = 0
        self.logger = logger.bind(component="event_emitter")

    def emit(self, event: ReleaseEvent) -> bool:
        """
        Emit one release event.

        Args:
            event: Release event to publish

        Returns:
            True if the event line was written, False if the stream failed
        """
        self.logger.warning(
            "Date release detected",
            date=event.date,
            days_out=event.days_out,
            slot_count=event.slot_count,
            slot_times=event.slot_times
        )

        stream = self.stream or sys.stdout
        try:
            stream.write(event.model_dump_json() + "\n")
            stream.flush()
        except (OSError, ValueError) as e:
            self.failures += 1
            self.logger.warning(
                "Failed to write release event",
                date=event.date,
                error=str(e)
            )
            return False

        self.history.append(event)
        return True

    @property
    def emitted_count(self) -> int:
        return len(self.history)
