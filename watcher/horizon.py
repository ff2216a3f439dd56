"""
Horizon scheduling for the poll loop.

This module provides:
- The rolling list of dates to watch, recomputed from "now" every cycle
- The randomized gap between per-date requests
- The jittered, floor-clamped delay between cycles
"""

import random
from datetime import datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

import structlog

from watcher.models import PollerConfig, WatchedDate, WatchedWindow

logger = structlog.get_logger(__name__)


class HorizonScheduler:
    """Date math and delay computation for the poll loop."""

    def __init__(self, config: PollerConfig, rng: Optional[random.Random] = None):
        """
        Initialize the horizon scheduler.

        Args:
            config: Poller configuration
            rng: Random source, injectable for reproducible delays
        """
        self.config = config
        self.window: WatchedWindow = config.window
        self.rng = rng or random.Random()
        self.tz = ZoneInfo(config.timezone) if config.timezone else None
        self.logger = logger.bind(component="horizon_scheduler")

    def now(self) -> datetime:
        """Current time in the configured timezone (local time when unset)."""
        return datetime.now(self.tz)

    def watched_dates(self, now: Optional[datetime] = None) -> List[WatchedDate]:
        """
        Compute the dates in the lookahead window.

        Recomputing from the current time each cycle is what moves the window
        across midnight.

        Args:
            now: Reference time (defaults to the current time)

        Returns:
            WatchedDate list ordered by days out
        """
        today = (now or self.now()).date()
        return [
            WatchedDate(
                date=(today + timedelta(days=days_out)).isoformat(),
                days_out=days_out
            )
            for days_out in self.window.days_out
        ]

    def inter_request_gap(self) -> float:
        """Randomized pause in seconds between two per-date requests."""
        return self.rng.uniform(
            self.config.request_gap_min_seconds,
            self.config.request_gap_max_seconds
        )

    def jittered_delay(self) -> float:
        """
        Delay in seconds before the next cycle: base +/- uniform jitter,
        never below the configured floor.
        """
        jitter = self.rng.uniform(-1.0, 1.0) * self.config.poll_jitter_seconds
        return max(
            self.config.min_poll_interval_seconds,
            self.config.poll_interval_seconds + jitter
        )
