"""
Poll service: drives the horizon watcher loop.

This module provides:
- The fetch -> normalize -> log -> compare -> store -> sleep cycle
- Cycle-level error handling so transient failures never stop the loop
- Graceful shutdown on SIGINT/SIGTERM with an interruptible sleep
"""

import asyncio
import signal
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

import structlog

from watcher.change_detector import ChangeDetector
from watcher.events import EventEmitter
from watcher.fingerprinting import SnapshotFingerprinter
from watcher.horizon import HorizonScheduler
from watcher.models import (
    ChangeType, CycleResult, DateSnapshot, ObservationRecord, PollerConfig,
    PollState, WatchedDate, utc_now
)
from watcher.normalizer import SlotNormalizer
from watcher.observation_log import ObservationLog
from watcher.store import SnapshotStore
from utilities.logger import PollLogger

logger = structlog.get_logger(__name__)

# Takes a date (YYYY-MM-DD) and returns an object carrying `request` and `payload`
FetchFunc = Callable[[str], Awaitable[Any]]


class PollService:
    """Main poll loop for horizon change detection."""

    def __init__(
        self,
        config: PollerConfig,
        fetch: FetchFunc,
        observation_log: Optional[ObservationLog] = None,
        event_emitter: Optional[EventEmitter] = None,
        horizon: Optional[HorizonScheduler] = None,
        normalizer: Optional[SlotNormalizer] = None,
        detector: Optional[ChangeDetector] = None
    ):
        """
        Initialize poll service.

        Args:
            config: Poller configuration
            fetch: Coroutine function fetching one date's raw availability
            observation_log: Observation sink (built from config.dump_file when omitted)
            event_emitter: Release event stream (stdout when omitted)
            horizon: Horizon scheduler (built from config when omitted)
            normalizer: Slot normalizer
            detector: Change detector
        """
        self.config = config
        self.fetch = fetch
        self.observation_log = observation_log or ObservationLog(config.dump_file)
        self.event_emitter = event_emitter or EventEmitter()
        self.horizon = horizon or HorizonScheduler(config)
        self.normalizer = normalizer or SlotNormalizer()
        self.fingerprinter = SnapshotFingerprinter()
        self.detector = detector or ChangeDetector(self.fingerprinter)

        self.store = SnapshotStore()
        self.state = PollState.IDLE
        self.poll_count = 0
        self.first_cycle = True
        self.last_result: Optional[CycleResult] = None

        self.logger = logger.bind(component="poll_service")
        self.poll_logger = PollLogger("poll_service")
        self._stop_event = asyncio.Event()
        self._signals_installed: List[int] = []

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request shutdown; the current cycle finishes its comparisons first."""
        if not self._stop_event.is_set():
            self.logger.info("Received shutdown signal, stopping after current poll")
        self._stop_event.set()

    def _set_state(self, state: PollState) -> None:
        self.logger.debug("Poll state changed", previous=self.state.value, state=state.value)
        self.state = state

    def _setup_signal_handlers(self) -> None:
        """Route SIGINT/SIGTERM to stop()."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.stop)
                self._signals_installed.append(signum)
            except (NotImplementedError, RuntimeError):
                self.logger.debug("Signal handlers not supported here", signal=int(signum))

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in self._signals_installed:
            loop.remove_signal_handler(signum)
        self._signals_installed.clear()

    def _budget_exhausted(self, poll_number: int) -> bool:
        return self.config.max_polls is not None and poll_number > self.config.max_polls

    async def start(self, install_signal_handlers: bool = True) -> int:
        """
        Run the poll loop until stopped or the poll budget is used up.

        Args:
            install_signal_handlers: Route SIGINT/SIGTERM to a graceful stop

        Returns:
            Number of cycles run
        """
        self.poll_logger.log_watch_start(
            self.horizon.watched_dates(),
            interval=self.config.poll_interval_seconds,
            jitter=self.config.poll_jitter_seconds,
            dump_file=self.config.dump_file,
            max_polls=self.config.max_polls
        )

        if install_signal_handlers:
            self._setup_signal_handlers()

        try:
            while not self.stop_requested:
                if self._budget_exhausted(self.poll_count + 1):
                    self.logger.info("Reached max polls, exiting", max_polls=self.config.max_polls)
                    break

                self.poll_count += 1
                self.last_result = await self.run_cycle(self.poll_count)

                if self.stop_requested or self._budget_exhausted(self.poll_count + 1):
                    continue

                await self._sleep_between_cycles()
        finally:
            if install_signal_handlers:
                self._remove_signal_handlers()
            self._set_state(PollState.STOPPED)
            self.logger.info("Polling loop ended", polls=self.poll_count)

        return self.poll_count

    async def run_cycle(self, poll_number: int) -> CycleResult:
        """
        Fetch every watched date, compare against the store and replace it.

        Errors outside the per-date fetch are recorded on the result and logged;
        they never propagate, and leave the store untouched.

        Args:
            poll_number: 1-based cycle number

        Returns:
            CycleResult for this cycle
        """
        start_time = utc_now()
        watched = self.horizon.watched_dates()
        result = CycleResult(
            poll_number=poll_number,
            run_timestamp=start_time,
            dates=[w.date for w in watched],
            baseline=self.first_cycle
        )
        self.poll_logger.log_cycle_start(poll_number, result.dates)

        try:
            self._set_state(PollState.FETCHING)
            snapshots = await self._fetch_cycle(watched, start_time)

            self._set_state(PollState.COMPARING)
            fresh = self._compare(snapshots, result, start_time)

            dropped = self.store.replace(fresh)
            if dropped:
                result.left_window = dropped
                self.poll_logger.log_left_window(dropped)

            result.fingerprint = self.fingerprinter.horizon_digest(fresh)
            self.first_cycle = False

        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.success = False
            result.errors.append(str(e))
            self.poll_logger.log_cycle_error(poll_number, str(e))
            result.events = []

        # Events go out only once the store holds this cycle's snapshots
        for event in result.events:
            self.event_emitter.emit(event)

        result.duration_seconds = (utc_now() - start_time).total_seconds()
        self.poll_logger.log_cycle_complete(result)
        return result

    async def _fetch_cycle(self, watched: List[WatchedDate], timestamp: datetime) -> List[DateSnapshot]:
        """Fetch dates one after another with a random gap between requests."""
        snapshots = []
        for index, watched_date in enumerate(watched):
            snapshots.append(await self._observe(watched_date, timestamp))

            if index < len(watched) - 1:
                await asyncio.sleep(self.horizon.inter_request_gap())

        return snapshots

    async def _observe(self, watched: WatchedDate, timestamp: datetime) -> DateSnapshot:
        """Fetch, log and normalize one date. Failures degrade to zero slots."""
        try:
            response = await self.fetch(watched.date)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.poll_logger.log_fetch_failure(watched.date, str(e))
            self.observation_log.append(ObservationRecord(
                timestamp=timestamp,
                date=watched.date,
                days_out=watched.days_out,
                request={"date": watched.date},
                error=str(e)
            ))
            return DateSnapshot(date=watched.date, days_out=watched.days_out, degraded=True)

        payload = getattr(response, "payload", response)
        self.observation_log.append(ObservationRecord(
            timestamp=timestamp,
            date=watched.date,
            days_out=watched.days_out,
            request=getattr(response, "request", None) or {"date": watched.date},
            response=payload
        ))

        snapshot = self.normalizer.normalize(watched.date, watched.days_out, payload)
        if snapshot.degraded:
            self.poll_logger.log_malformed_payload(watched.date)
        return snapshot

    def _compare(self, snapshots: List[DateSnapshot], result: CycleResult,
                 timestamp: datetime) -> List[DateSnapshot]:
        """
        Classify each snapshot against the store, log changes and collect events.

        Returns:
            Snapshots for the next store. A degraded date keeps its previous
            snapshot so a failed fetch cannot later look like a release.
        """
        fresh = []
        for snapshot in snapshots:
            previous = self.store.get(snapshot.date)

            if snapshot.degraded:
                result.failed_dates.append(snapshot.date)
                if previous is not None:
                    fresh.append(previous)
                continue

            change = self.detector.classify(previous, snapshot, self.first_cycle, timestamp)
            result.changes.append(change)

            if change.change_type == ChangeType.BASELINE:
                self.poll_logger.log_baseline(snapshot)
            elif change.change_type == ChangeType.RELEASE:
                result.releases += 1
                result.events.append(change.event)
            elif change.change_type == ChangeType.DELTA:
                result.deltas += 1
                self.poll_logger.log_change(change, snapshot.label)
            elif change.change_type == ChangeType.NEW_DATE:
                result.new_dates += 1
                self.poll_logger.log_change(change, snapshot.label)
            else:
                result.unchanged += 1

            fresh.append(snapshot)

        return fresh

    async def _sleep_between_cycles(self) -> None:
        """Wait out the jittered delay, returning early if a stop is requested."""
        delay = self.horizon.jittered_delay()
        self._set_state(PollState.SLEEPING)
        self.poll_logger.log_sleep(delay)

        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
