"""
Structured logging for the watcher using structlog.
Provides structured logging with different output formats and levels.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union
import structlog
from structlog.stdlib import LoggerFactory

from watcher.models import ChangeResult, ChangeType, CycleResult, DateSnapshot, WatchedDate


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Enable debug mode for more verbose logging
    """

    # Log lines go to stderr; stdout carries the release event stream
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


class PollLogger:
    """
    Specialized logger for poll cycles with context management.
    """

    def __init__(self, name: str = "poll_service"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'PollLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def clear_context(self) -> 'PollLogger':
        """Clear all context variables."""
        self.context.clear()
        return self

    def log_watch_start(self, dates: List[WatchedDate], interval: float, jitter: float,
                        dump_file: Optional[str] = None, max_polls: Optional[int] = None) -> None:
        """Log the start of the polling loop."""
        self.logger.info(
            "Starting polling loop, watching booking horizon",
            watching=[f"{d.date} (+{d.days_out}d)" for d in dates],
            interval_seconds=interval,
            jitter_seconds=jitter,
            dump_file=dump_file,
            max_polls=max_polls,
            **self.context
        )

    def log_cycle_start(self, poll_number: int, dates: List[str]) -> None:
        """Log the dates queried this cycle."""
        self.logger.info(
            "Poll started",
            poll_number=poll_number,
            dates=dates,
            **self.context
        )

    def log_baseline(self, snapshot: DateSnapshot) -> None:
        """Log a date's first observation of the run."""
        if snapshot.slot_count > 0:
            self.logger.info(
                "Baseline",
                date=snapshot.label,
                slot_count=snapshot.slot_count,
                slot_times=snapshot.slot_times,
                **self.context
            )
        else:
            self.logger.info("Baseline, no availability", date=snapshot.label, **self.context)

    def log_change(self, change: ChangeResult, label: str) -> None:
        """Log one non-release classification. Unchanged dates stay silent."""
        if change.change_type == ChangeType.NEW_DATE:
            if change.current_count > 0:
                self.logger.info(
                    "New date entered lookahead window with availability",
                    date=label,
                    slot_count=change.current_count,
                    slot_times=change.slot_times,
                    **self.context
                )
            else:
                self.logger.info(
                    "Date entered lookahead window, no availability yet",
                    date=label,
                    **self.context
                )
        elif change.change_type == ChangeType.DELTA:
            self.logger.info(
                "Slot set changed",
                date=label,
                previous_count=change.previous_count,
                slot_count=change.current_count,
                added=change.added,
                removed=change.removed,
                **self.context
            )

    def log_fetch_failure(self, date: str, error: str) -> None:
        """Log a failed fetch for one date."""
        self.logger.warning(
            "Availability fetch failed, treating date as zero slots",
            date=date,
            error=error,
            **self.context
        )

    def log_malformed_payload(self, date: str) -> None:
        """Log an availability payload with an unexpected shape."""
        self.logger.warning(
            "Unexpected availability payload shape, treating date as zero slots",
            date=date,
            **self.context
        )

    def log_left_window(self, dates: List[str]) -> None:
        """Log dates that are no longer watched."""
        self.logger.info("Dates left lookahead window", dates=dates, **self.context)

    def log_cycle_complete(self, result: CycleResult) -> None:
        """Log cycle completion."""
        if not result.success:
            level, message = "error", "Poll failed"
        else:
            level = "info"
            message = "Baseline established" if result.baseline else "Poll completed"
        getattr(self.logger, level)(
            message,
            poll_number=result.poll_number,
            releases=result.releases,
            deltas=result.deltas,
            new_dates=result.new_dates,
            failed_dates=result.failed_dates,
            fingerprint=result.fingerprint,
            duration_seconds=round(result.duration_seconds, 3),
            errors=result.errors or None,
            **self.context
        )

    def log_cycle_error(self, poll_number: int, error: str) -> None:
        """Log an error that aborted a cycle."""
        self.logger.error(
            "Error during poll",
            poll_number=poll_number,
            error=error,
            **self.context
        )

    def log_sleep(self, delay: float) -> None:
        """Log the inter-cycle delay."""
        self.logger.info("Sleeping", delay_seconds=round(delay, 1), **self.context)
