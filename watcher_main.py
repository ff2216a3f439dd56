"""
Main entry point for the horizon watcher.

Polls the trailing edge of a restaurant's booking window and reports
dates that open up. Read-only: no booking, no slot locking.

Usage:
    python watcher_main.py          # poll until SIGINT/SIGTERM or MAX_POLLS
    python watcher_main.py --once   # single cycle
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import structlog
from pydantic import ValidationError

from availability.client import AvailabilityClient
from availability.models import VenueSession
from utilities.config import get_settings
from utilities.logger import setup_logging
from watcher.observation_log import ObservationLog
from watcher.poll_service import PollService


async def main():
    """Load settings, build the session and client, and run the poll service."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.get_log_file_path(),
        debug=settings.debug
    )
    logger = structlog.get_logger(__name__)

    max_polls = None
    if len(sys.argv) > 1:
        if sys.argv[1] == '--once':
            max_polls = 1
            logger.info("Running in RUN ONCE MODE - single cycle")
        else:
            print(f"Unknown argument: {sys.argv[1]}")
            print("Usage: python watcher_main.py [--once]")
            sys.exit(1)

    session = VenueSession(
        venue_url=settings.venue_url,
        restaurant_id=settings.restaurant_id,
        cookie=settings.session_cookie,
        csrf_token=settings.get_csrf_token()
    )
    if not session.cookie:
        logger.warning("No session cookie configured, requests are sent anonymously")

    poller_config = settings.to_poller_config(max_polls=max_polls)
    logger.info(
        "Horizon watcher configured",
        venue=settings.venue_url,
        restaurant_id=settings.restaurant_id,
        party_size=settings.party_size,
        lookahead_start=poller_config.lookahead_start,
        lookahead_end=poller_config.lookahead_end,
        correlation_id=session.correlation_id
    )

    try:
        async with AvailabilityClient(
            session,
            party_size=settings.party_size,
            timeout=settings.request_timeout
        ) as client:
            service = PollService(
                poller_config,
                fetch=client.fetch_date,
                observation_log=ObservationLog(settings.get_dump_file_path())
            )
            await service.start()
    except Exception as e:
        logger.error("Horizon watcher failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
