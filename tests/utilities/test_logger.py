"""
Test cases for logging setup and the poll logger.
"""

import logging
from unittest.mock import patch

from utilities.logger import PollLogger, setup_logging
from watcher.models import ChangeResult, ChangeType, CycleResult


class TestLogging:
    """Test cases for logging setup and the poll logger."""

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "watcher.log"

        setup_logging(log_level="INFO", log_format="json", log_file=log_file)

        assert log_file.parent.exists()
        handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        try:
            assert any(h.baseFilename == str(log_file) for h in handlers)
        finally:
            for handler in handlers:
                logging.getLogger().removeHandler(handler)
                handler.close()

    def test_poll_logger_context(self):
        poll_logger = PollLogger("test")

        poll_logger.bind_context(restaurant_id=1234)
        assert poll_logger.context == {"restaurant_id": 1234}

        poll_logger.clear_context()
        assert poll_logger.context == {}

    def test_unchanged_dates_are_not_logged(self):
        poll_logger = PollLogger("test")
        change = ChangeResult(
            change_type=ChangeType.UNCHANGED,
            date="2026-03-12",
            days_out=11,
            previous_count=0,
            current_count=0
        )

        with patch.object(poll_logger, "logger") as mock_logger:
            poll_logger.log_change(change, "2026-03-12 (today+11)")

        mock_logger.info.assert_not_called()

    def test_failed_cycle_logged_as_error(self):
        poll_logger = PollLogger("test")
        result = CycleResult(poll_number=1, baseline=True, success=False, errors=["boom"])

        with patch.object(poll_logger, "logger") as mock_logger:
            poll_logger.log_cycle_complete(result)

        mock_logger.info.assert_not_called()
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "Poll failed"
