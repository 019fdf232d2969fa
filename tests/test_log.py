"""Tests for trending/log.py — logger hierarchy and daily file naming."""

import logging
from datetime import datetime

from trending.log import LOGGER_NAME, get_logger, log_file_for, set_verbose


class TestGetLogger:
    def test_root_logger(self):
        assert get_logger().name == LOGGER_NAME

    def test_component_child(self):
        logger = get_logger("extraction")
        assert logger.name == "trending.extraction"
        assert logger.parent is get_logger()

    def test_handlers_added_once(self):
        count = len(get_logger().handlers)
        get_logger("store")
        get_logger()
        assert len(get_logger().handlers) == count


class TestLogFile:
    def test_named_by_day(self):
        assert log_file_for(datetime(2026, 10, 18)).name == "trending_20261018.log"


class TestSetVerbose:
    def test_console_level_toggles(self):
        console = [
            h for h in get_logger().handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        set_verbose(True)
        assert all(h.level == logging.DEBUG for h in console)
        set_verbose(False)
        assert all(h.level == logging.INFO for h in console)
