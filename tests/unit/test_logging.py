"""
Unit Tests - Logging Configuration
"""
import logging

import pytest
from structlog.processors import JSONRenderer

from store_analytics.config.logging import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    access_level = logging.getLogger("uvicorn.access").level
    yield root
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(access_level)


class TestConfigureLogging:
    """Tests for the structlog setup"""

    def test_single_json_handler(self, restore_root_logger):
        configure_logging(log_level="DEBUG", log_format="json")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter.processors[-1], JSONRenderer)

    def test_access_log_left_to_middleware(self, restore_root_logger):
        configure_logging(log_level="INFO", log_format="text")

        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        configure_logging(log_level="chatty", log_format="text")

        assert restore_root_logger.level == logging.INFO
