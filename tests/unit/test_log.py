"""
Unit tests for logging setup.
"""

import logging
from pathlib import Path

from rich.logging import RichHandler

from flowreplay.log import LOGGER_NAME, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_console_handler_only(self) -> None:
        logger = configure_logging("debug")
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert [type(h) for h in logger.handlers] == [RichHandler]
        assert logger.propagate is False

    def test_reconfigure_replaces_handlers(self, temp_dir: Path) -> None:
        configure_logging("INFO", temp_dir / "first.log")
        logger = configure_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_file_handler(self, temp_dir: Path) -> None:
        log_file = temp_dir / "flowreplay.log"
        logger = configure_logging("INFO", log_file)
        logging.getLogger("flowreplay.engine").info("task t1: replaying login.json")
        for handler in logger.handlers:
            handler.flush()
        content = log_file.read_text()
        assert "INFO flowreplay.engine: task t1: replaying login.json" in content
        configure_logging("INFO")
