"""Tests for logging configuration."""

import logging
from pathlib import Path

from loguru import logger

from scopesync.config.models import LoggingConfig
from scopesync.utils.logging import configure_logging


class TestConfigureLogging:
    """Test configure_logging function."""

    def test_writes_to_configured_file(self, tmp_path: Path) -> None:
        """Messages should reach the file handler."""
        log_file = tmp_path / "scopesync.log"
        configure_logging(LoggingConfig(level="DEBUG", file=log_file))

        logger.info("reconciled viewer")
        logger.complete()

        assert "reconciled viewer" in log_file.read_text()
        logger.remove()

    def test_intercepts_stdlib_logging(self, tmp_path: Path) -> None:
        """Standard library records are routed through loguru."""
        log_file = tmp_path / "stdlib.log"
        configure_logging(LoggingConfig(level="INFO", file=log_file))

        logging.getLogger("aiosqlite").warning("stdlib warning")
        logger.complete()

        assert "stdlib warning" in log_file.read_text()
        logger.remove()

    def test_json_format(self, tmp_path: Path) -> None:
        """JSON format serializes records."""
        log_file = tmp_path / "json.log"
        configure_logging(LoggingConfig(format="json", file=log_file))

        logger.info("structured")
        logger.complete()

        assert '"message": "structured"' in log_file.read_text()
        logger.remove()
