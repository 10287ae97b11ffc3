"""Logging configuration using loguru.

Provides centralized logging setup with configurable
format, level, and file output. Console logging goes to
stderr so command output on stdout stays machine-readable.
"""

import logging
import sys

from loguru import logger

from scopesync.config.models import LoggingConfig


class _InterceptHandler(logging.Handler):
    """Route standard library logging through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging module frames to report the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(config: LoggingConfig) -> None:
    """
    Configure loguru logger based on configuration.

    Args:
        config: LoggingConfig with level, format, and file settings.
    """
    logger.remove()

    if config.format == "json":
        fmt = "{message}"
        serialize = True
    else:
        fmt = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )
        serialize = False

    logger.add(
        sys.stderr,
        format=fmt,
        level=config.level,
        serialize=serialize,
        colorize=config.format == "console",
    )

    if config.file:
        logger.add(
            config.file,
            format=fmt,
            level=config.level,
            serialize=serialize,
            rotation=config.rotation,
            retention=config.retention,
            compression="gz",
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging configured: level={} format={}", config.level, config.format)

