"""
Logging setup for phpipam-provider.

All modules obtain their logger through ``get_logger(__name__)``; the CLI
calls ``configure_logging`` once before doing any work.

Standard library logging (used by httpx) is routed into loguru so every
message goes through the same sink.
"""

import logging
import sys

from loguru import logger as _logger

from phpipam_provider.models.enums import LogLevel


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}


# =============================================================================
# Stdlib Interception
# =============================================================================


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        _logger.bind(name=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


# =============================================================================
# Public API
# =============================================================================


def get_logger(name: str):
    """Get a loguru logger bound to a module name."""
    return _logger.bind(name=name)


def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Verbosity. ``FULL`` also enables backtrace and variable
            diagnosis in exception traces.
    """
    level = LogLevel(level)
    loguru_level = _LEVEL_MAP[level]
    full = level == LogLevel.FULL

    _logger.remove()
    _logger.configure(extra={"name": ""})
    _logger.add(
        sys.stderr,
        level=loguru_level,
        format=LOG_FORMAT,
        backtrace=full,
        diagnose=full,
    )

    # httpx/httpcore are chatty at DEBUG; only surface them at FULL
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if full else logging.WARNING)
