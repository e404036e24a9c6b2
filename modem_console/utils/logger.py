"""
Logging setup for Modem Console

The parser logs per-line decisions (ignored metric lines, field fallbacks,
encoding scores) at DEBUG under the modem_console.telemetry namespace.
"""

import logging
import os
import sys

ROOT_LOGGER = "modem_console"
PARSER_LOGGER = "modem_console.telemetry"
LOG_LEVEL_ENV_VAR = "MODEM_CONSOLE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = None, fmt: str = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to 'modem_console').
        fmt:  Log format string. Pass ``"%(message)s"`` when the service
              manager already prefixes timestamps.
    """
    logger = logging.getLogger(name or ROOT_LOGGER)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())

    return logger


def set_parser_debug(enabled: bool):
    """Toggle DEBUG output of the telemetry parser without touching other loggers"""
    logging.getLogger(PARSER_LOGGER).setLevel(logging.DEBUG if enabled else logging.NOTSET)
