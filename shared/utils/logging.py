"""
Shared logging utilities for the caption relay.

Gives the relay service and the caption client one logging setup.
"""

import logging
import os
import sys
from typing import Literal

# Default log format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that log every request/frame at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "websockets", "uvicorn.access")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(
    name: str | None = None,
    level: LogLevel | None = None,
    format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure logging and return a logger.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.
        level: Log level. Defaults to LOG_LEVEL env var or INFO.
        format: Log format string.

    Returns:
        Configured logger instance.

    Usage:
        from shared.utils import setup_logging
        logger = setup_logging(__name__)
        logger.info("Relay started")
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    log_level = getattr(logging, level, logging.INFO)

    # Root handler is only installed once
    logging.basicConfig(
        level=log_level,
        format=format,
        stream=sys.stdout,
    )

    # Per-frame chatter stays at WARNING unless we are debugging
    if log_level > logging.DEBUG:
        quiet_loggers()

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    return logger


def quiet_loggers(names: tuple[str, ...] = NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    """Raise the level of chatty third-party loggers."""
    for name in names:
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger by name.

    Assumes setup_logging() has been called at startup.
    """
    return logging.getLogger(name)


def set_log_level(level: LogLevel) -> None:
    """Change the root log level at runtime."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(log_level)
