"""
Logging setup for starledger.

Library modules only create module-level loggers. Handlers are the
application's business; configure_logging() is the one-call setup the
CLI uses.
"""

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(
    level:       Union[int, str] = logging.WARNING,
    logger_name: Optional[str]   = "starledger",
) -> logging.Logger:
    """
    Attach a single stderr handler to the starledger logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        level:       Logging level, as int or name ("DEBUG", "info", ...)
        logger_name: Logger to configure (default: the package logger)

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        name  = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return logger
