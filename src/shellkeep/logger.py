"""
Logging setup built on loguru.

Modules grab a bound logger with ``get_logger(__name__)``; entry points call
``setup_logging`` once to pick the level and sink.
"""

import os
import sys

from loguru import logger as _logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_logger.configure(extra={"name": "shellkeep"})


def setup_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    _logger.remove()
    _logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def get_logger(name: str):
    """Return the shared logger bound to a module name."""
    return _logger.bind(name=name)
