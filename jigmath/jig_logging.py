"""
Logging configuration for the jigmath engine.

The engine logs under the 'jigmath' namespace. Verbosity is an integer:
0 warnings only, 1 info, 2 debug (sentence replacements, unknown functions),
3 trace (buffer dump after each stage).
"""
import logging
import os
import sys
from typing import Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger("jigmath")

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG, 3: TRACE}


def _to_logging_level(level: int) -> int:
    if level <= 0:
        return logging.WARNING
    return _VERBOSITY_LEVELS.get(level, TRACE)


def set_log_level(level: int = 0) -> None:
    """Sets the process-wide verbosity. Has no effect on results."""
    logger.setLevel(_to_logging_level(level))


def log(level: int, msg: str, *args) -> None:
    lvl = _to_logging_level(level)
    if logger.isEnabledFor(lvl):
        logger.log(lvl, msg, *args)


def setup_logging(level: int = 1, log_file: Optional[str] = None) -> None:
    """
    Attaches handlers to the 'jigmath' logger.

    Args:
        level: jigmath verbosity (0-3)
        log_file: Optional path to also save logs to a file.
    """
    set_log_level(level)

    # Avoid duplicate logs when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter('[%(name)s] [%(levelname)s] %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


set_log_level(int(os.environ.get("JIGMATH_LOG_LEVEL", "1")))
