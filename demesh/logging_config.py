"""
Logging for the demesh command-line driver.

Progress and debugging messages go to stdout; stderr only ever carries the
one-line failure diagnostic printed by the driver. A log file, when one is
requested, records everything down to DEBUG whatever the console verbosity.
"""
from pathlib import Path
from typing import Optional, Union
import logging
import sys

from demesh.errors import FileOpenError

LOGGER_NAME = "demesh"

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"

# Console level per -v count; anything above the last entry stays at DEBUG.
VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def verbosity_level(verbosity: int) -> int:
    """Console logging level for a number of -v flags."""
    index = min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)
    return VERBOSITY_LEVELS[index]


def setup_logging(verbosity: int = 0,
                  log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Configure the 'demesh' logger for one run of the driver.

    Handlers left over from an earlier call are closed and replaced.

    Args:
        verbosity: Number of -v flags (0 warnings, 1 progress, 2+ debugging)
        log_file: Optional file receiving the full DEBUG log of the run

    Returns:
        The configured logger

    Raises:
        FileOpenError: If the log file cannot be created
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_level = verbosity_level(verbosity)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)
    logger.setLevel(console_level)

    if log_file is not None:
        try:
            file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        except OSError as e:
            raise FileOpenError(log_file, e.strerror) from e
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
        logger.debug("Logging to %s (console level %s)",
                     log_file, logging.getLevelName(console_level))

    return logger
