"""
Package-wide logger.

Every module logs through the single ``dl_graph`` logger exported here:

>>> from dl_graph.utils.logger import logger
>>> logger.info("compiling model")
"""

import logging

# ---------------------------------------------------------------------

LOGGER_NAME = "dl_graph"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ---------------------------------------------------------------------


def _create_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    """Create the named logger with a single stream handler."""
    new_logger = logging.getLogger(name)
    if not new_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        new_logger.addHandler(handler)
    new_logger.setLevel(level)
    return new_logger


def set_level(level: str = "INFO") -> None:
    """Change the verbosity of the package logger, e.g. ``set_level("DEBUG")``."""
    logger.setLevel(getattr(logging, level.upper()))

# ---------------------------------------------------------------------


logger = _create_logger()

# ---------------------------------------------------------------------
