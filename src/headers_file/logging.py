"""Logging configuration for the command line tool."""

import logging
import os
import sys

# Configuration from environment
LOG_FILE = os.environ.get("HEADERS_FILE_LOG_FILE")
VERBOSE = os.environ.get("VERBOSE", "0") == "1"

LOGGER_NAME = "headers_file"

# Module-level state (initialized by init_logging)
logger: logging.Logger = None


def init_logging(verbose: bool = False) -> logging.Logger:
    """Initialize logging. Returns the package logger."""
    global logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    for old in list(logger.handlers):
        old.close()
        logger.removeHandler(old)

    if LOG_FILE:
        handler = logging.FileHandler(LOG_FILE)
    else:
        handler = logging.StreamHandler(sys.stderr)

    if verbose or VERBOSE:
        logger.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
    else:
        logger.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter('%(asctime)s %(message)s'))
    logger.addHandler(handler)

    return logger


def close_logging():
    """Close logging handlers and hand records back to the root logger."""
    global logger
    if logger:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
        logger = None
