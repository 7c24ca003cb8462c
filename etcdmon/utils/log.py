#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import sys
from typing import IO

# Just for reference, the predefined logging levels:
#
# Python         added here
# ---------------------------
# CRITICAL 50
# ERROR    40
# WARNING  30                 <= shown with -v
# INFO     20
#                VERBOSE  15  <= shown with -vv
# DEBUG    10                 <= shown with -vvv
#
# stdout belongs to the monitoring core, so log output always goes to stderr.

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("etcdmon")


def get_formatter(
    format_str: str = "%(asctime)s [%(levelno)s] [%(name)s] %(message)s",
) -> logging.Formatter:
    """Returns a new message formater instance that uses the standard
    log format by default. You can also set another format if you like."""
    return logging.Formatter(format_str)


def clear_console_logging() -> None:
    logger.handlers[:] = []
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL)


# Set default logging handler to avoid "No handler found" warnings.
clear_console_logging()


def setup_logging_handler(stream: IO[str], formatter: logging.Formatter | None = None) -> None:
    """This method enables all log messages to be written to the given
    stream file object."""
    if formatter is None:
        formatter = get_formatter()

    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(formatter)

    del logger.handlers[:]  # Remove all previously existing handlers
    logger.addHandler(handler)


def verbosity_to_log_level(verbosity: int) -> int:
    """Values for "verbosity":

      1: enables WARNING and above
      2: enables VERBOSE and above
      3: enables DEBUG and above (ALL messages)
    """
    if verbosity <= 0:
        raise ValueError("Verbosity %d does not enable logging" % verbosity)
    if verbosity == 1:
        return logging.WARNING
    if verbosity == 2:
        return VERBOSE
    return logging.DEBUG


def setup_logging(verbosity: int) -> None:
    if verbosity <= 0:
        clear_console_logging()
        return
    setup_logging_handler(sys.stderr)
    logger.setLevel(verbosity_to_log_level(verbosity))
