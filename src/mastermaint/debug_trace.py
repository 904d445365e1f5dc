"""Logging and timing utilities.

Enable console output by running mastermaint-debug (or passing --debug).

Usage:
    from .debug_trace import logger, perf_timer

    # Simple logging
    logger.debug("Starting operation")

    # Performance timing (only logs if DEBUG_PERF is True)
    with perf_timer("commit tabA", row_count=12):
        await coordinator.commit("tabA")
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager

# Set to False to silence timing logs
DEBUG_PERF = True

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Create package logger
logger = logging.getLogger("mastermaint")


def setup_debug_logging(debug: bool = False) -> None:
    """Configure console logging.

    Call this once at startup. In debug mode everything from DEBUG up goes to
    stdout; otherwise only warnings and above.

    Args:
        debug: True to enable DEBUG output
    """
    level = logging.DEBUG if debug else logging.WARNING
    logger.setLevel(level)

    # Only add a handler once
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return

    # pythonw has no console
    if sys.stdout is None:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)


@contextmanager
def perf_timer(operation: str, row_count: int | None = None):
    """Context manager for timing operations.

    Args:
        operation: Name of the operation being timed
        row_count: Optional row count for context
    """
    if not DEBUG_PERF:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if row_count is not None:
            logger.debug(f"PERF: {operation} ({row_count} rows) took {elapsed_ms:.2f}ms")
        else:
            logger.debug(f"PERF: {operation} took {elapsed_ms:.2f}ms")
