"""Lightweight timing utilities for upstream and maintenance calls."""
import time
from contextlib import contextmanager
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Return current time in milliseconds using high-resolution timer."""
    return time.perf_counter() * 1000


@contextmanager
def time_operation(label: str, log_fn: Optional[Callable[[str], None]] = None, min_ms: float = 0.0):
    """
    Context manager to time an operation and log elapsed time.

    Args:
        label: Description of the operation being timed
        log_fn: Optional logging function (defaults to logger.debug)
        min_ms: Only log if elapsed time >= min_ms (default: 0, always log)

    Example:
        with time_operation("upstream GET /user"):
            response = session.get(url)
    """
    start = now_ms()
    try:
        yield
    finally:
        elapsed = now_ms() - start
        if elapsed >= min_ms:
            (log_fn or logger.debug)(f"{label}: {elapsed:.2f}ms")
