"""
Time utilities.

Wall-clock timestamps for display and ledger bookkeeping, and a monotonic
millisecond clock for throttling and latency measurement.
"""

import time
from datetime import datetime

from triscan.config.constants import PROFIT_LABEL_FORMAT


def get_timestamp_ms() -> int:
    """
    Get current Unix timestamp in milliseconds.

    Returns:
        Current wall-clock time in milliseconds.
    """
    return time.time_ns() // 1_000_000


def get_monotonic_ms() -> int:
    """
    Get a monotonic clock reading in milliseconds.

    Unaffected by wall-clock adjustments, so intervals measured with it
    never go negative.
    """
    return time.monotonic_ns() // 1_000_000


def get_monotonic_us() -> int:
    """Get a monotonic clock reading in microseconds."""
    return time.monotonic_ns() // 1000


def format_time_label(timestamp_ms: int) -> str:
    """
    Format a millisecond timestamp as a local time-of-day label.

    Example:
        >>> format_time_label(get_timestamp_ms())  # doctest: +SKIP
        '14:03:27'
    """
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime(PROFIT_LABEL_FORMAT)


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_us}μs")
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_monotonic_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_monotonic_us()
        self.latency_us = self.end_us - self.start_us


def format_duration_us(duration_us: int | float) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if duration_us < 1000:
        return f"{duration_us:.0f}μs"
    elif duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"
