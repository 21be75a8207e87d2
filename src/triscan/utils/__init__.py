"""Utility functions for the scanner."""

from triscan.utils.time import (
    LatencyTimer,
    format_duration_us,
    format_time_label,
    get_monotonic_ms,
    get_monotonic_us,
    get_timestamp_ms,
)


__all__ = [
    "LatencyTimer",
    "format_duration_us",
    "format_time_label",
    "get_monotonic_ms",
    "get_monotonic_us",
    "get_timestamp_ms",
]
