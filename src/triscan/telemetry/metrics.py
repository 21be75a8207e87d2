"""
Metrics collection for pipeline monitoring.

Tracks latencies, counters, and scan statistics
with efficient in-memory storage.
"""

import time
from collections import deque
from dataclasses import dataclass


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class ScanStats:
    """Detection and validation statistics."""

    batches: int = 0
    candidates: int = 0
    validated: int = 0
    mismatched: int = 0
    best_profit_pct: float = 0.0
    last_max_profit_pct: float = 0.0

    @property
    def valid_rate(self) -> float:
        """Share of rendered candidates that passed depth validation."""
        total = self.validated + self.mismatched
        return self.validated / total if total > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates pipeline metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Batch and validation statistics
    """

    def __init__(self, latency_window_size: int = 1000) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._scan_stats = ScanStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "scan", "validate").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_batch(self, size: int, max_profit_pct: float | None) -> None:
        """
        Record a scanner result batch.

        Args:
            size: Number of candidates in the batch.
            max_profit_pct: Floored max profit of the batch, None if empty.
        """
        self._scan_stats.batches += 1
        self._scan_stats.candidates += size

        if max_profit_pct is not None:
            self._scan_stats.last_max_profit_pct = max_profit_pct
            if max_profit_pct > self._scan_stats.best_profit_pct:
                self._scan_stats.best_profit_pct = max_profit_pct

    def record_validation(self, is_valid: bool) -> None:
        """Record a depth validation outcome."""
        if is_valid:
            self._scan_stats.validated += 1
        else:
            self._scan_stats.mismatched += 1

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def scan_stats(self) -> ScanStats:
        """Get scan statistics."""
        return self._scan_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            Dict representation of all metrics.
        """
        stats = self._scan_stats
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": s.min_us,
                    "max": s.max_us,
                    "avg": s.avg_us,
                    "p50": s.p50_us,
                    "p99": s.p99_us,
                    "count": s.count,
                }
                for name, s in self.get_all_latency_stats().items()
            },
            "scan": {
                "batches": stats.batches,
                "candidates": stats.candidates,
                "validated": stats.validated,
                "mismatched": stats.mismatched,
                "best_profit_pct": stats.best_profit_pct,
                "last_max_profit_pct": stats.last_max_profit_pct,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._scan_stats = ScanStats()
        self._start_time = time.time()
