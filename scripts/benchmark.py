#!/usr/bin/env python3
"""
Latency Benchmark Script.

Measures quote store updates, snapshotting and the cycle search over a
synthetic market.
"""

import random
import statistics
import sys
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from triscan.core.types import Snapshot
from triscan.market.quotes import QuoteStore
from triscan.strategy.scanner import scan_snapshot
from triscan.utils.time import format_duration_us, get_monotonic_us


QUOTE_ASSETS = ["BTC", "ETH", "BNB"]


def build_market(base_count: int, seed: int = 7) -> QuoteStore:
    """
    Build a store with `base_count` assets quoted in USDT and in each of
    QUOTE_ASSETS, roughly the shape of the live ticker stream.
    """
    rng = random.Random(seed)
    store = QuoteStore()

    usdt_prices = {"BTC": 97500.0, "ETH": 3450.0, "BNB": 680.0}
    for asset, price in usdt_prices.items():
        store.update(f"{asset}USDT", price * 1.0001, price * 0.9999)

    for i in range(base_count):
        asset = f"A{i:03d}"
        price = rng.uniform(0.01, 500.0)
        store.update(f"{asset}USDT", price * 1.0005, price * 0.9995)
        for quote_asset in QUOTE_ASSETS:
            cross = price / usdt_prices[quote_asset] * rng.uniform(0.995, 1.005)
            store.update(f"{asset}{quote_asset}", cross * 1.0005, cross * 0.9995)

    return store


def _stats(latencies: list[int]) -> dict[str, float]:
    return {
        "min": min(latencies),
        "max": max(latencies),
        "avg": statistics.mean(latencies),
        "p50": statistics.median(latencies),
        "p99": sorted(latencies)[int(len(latencies) * 0.99)],
    }


def benchmark_store_update(iterations: int = 10000) -> dict[str, float]:
    """Benchmark quote store update latency."""
    store = QuoteStore()
    latencies: list[int] = []

    for i in range(iterations):
        start = get_monotonic_us()
        store.update("BTCUSDT", 50010.0 + (i % 100), 50000.0 + (i % 100))
        latencies.append(get_monotonic_us() - start)

    return _stats(latencies)


def benchmark_snapshot(store: QuoteStore, iterations: int = 1000) -> dict[str, float]:
    """Benchmark snapshot copy latency."""
    latencies: list[int] = []

    for _ in range(iterations):
        start = get_monotonic_us()
        store.snapshot()
        latencies.append(get_monotonic_us() - start)

    return _stats(latencies)


def benchmark_scan(snapshot: Snapshot, iterations: int = 20) -> tuple[dict[str, float], int]:
    """Benchmark a full cycle search."""
    latencies: list[int] = []
    found = 0

    for _ in range(iterations):
        start = get_monotonic_us()
        found = len(scan_snapshot(snapshot, "USDT", 0.3))
        latencies.append(get_monotonic_us() - start)

    return _stats(latencies), found


def format_stats(stats: dict[str, float]) -> str:
    """Format stats for display."""
    return (
        f"min={format_duration_us(int(stats['min']))}, "
        f"avg={format_duration_us(int(stats['avg']))}, "
        f"p50={format_duration_us(int(stats['p50']))}, "
        f"p99={format_duration_us(int(stats['p99']))}, "
        f"max={format_duration_us(int(stats['max']))}"
    )


def main() -> int:
    """Run all benchmarks."""
    print("=" * 70)
    print("  LATENCY BENCHMARK")
    print("=" * 70)
    print()

    store = build_market(500)
    snapshot = store.snapshot()

    # Warm up
    print("Warming up...")
    benchmark_store_update(100)
    benchmark_snapshot(store, 10)
    benchmark_scan(snapshot, 2)
    print()

    print("Running benchmarks...")
    print()

    print("1. Quote Store Update (10,000 iterations)")
    print(f"   {format_stats(benchmark_store_update(10000))}")
    print()

    print(f"2. Snapshot of {len(store):,} quotes (1,000 iterations)")
    print(f"   {format_stats(benchmark_snapshot(store, 1000))}")
    print()

    print(f"3. Cycle Search over {len(snapshot):,} quotes (20 iterations)")
    stats, found = benchmark_scan(snapshot, 20)
    print(f"   {format_stats(stats)}")
    print(f"   candidates per scan: {found:,}")
    print()

    print("=" * 70)
    print("  SUMMARY")
    print("=" * 70)
    print()
    print("Target: scan well inside the 300ms dispatch interval")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
