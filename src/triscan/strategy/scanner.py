"""
Triangular cycle search.

`scan_snapshot` is a pure function over an immutable snapshot. `ScanWorker`
runs it in a dedicated worker process so that neither the search nor its
input can be touched by the event loop while it runs; snapshot and result
cross the boundary pickled.
"""

import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from functools import partial

from triscan.config.constants import DEFAULT_FEE_PERCENT, DEFAULT_REFERENCE_ASSET
from triscan.core.types import CycleCandidate, Snapshot


logger = logging.getLogger(__name__)


def cycle_profit_pct(ask_a: float, ask_b: float, bid_c: float, fee_percent: float) -> float:
    """
    Net profit of one pass around a cycle, in percent.

    Gross return is (1 / ask_a) * ask_b * bid_c; the fee is subtracted as a
    flat number of percentage points.
    """
    gross = (1.0 / ask_a) * ask_b * bid_c
    return (gross - 1.0) * 100.0 - fee_percent


def scan_snapshot(
    snapshot: Snapshot,
    reference_asset: str = DEFAULT_REFERENCE_ASSET,
    fee_percent: float = DEFAULT_FEE_PERCENT,
) -> list[CycleCandidate]:
    """
    Find every profitable reference → base → intermediate → reference cycle.

    For each pair T quoted in the reference asset with base C, every pair S
    that starts with C and is not reference-quoted is tried; its remainder Q
    names the closing pair Q + reference. Routes whose closing pair is not in
    the snapshot are skipped.

    Args:
        snapshot: Quotes to search.
        reference_asset: Suffix of reference-quoted symbols, e.g. "USDT".
        fee_percent: Flat round-trip fee in percentage points.

    Returns:
        Candidates with profit_pct > 0, in snapshot order.
    """
    by_symbol = {quote.symbol: quote for quote in snapshot.quotes}
    candidates: list[CycleCandidate] = []

    for first in snapshot.quotes:
        if not first.symbol.endswith(reference_asset):
            continue
        base = first.symbol.removesuffix(reference_asset)
        if not base:
            continue

        for second in snapshot.quotes:
            if not second.symbol.startswith(base) or second.symbol.endswith(reference_asset):
                continue
            intermediate = second.symbol.removeprefix(base)
            if not intermediate:
                continue

            third = by_symbol.get(intermediate + reference_asset)
            if third is None:
                continue

            profit = cycle_profit_pct(first.ask_price, second.ask_price, third.bid_price, fee_percent)
            if profit > 0:
                candidates.append(
                    CycleCandidate(
                        leg_a=first.symbol,
                        leg_b=second.symbol,
                        leg_c=third.symbol,
                        profit_pct=profit,
                    )
                )

    return candidates


class ScanWorker:
    """
    Runs `scan_snapshot` in an isolated worker.

    A single worker process keeps scans strictly one at a time. Any
    concurrent.futures executor can be injected instead (tests use a
    thread pool).
    """

    def __init__(
        self,
        reference_asset: str = DEFAULT_REFERENCE_ASSET,
        fee_percent: float = DEFAULT_FEE_PERCENT,
        executor: Executor | None = None,
    ) -> None:
        """
        Initialize the worker.

        Args:
            reference_asset: Suffix of reference-quoted symbols.
            fee_percent: Flat round-trip fee in percentage points.
            executor: Executor to run scans in; a one-process pool by default.
        """
        self._reference_asset = reference_asset
        self._fee_percent = fee_percent
        self._executor = executor
        self._owns_executor = executor is None
        self._scan_count = 0

    def start(self) -> None:
        """Create the worker process pool if none was injected."""
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=1)
            self._owns_executor = True

    async def scan(self, snapshot: Snapshot) -> list[CycleCandidate]:
        """
        Search a snapshot without blocking the event loop.

        Raises:
            BrokenProcessPool: If the worker died; the pool is replaced so
                the next scan can proceed.
        """
        if self._executor is None:
            self.start()

        loop = asyncio.get_running_loop()
        job = partial(
            scan_snapshot,
            snapshot,
            reference_asset=self._reference_asset,
            fee_percent=self._fee_percent,
        )

        try:
            result = await loop.run_in_executor(self._executor, job)
        except BrokenProcessPool:
            logger.error("Scan worker died, restarting pool")
            self._restart()
            raise

        self._scan_count += 1
        return result

    def _restart(self) -> None:
        if not self._owns_executor:
            return
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self._executor = ProcessPoolExecutor(max_workers=1)

    def shutdown(self) -> None:
        """Stop the worker pool."""
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    @property
    def scan_count(self) -> int:
        """Get number of completed scans."""
        return self._scan_count
