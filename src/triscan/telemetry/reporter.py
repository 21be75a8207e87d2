"""
CLI reporter for real-time status display.

Provides a terminal panel showing feed health, scan
throughput and the state of the opportunity ledger.
"""

import asyncio
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from triscan.telemetry.metrics import MetricsCollector
from triscan.utils.time import format_duration_us


@dataclass
class PipelineState:
    """Point-in-time figures the reporter cannot get from metrics."""

    quote_count: int = 0
    route_count: int = 0
    valid_routes: int = 0
    connected: bool = False


StateProvider = Callable[[], PipelineState]


class CLIReporter:
    """
    Real-time CLI dashboard for monitoring.

    Displays a formatted status panel with:
    - Stream health
    - Scan and validation latency
    - Candidate counts
    - Ledger size and latest max profit
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    def __init__(
        self,
        metrics: MetricsCollector,
        state_provider: StateProvider | None = None,
        width: int = 64,
        output: TextIO | None = None,
        reference_asset: str = "USDT",
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            metrics: Metrics collector instance.
            state_provider: Callable returning current pipeline state.
            width: Dashboard width in characters.
            output: Output stream (default: stdout).
            reference_asset: Shown in the header.
        """
        self._metrics = metrics
        self._state_provider = state_provider or PipelineState
        self._width = width
        self._output = output or sys.stdout
        self._reference_asset = reference_asset
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        hours, remainder = divmod(int(seconds), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _pad(self, text: str, width: int) -> str:
        """Pad text to width."""
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        """Create a line with borders."""
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        """Create a horizontal divider."""
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _latency(self, name: str) -> str:
        stats = self._metrics.get_latency_stats(name)
        return format_duration_us(stats.avg_us) if stats.count else "---"

    def render(self) -> str:
        """
        Render the dashboard.

        Returns:
            Formatted dashboard string.
        """
        state = self._state_provider()
        stats = self._metrics.scan_stats
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        link = "LIVE" if state.connected else "DOWN"

        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]
        lines.append(self._line(f"  TRIANGULAR SCANNER | BINANCE | {self._reference_asset} | {link}"))
        lines.append(self._divider())
        lines.append(
            self._line(
                f"  Uptime: {uptime}  |  Quotes: {state.quote_count:,}  |  "
                f"Dispatches: {self._metrics.get_counter('dispatches'):,}"
            )
        )
        lines.append(self._divider())

        lines.append(self._line(f"  {'LATENCY':<18}{self.THIN_V}  {'CANDIDATES':<17}{self.THIN_V}  LEDGER"))
        lines.append(
            self._line(
                f"  Scan: {self._latency('scan'):<12}{self.THIN_V}  "
                f"Batches: {stats.batches:<8,}{self.THIN_V}  Routes: {state.route_count:,}"
            )
        )
        lines.append(
            self._line(
                f"  Depth: {self._latency('validate'):<11}{self.THIN_V}  "
                f"Found: {stats.candidates:<10,}{self.THIN_V}  Valid: {state.valid_routes:,}"
            )
        )
        lines.append(
            self._line(
                f"  Malformed: {self._metrics.get_counter('malformed_ticks'):<7,}{self.THIN_V}  "
                f"Mismatch: {stats.mismatched:<7,}{self.THIN_V}  "
                f"Errors: {self._metrics.get_counter('stream_errors'):,}"
            )
        )
        lines.append(self._divider())
        lines.append(
            self._line(
                f"  Last max profit: {stats.last_max_profit_pct:.2f}%  |  "
                f"Best: {stats.best_profit_pct:.2f}%"
            )
        )
        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")

        return "\n".join(lines)

    def display(self) -> None:
        """Display the dashboard once."""
        self._output.write("\033[2J\033[H")
        self._output.write(self.render())
        self._output.write("\n")
        self._output.flush()

    async def run(self, interval: float = 1.0) -> None:
        """Run continuous display updates."""
        self._running = True

        while self._running:
            self.display()
            await asyncio.sleep(interval)

    def start(self, interval: float = 1.0) -> asyncio.Task[None]:
        """Start the reporter as a background task."""
        self._running = True
        self._task = asyncio.create_task(self.run(interval))
        return self._task

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Stop the reporter."""
        self._running = False
        if self._task:
            self._task.cancel()

    def print_summary(self) -> None:
        """Print a final summary."""
        state = self._state_provider()
        stats = self._metrics.scan_stats

        print("\n" + "=" * 50, file=self._output)
        print("  SESSION SUMMARY", file=self._output)
        print("=" * 50, file=self._output)
        print(f"  Uptime: {self._format_uptime(self._metrics.uptime_seconds)}", file=self._output)
        print(f"  Quotes tracked: {state.quote_count:,}", file=self._output)
        print(file=self._output)
        print("  CANDIDATES:", file=self._output)
        print(f"    Batches:    {stats.batches:,}", file=self._output)
        print(f"    Found:      {stats.candidates:,}", file=self._output)
        print(f"    Valid:      {stats.validated:,}", file=self._output)
        print(f"    Mismatch:   {stats.mismatched:,}", file=self._output)
        print(f"    Valid rate: {stats.valid_rate:.1%}", file=self._output)
        print(file=self._output)
        print("  LEDGER:", file=self._output)
        print(f"    Routes:     {state.route_count:,}", file=self._output)
        print(f"    Best max profit: {stats.best_profit_pct:.4f}%", file=self._output)
        print("=" * 50, file=self._output)
