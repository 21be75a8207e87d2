"""
Unit tests for the terminal reporter and metrics.
"""

import asyncio
import io

import pytest

from triscan.telemetry.metrics import MetricsCollector
from triscan.telemetry.reporter import CLIReporter, PipelineState
from triscan.utils.time import LatencyTimer, format_duration_us


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_batch_statistics(self, metrics: MetricsCollector) -> None:
        """Test best and latest max profit tracking."""
        metrics.record_batch(3, 1.2)
        metrics.record_batch(0, None)
        metrics.record_batch(1, 0.4)

        stats = metrics.scan_stats
        assert stats.batches == 3
        assert stats.candidates == 4
        assert stats.best_profit_pct == 1.2
        assert stats.last_max_profit_pct == 0.4

    def test_valid_rate(self, metrics: MetricsCollector) -> None:
        """Test the share of validated candidates."""
        assert metrics.scan_stats.valid_rate == 0.0

        metrics.record_validation(True)
        metrics.record_validation(False)
        metrics.record_validation(True)
        metrics.record_validation(True)

        assert metrics.scan_stats.valid_rate == 0.75

    def test_latency_window(self) -> None:
        """Test only the most recent samples are kept."""
        metrics = MetricsCollector(latency_window_size=3)
        for value in (100, 1, 2, 3):
            metrics.record_latency("scan", value)

        stats = metrics.get_latency_stats("scan")
        assert stats.count == 3
        assert stats.max_us == 3
        assert metrics.get_latency_stats("missing").count == 0

    def test_to_dict(self, metrics: MetricsCollector) -> None:
        """Test the exported structure."""
        metrics.increment_counter("ticks", 5)
        metrics.record_latency("validate", 250)

        data = metrics.to_dict()

        assert data["counters"] == {"ticks": 5}
        assert data["latencies"]["validate"]["count"] == 1
        assert data["scan"]["batches"] == 0


class TestCLIReporter:
    """Tests for CLIReporter."""

    def test_render_shows_pipeline_state(self, metrics: MetricsCollector) -> None:
        """Test the panel includes ledger and feed figures."""
        metrics.record_batch(2, 1.75)
        metrics.increment_counter("malformed_ticks", 4)
        state = PipelineState(quote_count=1500, route_count=12, valid_routes=3, connected=True)
        reporter = CLIReporter(metrics, state_provider=lambda: state, reference_asset="USDT")

        panel = reporter.render()

        assert "USDT | LIVE" in panel
        assert "Quotes: 1,500" in panel
        assert "Routes: 12" in panel
        assert "Valid: 3" in panel
        assert "Malformed: 4" in panel
        assert "Last max profit: 1.75%" in panel

    def test_render_lines_have_fixed_width(self, metrics: MetricsCollector) -> None:
        """Test every panel line is exactly the configured width."""
        reporter = CLIReporter(metrics, width=64)

        assert {len(line) for line in reporter.render().splitlines()} == {64}
        assert "DOWN" in reporter.render()

    def test_summary_written_to_output(self, metrics: MetricsCollector) -> None:
        """Test the session summary goes to the configured stream."""
        output = io.StringIO()
        metrics.record_validation(False)

        CLIReporter(metrics, output=output).print_summary()

        assert "SESSION SUMMARY" in output.getvalue()
        assert "Mismatch:   1" in output.getvalue()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, metrics: MetricsCollector) -> None:
        """Test the refresh task lifecycle."""
        output = io.StringIO()
        reporter = CLIReporter(metrics, output=output)

        task = reporter.start(interval=0.01)
        assert reporter.is_running
        await asyncio.sleep(0.03)
        reporter.stop()
        await asyncio.gather(task, return_exceptions=True)

        assert not reporter.is_running
        assert task.done()
        assert "TRIANGULAR SCANNER" in output.getvalue()


class TestTimeUtils:
    """Tests for timing helpers."""

    def test_latency_timer(self) -> None:
        """Test elapsed time is non-negative."""
        with LatencyTimer() as timer:
            sum(range(1000))

        assert timer.latency_us >= 0
        assert timer.end_us >= timer.start_us

    @pytest.mark.parametrize(
        ("duration", "unit"),
        [(500, "μs"), (2_500, "ms"), (3_000_000, "s")],
    )
    def test_format_duration(self, duration: int, unit: str) -> None:
        """Test unit selection."""
        assert format_duration_us(duration).endswith(unit)
