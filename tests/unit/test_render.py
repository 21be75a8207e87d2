"""
Unit tests for row formatting and batch rendering.

Tests the table row format, trade links and the change feed.
"""

from unittest.mock import AsyncMock

import pytest

from triscan.core.event_bus import Event, EventBus, EventType
from triscan.core.types import CycleCandidate, LedgerEntry, ProfitSample, RowView, ValidationResult
from triscan.display.ledger import OpportunityLedger
from triscan.display.render import OpportunityRenderer, build_row, format_number, trade_link
from triscan.market.quotes import QuoteStore
from triscan.strategy.scorer import ConfidenceScorer
from triscan.strategy.validator import DepthValidator
from triscan.telemetry.metrics import MetricsCollector
from tests.mocks import MockDepthClient


class TestFormatting:
    """Tests for display formatting helpers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(2.0, "2"), (0.0, "0"), (0.06, "0.06"), (51000.0, "51000"), (1.0001, "1.0001")],
    )
    def test_format_number(self, value: float, expected: str) -> None:
        """Test shortest number rendering."""
        assert format_number(value) == expected

    def test_trade_link_reference_pair(self) -> None:
        """Test reference-quoted pairs get an underscore."""
        assert trade_link("BTCUSDT") == "https://www.binance.com/en/trade/BTC_USDT?type=spot"

    def test_trade_link_cross_pair(self) -> None:
        """Test other pairs are used as they are."""
        assert trade_link("ETHBTC") == "https://www.binance.com/en/trade/ETHBTC?type=spot"

    def test_trade_link_custom_template(self) -> None:
        """Test a custom template and reference asset."""
        assert trade_link("ETHBTC", "https://x.test/{pair}", "BTC") == "https://x.test/ETH_BTC"

    def test_build_row_valid(
        self,
        candidate: CycleCandidate,
        valid_result: ValidationResult,
    ) -> None:
        """Test the row of a validated route."""
        row = build_row(LedgerEntry(candidate, valid_result, 64))

        assert row.key == "opportunity-ETHUSDT-ETHBTC-BTCUSDT"
        assert row.legs == ("ETHUSDT", "ETHBTC", "BTCUSDT")
        assert row.links[1] == "https://www.binance.com/en/trade/ETHBTC?type=spot"
        assert row.profit == "1.70"
        assert row.status == "Valid"
        assert row.liquidity == "2.5/40/0.75"
        assert row.prices == "3000 / 0.06 / 51000"
        assert row.score == 64
        assert row.advice == "Exec at top prices"
        assert row.is_valid

    def test_build_row_unavailable(self, candidate: CycleCandidate) -> None:
        """Test the row of a route whose validation could not run."""
        row = build_row(LedgerEntry(candidate, ValidationResult.unavailable("down"), 0))

        assert row.status == "Mismatch"
        assert row.advice == ""
        assert row.liquidity == "0/0/0"
        assert row.prices == "0 / 0 / 0"

    def test_row_to_dict(self, candidate: CycleCandidate, valid_result: ValidationResult) -> None:
        """Test the JSON form of a row."""
        data = build_row(LedgerEntry(candidate, valid_result, 64)).to_dict()

        assert data["legs"] == ["ETHUSDT", "ETHBTC", "BTCUSDT"]
        assert data["profit_pct"] == 1.7
        assert data["is_valid"] is True


class TestOpportunityRenderer:
    """Tests for OpportunityRenderer."""

    @pytest.fixture
    def ledger(self) -> OpportunityLedger:
        return OpportunityLedger()

    @pytest.fixture
    def renderer(
        self,
        mock_depth_client: MockDepthClient,
        quote_store: QuoteStore,
        ledger: OpportunityLedger,
        event_bus: EventBus,
        metrics: MetricsCollector,
    ) -> OpportunityRenderer:
        return OpportunityRenderer(
            validator=DepthValidator(mock_depth_client, quote_store),
            scorer=ConfidenceScorer(),
            ledger=ledger,
            bus=event_bus,
            metrics=metrics,
        )

    @pytest.mark.asyncio
    async def test_batch_upserts_and_publishes(
        self,
        renderer: OpportunityRenderer,
        ledger: OpportunityLedger,
        candidate: CycleCandidate,
        captured_events: list[Event],
    ) -> None:
        """Test one upsert event per candidate, then one profit sample."""
        sample = await renderer.process_batch([candidate])

        assert len(ledger) == 1
        assert [e.type for e in captured_events] == [
            EventType.OPPORTUNITY_UPSERTED,
            EventType.PROFIT_SAMPLE,
        ]
        row = captured_events[0].payload
        assert isinstance(row, RowView)
        assert row.status == "Valid"
        assert row.score == 0
        assert isinstance(captured_events[1].payload, ProfitSample)
        assert sample.max_profit_pct == 1.7

    @pytest.mark.asyncio
    async def test_same_key_in_two_batches(
        self,
        renderer: OpportunityRenderer,
        ledger: OpportunityLedger,
        captured_events: list[Event],
    ) -> None:
        """Test a route seen twice is one entry with the latest values."""
        first = CycleCandidate("ETHUSDT", "ETHBTC", "BTCUSDT", 1.7)
        second = CycleCandidate("ETHUSDT", "ETHBTC", "BTCUSDT", 0.9)

        await renderer.process_batch([first])
        await renderer.process_batch([second])

        assert len(ledger) == 1
        assert ledger.get(first.key).candidate.profit_pct == 0.9
        upserts = [e for e in captured_events if e.type is EventType.OPPORTUNITY_UPSERTED]
        assert [e.payload.key for e in upserts] == [first.row_id, first.row_id]
        assert len(ledger.profit_history) == 2

    @pytest.mark.asyncio
    async def test_batch_rendered_in_scan_order(
        self,
        quote_store: QuoteStore,
        ledger: OpportunityLedger,
        event_bus: EventBus,
        captured_events: list[Event],
    ) -> None:
        """Test candidates are finished one at a time in the order given."""
        client = MockDepthClient(latency_ms=10)
        renderer = OpportunityRenderer(
            DepthValidator(client, quote_store), ConfidenceScorer(), ledger, event_bus
        )
        batch = [
            CycleCandidate("SOLUSDT", "SOLBTC", "BTCUSDT", 0.8),
            CycleCandidate("ETHUSDT", "ETHBTC", "BTCUSDT", 1.7),
            CycleCandidate("BNBUSDT", "BNBBTC", "BTCUSDT", 1.1),
        ]

        await renderer.process_batch(batch)

        upserts = [e.payload for e in captured_events if e.type is EventType.OPPORTUNITY_UPSERTED]
        assert [row.key for row in upserts] == [c.row_id for c in batch]
        assert [entry.candidate.key for entry in ledger.entries()] == [c.key for c in batch]
        fetched = [symbol for symbol, _ in client.calls]
        assert [set(fetched[i : i + 3]) for i in (0, 3, 6)] == [set(c.legs) for c in batch]
        assert captured_events[-1].type is EventType.PROFIT_SAMPLE

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_still_recorded(
        self,
        renderer: OpportunityRenderer,
        mock_depth_client: MockDepthClient,
        ledger: OpportunityLedger,
        candidate: CycleCandidate,
        captured_events: list[Event],
    ) -> None:
        """Test a depth source crash leaves a Mismatch row, not a render error."""
        mock_depth_client.fail("ETHBTC", RuntimeError("Session is closed"))

        await renderer.process_batch([candidate])

        assert len(ledger) == 1
        row = renderer.row_for(ledger.get(candidate.key))
        assert row.status == "Mismatch"
        errors = [e.payload for e in captured_events if e.type is EventType.FEED_ERROR]
        assert errors == ["Depth validation error: Session is closed"]

    @pytest.mark.asyncio
    async def test_empty_batch_records_no_sample(
        self,
        renderer: OpportunityRenderer,
        metrics: MetricsCollector,
        captured_events: list[Event],
    ) -> None:
        """Test an empty batch publishes nothing."""
        assert await renderer.process_batch([]) is None
        assert captured_events == []
        assert metrics.scan_stats.batches == 1

    @pytest.mark.asyncio
    async def test_validation_error_surfaced(
        self,
        renderer: OpportunityRenderer,
        mock_depth_client: MockDepthClient,
        candidate: CycleCandidate,
        captured_events: list[Event],
    ) -> None:
        """Test a failed depth fetch is reported and the route still recorded."""
        mock_depth_client.fail("ETHBTC", TimeoutError())

        await renderer.process_batch([candidate])

        errors = [e for e in captured_events if e.type is EventType.FEED_ERROR]
        assert len(errors) == 1
        assert errors[0].payload.startswith("Depth validation error:")
        assert renderer.ledger.get(candidate.key).validation.is_valid is False

    @pytest.mark.asyncio
    async def test_failure_on_one_candidate_continues_batch(
        self,
        mock_depth_client: MockDepthClient,
        quote_store: QuoteStore,
        ledger: OpportunityLedger,
        event_bus: EventBus,
        captured_events: list[Event],
    ) -> None:
        """Test a scorer crash on one candidate does not stop the rest."""
        scorer = ConfidenceScorer()
        scorer.predict = AsyncMock(side_effect=[RuntimeError("boom"), 55])  # type: ignore[method-assign]
        renderer = OpportunityRenderer(
            DepthValidator(mock_depth_client, quote_store), scorer, ledger, event_bus
        )
        broken = CycleCandidate("ETHUSDT", "ETHBTC", "BTCUSDT", 1.7)
        other = CycleCandidate("SOLUSDT", "SOLBTC", "BTCUSDT", 0.8)

        sample = await renderer.process_batch([broken, other])

        assert broken.key not in ledger
        assert ledger.get(other.key).score == 55
        assert any(
            e.type is EventType.FEED_ERROR and "boom" in e.payload for e in captured_events
        )
        assert sample.max_profit_pct == 1.7

    @pytest.mark.asyncio
    async def test_metrics_recorded(
        self,
        renderer: OpportunityRenderer,
        candidate: CycleCandidate,
        metrics: MetricsCollector,
    ) -> None:
        """Test batch and validation statistics."""
        await renderer.process_batch([candidate])

        stats = metrics.scan_stats
        assert stats.batches == 1
        assert stats.candidates == 1
        assert stats.validated == 1
        assert stats.last_max_profit_pct == 1.7
        assert metrics.get_latency_stats("validate").count == 1

    def test_rows_formatted(
        self,
        renderer: OpportunityRenderer,
        ledger: OpportunityLedger,
        candidate: CycleCandidate,
        valid_result: ValidationResult,
    ) -> None:
        """Test the formatted table view."""
        ledger.upsert(candidate, valid_result, 7)

        rows = renderer.rows("eth")

        assert [r.key for r in rows] == [candidate.row_id]
