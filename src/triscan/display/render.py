"""
Batch rendering of scan results.

Each candidate of a batch is validated, scored and merged into the ledger
in turn, and every merge is published as an OPPORTUNITY_UPSERTED event
carrying the formatted table row.
"""

import logging
from collections.abc import Sequence

from triscan.config.constants import (
    ADVICE_VALID,
    BINANCE_TRADE_URL_TEMPLATE,
    DEFAULT_REFERENCE_ASSET,
    STATUS_MISMATCH,
    STATUS_VALID,
)
from triscan.core.event_bus import EventBus, EventType
from triscan.core.types import CycleCandidate, LedgerEntry, ProfitSample, RowView
from triscan.display.ledger import OpportunityLedger
from triscan.strategy.scorer import ConfidenceScorer
from triscan.strategy.validator import DepthValidator
from triscan.telemetry.metrics import MetricsCollector
from triscan.utils.time import LatencyTimer


logger = logging.getLogger(__name__)


def format_number(value: float) -> str:
    """Shortest form of a number: 2.0 -> "2", 0.1 -> "0.1"."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def trade_link(
    symbol: str,
    template: str = BINANCE_TRADE_URL_TEMPLATE,
    reference_asset: str = DEFAULT_REFERENCE_ASSET,
) -> str:
    """
    Trade page URL for a symbol.

    A trailing reference asset is split off with an underscore
    (BTCUSDT -> BTC_USDT); other symbols are used as they are.
    """
    pair = symbol
    if symbol.endswith(reference_asset) and symbol != reference_asset:
        pair = f"{symbol.removesuffix(reference_asset)}_{reference_asset}"
    return template.replace("{pair}", pair)


def build_row(
    entry: LedgerEntry,
    template: str = BINANCE_TRADE_URL_TEMPLATE,
    reference_asset: str = DEFAULT_REFERENCE_ASSET,
) -> RowView:
    """Format a ledger entry as an operator table row."""
    candidate = entry.candidate
    validation = entry.validation
    legs = candidate.legs

    return RowView(
        key=candidate.row_id,
        legs=legs,
        links=(
            trade_link(legs[0], template, reference_asset),
            trade_link(legs[1], template, reference_asset),
            trade_link(legs[2], template, reference_asset),
        ),
        profit=f"{candidate.profit_pct:.2f}",
        status=STATUS_VALID if validation.is_valid else STATUS_MISMATCH,
        liquidity="/".join(format_number(v) for v in validation.liquidity),
        prices=" / ".join(format_number(v) for v in validation.reference_prices),
        score=entry.score,
        advice=ADVICE_VALID if validation.is_valid else "",
        is_valid=validation.is_valid,
        profit_pct=candidate.profit_pct,
    )


class OpportunityRenderer:
    """
    Turns scan batches into ledger updates and display events.

    Batches are processed one candidate at a time, in the order the scanner
    emitted them. A failure on one candidate is reported and skipped.
    """

    def __init__(
        self,
        validator: DepthValidator,
        scorer: ConfidenceScorer,
        ledger: OpportunityLedger,
        bus: EventBus,
        trade_url_template: str = BINANCE_TRADE_URL_TEMPLATE,
        reference_asset: str = DEFAULT_REFERENCE_ASSET,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            validator: Depth validator.
            scorer: Confidence scorer.
            ledger: Ledger receiving the upserts.
            bus: Event bus for display events.
            trade_url_template: Trade link template with a {pair} placeholder.
            reference_asset: Suffix split off in trade links.
            metrics: Optional metrics collector.
        """
        self._validator = validator
        self._scorer = scorer
        self._ledger = ledger
        self._bus = bus
        self._template = trade_url_template
        self._reference_asset = reference_asset
        self._metrics = metrics

    @property
    def ledger(self) -> OpportunityLedger:
        return self._ledger

    def row_for(self, entry: LedgerEntry) -> RowView:
        return build_row(entry, self._template, self._reference_asset)

    def rows(
        self,
        filter_term: str = "",
        sort_by: str | None = None,
        descending: bool = False,
    ) -> list[RowView]:
        """Formatted operator table, see OpportunityLedger.rows."""
        return [
            self.row_for(entry)
            for entry in self._ledger.rows(filter_term, sort_by, descending)
        ]

    async def render_candidate(self, candidate: CycleCandidate) -> RowView:
        """Validate, score and upsert one candidate, then publish its row."""
        with LatencyTimer() as timer:
            validation = await self._validator.validate(candidate)

        if self._metrics:
            self._metrics.record_latency("validate", timer.latency_us)
            self._metrics.record_validation(validation.is_valid)

        if validation.error:
            await self._bus.emit(
                EventType.FEED_ERROR,
                f"Depth validation error: {validation.error}",
                source="validator",
            )

        liquidity = validation.liquidity
        score = await self._scorer.predict(
            [candidate.profit_pct, liquidity[0], liquidity[1], liquidity[2]]
        )

        entry, created = self._ledger.upsert(candidate, validation, score)
        row = self.row_for(entry)

        if created:
            logger.info(f"New route {candidate.route} ({row.profit}%, {row.status})")

        await self._bus.emit(EventType.OPPORTUNITY_UPSERTED, row, source="renderer")
        return row

    async def process_batch(self, candidates: Sequence[CycleCandidate]) -> ProfitSample | None:
        """
        Render a scan batch.

        Returns:
            The profit sample recorded for the batch, None for an empty batch.
        """
        for candidate in candidates:
            try:
                await self.render_candidate(candidate)
            except Exception as e:
                message = f"Render error for {candidate.route}: {e}"
                logger.exception(message)
                await self._bus.emit(EventType.FEED_ERROR, message, source="renderer")

        sample = self._ledger.record_batch(c.profit_pct for c in candidates)

        if self._metrics:
            self._metrics.record_batch(
                len(candidates),
                sample.max_profit_pct if sample else None,
            )

        if sample is not None:
            await self._bus.emit(EventType.PROFIT_SAMPLE, sample, source="renderer")

        return sample
