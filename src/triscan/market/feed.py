"""
Ingestion handler for the ticker stream.

Validates each ticker entry, applies the good ones to the quote store and
hands the store to the throttled dispatcher.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from triscan.core.event_bus import EventBus, EventType
from triscan.exchange.models import TickerUpdate
from triscan.market.quotes import InvalidQuoteError, QuoteDispatcher, QuoteStore
from triscan.telemetry.metrics import MetricsCollector
from triscan.utils.time import get_monotonic_ms


logger = logging.getLogger(__name__)


def _describe(error: ValidationError | InvalidQuoteError) -> str:
    """One-line reason for a rejected entry."""
    if isinstance(error, ValidationError):
        first = error.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "entry"
        return f"{location}: {first['msg']}"
    return str(error)


class QuoteFeed:
    """
    Applies ticker stream messages to the quote store.

    Malformed entries are dropped one by one and reported on the event bus;
    they never abort the rest of the message.
    """

    def __init__(
        self,
        store: QuoteStore,
        dispatcher: QuoteDispatcher,
        bus: EventBus,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], int] = get_monotonic_ms,
    ) -> None:
        """
        Initialize the feed.

        Args:
            store: Quote store to update.
            dispatcher: Throttled snapshot dispatcher.
            bus: Event bus for data error reports.
            metrics: Optional metrics collector.
            clock: Monotonic millisecond clock used for throttling.
        """
        self._store = store
        self._dispatcher = dispatcher
        self._bus = bus
        self._metrics = metrics
        self._clock = clock

    async def handle_message(self, payload: Any) -> int:
        """
        Process one decoded stream message.

        Args:
            payload: A list of ticker objects, a single ticker object, or a
                combined-stream envelope {"stream": ..., "data": ...}.

        Returns:
            Number of entries applied to the store.
        """
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        entries = payload if isinstance(payload, list) else [payload]

        accepted = 0
        rejected: list[str] = []

        for entry in entries:
            try:
                ticker = TickerUpdate.model_validate(entry)
                self._store.update(ticker.symbol, ticker.ask_price, ticker.bid_price)
            except (ValidationError, InvalidQuoteError) as e:
                rejected.append(_describe(e))
                continue
            accepted += 1

        if self._metrics:
            self._metrics.increment_counter("ticks", accepted)
            if rejected:
                self._metrics.increment_counter("malformed_ticks", len(rejected))

        if rejected:
            message = (
                f"Data error: rejected {len(rejected)} of {len(entries)} "
                f"ticker entries ({rejected[0]})"
            )
            logger.warning(message)
            await self._bus.emit(EventType.FEED_ERROR, message, source="feed")

        if self._dispatcher.snapshot_and_maybe_dispatch(self._clock()) is not None:
            if self._metrics:
                self._metrics.increment_counter("dispatches")

        return accepted

    async def report_decode_error(self, error: Exception) -> None:
        """Report a frame that was not valid JSON."""
        message = f"Data error: {error}"
        logger.warning(message)
        if self._metrics:
            self._metrics.increment_counter("malformed_ticks")
        await self._bus.emit(EventType.FEED_ERROR, message, source="feed")
