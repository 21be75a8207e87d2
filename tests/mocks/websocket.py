"""
Mock ticker stream for testing.

Provides a controllable stand-in for the all-market ticker stream
that pushes messages straight into a message handler.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from triscan.utils.time import get_timestamp_ms


def ticker(symbol: str, ask: float, bid: float) -> dict[str, Any]:
    """Build one !ticker@arr entry, prices as strings like the exchange sends."""
    return {
        "e": "24hrTicker",
        "E": get_timestamp_ms(),
        "s": symbol,
        "b": str(bid),
        "B": "1.00000000",
        "a": str(ask),
        "A": "1.00000000",
        "c": str(bid),
        "v": "1000.00000000",
    }


class MockTickerStream:
    """
    Mock ticker stream for testing.

    Allows injecting ticker arrays programmatically.
    """

    def __init__(self, handler: Callable[[Any], Awaitable[Any]]) -> None:
        """
        Initialize mock stream.

        Args:
            handler: Message handler, usually QuoteFeed.handle_message.
        """
        self._handler = handler
        self._message_count = 0

    async def inject_message(self, payload: Any) -> Any:
        """Deliver one decoded message."""
        self._message_count += 1
        return await self._handler(payload)

    async def inject_tickers(self, quotes: list[tuple[str, float, float]]) -> Any:
        """Deliver one array of (symbol, ask, bid) tickers."""
        return await self.inject_message([ticker(s, a, b) for s, a, b in quotes])

    async def inject_profitable_cycle(self) -> Any:
        """
        Inject prices with one profitable ETHUSDT → ETHBTC → BTCUSDT cycle.

        (1 / 3000) * 0.06 * 51000 = 1.02, so 2% gross and 1.7% net.
        """
        return await self.inject_tickers(
            [
                ("ETHUSDT", 3000.0, 2999.0),
                ("ETHBTC", 0.06, 0.0599),
                ("BTCUSDT", 51001.0, 51000.0),
            ]
        )

    async def inject_flat_cycle(self) -> Any:
        """Inject prices whose only cycle returns exactly 1 before fees."""
        return await self.inject_tickers(
            [
                ("ETHUSDT", 3000.0, 2999.0),
                ("ETHBTC", 0.06, 0.0599),
                ("BTCUSDT", 50001.0, 50000.0),
            ]
        )

    @property
    def message_count(self) -> int:
        return self._message_count
