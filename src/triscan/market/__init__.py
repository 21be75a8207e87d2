"""Market data module: quote store, ingestion and the ticker stream."""

from triscan.market.feed import QuoteFeed
from triscan.market.quotes import DispatchThrottle, InvalidQuoteError, QuoteDispatcher, QuoteStore
from triscan.market.websocket import TickerStream


__all__ = [
    "DispatchThrottle",
    "InvalidQuoteError",
    "QuoteDispatcher",
    "QuoteFeed",
    "QuoteStore",
    "TickerStream",
]
