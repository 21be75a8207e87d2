"""Exchange integration module for Binance."""

from triscan.exchange.client import BinanceClient, ExchangeAPIError, ExchangeClientError
from triscan.exchange.models import DepthLevel, OrderBookDepth, TickerUpdate


__all__ = [
    "BinanceClient",
    "DepthLevel",
    "ExchangeAPIError",
    "ExchangeClientError",
    "OrderBookDepth",
    "TickerUpdate",
]
