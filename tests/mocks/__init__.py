"""Mock implementations for testing."""

from tests.mocks.exchange import MockDepthClient
from tests.mocks.websocket import MockTickerStream


__all__ = [
    "MockDepthClient",
    "MockTickerStream",
]
