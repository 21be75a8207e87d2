"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from triscan.config.settings import Settings
from triscan.core.event_bus import Event, EventBus, EventType
from triscan.core.types import CycleCandidate, Quote, Snapshot, ValidationResult
from triscan.market.quotes import QuoteStore
from triscan.telemetry.metrics import MetricsCollector
from tests.mocks import MockDepthClient


# =============================================================================
# Quote Fixtures
# =============================================================================


@pytest.fixture
def quote_ethusdt() -> Quote:
    """ETH/USDT quote, first leg of the sample cycle."""
    return Quote(symbol="ETHUSDT", ask_price=3000.0, bid_price=2999.0)


@pytest.fixture
def quote_ethbtc() -> Quote:
    """ETH/BTC quote, second leg of the sample cycle."""
    return Quote(symbol="ETHBTC", ask_price=0.06, bid_price=0.0599)


@pytest.fixture
def quote_btcusdt() -> Quote:
    """BTC/USDT quote, closing leg of the sample cycle."""
    return Quote(symbol="BTCUSDT", ask_price=51001.0, bid_price=51000.0)


@pytest.fixture
def cycle_quotes(
    quote_ethusdt: Quote,
    quote_ethbtc: Quote,
    quote_btcusdt: Quote,
) -> list[Quote]:
    """Quotes forming one cycle with 1.7% net profit."""
    return [quote_ethusdt, quote_ethbtc, quote_btcusdt]


@pytest.fixture
def cycle_snapshot(cycle_quotes: list[Quote]) -> Snapshot:
    """Snapshot of the sample cycle."""
    return Snapshot(quotes=tuple(cycle_quotes), taken_at_ms=1)


@pytest.fixture
def quote_store(cycle_quotes: list[Quote]) -> QuoteStore:
    """Quote store holding the sample cycle."""
    store = QuoteStore()
    for quote in cycle_quotes:
        store.update(quote.symbol, quote.ask_price, quote.bid_price)
    return store


# =============================================================================
# Candidate Fixtures
# =============================================================================


@pytest.fixture
def candidate() -> CycleCandidate:
    """The sample cycle as the scanner reports it."""
    return CycleCandidate(
        leg_a="ETHUSDT",
        leg_b="ETHBTC",
        leg_c="BTCUSDT",
        profit_pct=1.7,
    )


@pytest.fixture
def valid_result() -> ValidationResult:
    """Validation that matched the store exactly."""
    return ValidationResult(
        is_valid=True,
        liquidity=(2.5, 40.0, 0.75),
        reference_prices=(3000.0, 0.06, 51000.0),
    )


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and .env files."""
    return Settings(_env_file=None, model_url=None, reporter_enabled=False)


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def captured_events(event_bus: EventBus) -> list[Event]:
    """Every event published on `event_bus`, in order."""
    events: list[Event] = []
    for event_type in EventType:
        event_bus.subscribe_sync(event_type, events.append)
    return events


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector."""
    return MetricsCollector()


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_depth_client(cycle_quotes: list[Quote]) -> MockDepthClient:
    """Depth client whose top levels match the sample cycle quotes."""
    client = MockDepthClient()
    client.set_book("ETHUSDT", asks=[(3000.0, 2.5), (3000.5, 4.0)], bids=[(2999.0, 1.0)])
    client.set_book("ETHBTC", asks=[(0.06, 40.0)], bids=[(0.0599, 12.0)])
    client.set_book("BTCUSDT", asks=[(51001.0, 0.3)], bids=[(51000.0, 0.75), (50999.0, 2.0)])
    return client
