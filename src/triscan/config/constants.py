"""
Scanner constants and configuration defaults.

This module contains all hardcoded values used throughout the scanner.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Binance Endpoints
# =============================================================================

BINANCE_REST_URL: Final[str] = "https://api.binance.com"
BINANCE_WS_URL: Final[str] = "wss://stream.binance.com:9443"

# All-market rolling ticker stream (JSON array per message)
STREAM_ALL_TICKERS: Final[str] = "/ws/!ticker@arr"

ENDPOINT_DEPTH: Final[str] = "/api/v3/depth"

# Spot trading page, {pair} is e.g. BTC_USDT
BINANCE_TRADE_URL_TEMPLATE: Final[str] = "https://www.binance.com/en/trade/{pair}?type=spot"


# =============================================================================
# Cycle Search
# =============================================================================

DEFAULT_REFERENCE_ASSET: Final[str] = "USDT"

# Flat round-trip fee estimate in percentage points, subtracted from gross profit
DEFAULT_FEE_PERCENT: Final[float] = 0.3


# =============================================================================
# Dispatch & Reconnection
# =============================================================================

DEFAULT_DISPATCH_INTERVAL_MS: Final[int] = 300
DEFAULT_RECONNECT_DELAY: Final[float] = 5.0  # seconds


# =============================================================================
# Depth Validation
# =============================================================================

DEFAULT_DEPTH_LIMIT: Final[int] = 5
DEFAULT_REQUEST_TIMEOUT: Final[float] = 10.0  # seconds


# =============================================================================
# WebSocket Configuration
# =============================================================================

WS_PING_INTERVAL: Final[float] = 20.0  # seconds
WS_RECEIVE_TIMEOUT: Final[float] = 60.0  # seconds
WS_MAX_MESSAGE_SIZE: Final[int] = 16 * 1024 * 1024  # !ticker@arr frames are large
WS_CLOSE_TIMEOUT: Final[float] = 5.0  # seconds


# =============================================================================
# Display
# =============================================================================

STATUS_VALID: Final[str] = "Valid"
STATUS_MISMATCH: Final[str] = "Mismatch"
ADVICE_VALID: Final[str] = "Exec at top prices"
PROFIT_LABEL_FORMAT: Final[str] = "%H:%M:%S"

DEFAULT_DASHBOARD_HOST: Final[str] = "127.0.0.1"
DEFAULT_DASHBOARD_PORT: Final[int] = 8000


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

METRICS_REPORT_INTERVAL: Final[float] = 1.0

MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
