"""Configuration module for the scanner."""

from triscan.config.constants import (
    BINANCE_REST_URL,
    BINANCE_WS_URL,
    DEFAULT_DEPTH_LIMIT,
    DEFAULT_DISPATCH_INTERVAL_MS,
    DEFAULT_FEE_PERCENT,
    DEFAULT_RECONNECT_DELAY,
)
from triscan.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "BINANCE_REST_URL",
    "BINANCE_WS_URL",
    "DEFAULT_DEPTH_LIMIT",
    "DEFAULT_DISPATCH_INTERVAL_MS",
    "DEFAULT_FEE_PERCENT",
    "DEFAULT_RECONNECT_DELAY",
]
