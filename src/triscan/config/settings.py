"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from triscan.config.constants import (
    BINANCE_REST_URL,
    BINANCE_TRADE_URL_TEMPLATE,
    BINANCE_WS_URL,
    DEFAULT_DASHBOARD_HOST,
    DEFAULT_DASHBOARD_PORT,
    DEFAULT_DEPTH_LIMIT,
    DEFAULT_DISPATCH_INTERVAL_MS,
    DEFAULT_FEE_PERCENT,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_REFERENCE_ASSET,
    DEFAULT_REQUEST_TIMEOUT,
    METRICS_REPORT_INTERVAL,
    STREAM_ALL_TICKERS,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every tunable can be overridden via an environment variable of the
    same name, or through a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Endpoints
    # =========================================================================

    stream_url: str = Field(
        default=f"{BINANCE_WS_URL}{STREAM_ALL_TICKERS}",
        description="WebSocket URL of the all-market ticker stream",
    )

    rest_url: str = Field(
        default=BINANCE_REST_URL,
        description="Base URL for order-book depth requests",
    )

    trade_url_template: str = Field(
        default=BINANCE_TRADE_URL_TEMPLATE,
        description="Per-leg trade link, {pair} is replaced by e.g. BTC_USDT",
    )

    # =========================================================================
    # Cycle Search
    # =========================================================================

    reference_asset: str = Field(
        default=DEFAULT_REFERENCE_ASSET,
        min_length=1,
        description="Asset every cycle starts and ends in",
    )

    fee_percent: float = Field(
        default=DEFAULT_FEE_PERCENT,
        ge=0.0,
        le=10.0,
        description="Flat round-trip fee estimate in percentage points",
    )

    dispatch_interval_ms: int = Field(
        default=DEFAULT_DISPATCH_INTERVAL_MS,
        ge=0,
        le=60_000,
        description="Minimum interval between snapshot dispatches",
    )

    # =========================================================================
    # Validation & Scoring
    # =========================================================================

    depth_limit: int = Field(
        default=DEFAULT_DEPTH_LIMIT,
        ge=1,
        le=5000,
        description="Order-book levels requested per leg",
    )

    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0.0,
        le=120.0,
        description="Timeout for depth and model requests in seconds",
    )

    model_url: str | None = Field(
        default=None,
        description="URL of a joblib model artifact for confidence scoring",
    )

    # =========================================================================
    # Stream
    # =========================================================================

    reconnect_delay: float = Field(
        default=DEFAULT_RECONNECT_DELAY,
        ge=0.0,
        le=300.0,
        description="Delay before reconnecting a failed stream, in seconds",
    )

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    reporter_enabled: bool = Field(
        default=True,
        description="Show the terminal status panel",
    )

    reporter_interval: float = Field(
        default=METRICS_REPORT_INTERVAL,
        gt=0.0,
        description="Terminal panel refresh interval in seconds",
    )

    dashboard_host: str = Field(default=DEFAULT_DASHBOARD_HOST)
    dashboard_port: int = Field(default=DEFAULT_DASHBOARD_PORT, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("reference_asset", mode="after")
    @classmethod
    def normalize_reference_asset(cls, v: str) -> str:
        """Symbols on the stream are upper case."""
        return v.strip().upper()

    @field_validator("trade_url_template", mode="after")
    @classmethod
    def validate_trade_url_template(cls, v: str) -> str:
        """Ensure the link template has a pair placeholder."""
        if "{pair}" not in v:
            raise ValueError("trade_url_template must contain '{pair}'")
        return v

    @field_validator("model_url", mode="before")
    @classmethod
    def empty_model_url_is_none(cls, v: object) -> object:
        """Treat MODEL_URL= as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
