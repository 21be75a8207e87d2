"""
Unit tests for Settings.

Tests defaults, normalization and environment overrides.
"""

import pytest
from pydantic import ValidationError

from triscan.config.settings import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Test the out-of-the-box configuration."""
        settings = Settings(_env_file=None)

        assert settings.stream_url == "wss://stream.binance.com:9443/ws/!ticker@arr"
        assert settings.rest_url == "https://api.binance.com"
        assert settings.reference_asset == "USDT"
        assert settings.fee_percent == 0.3
        assert settings.dispatch_interval_ms == 300
        assert settings.depth_limit == 5
        assert settings.model_url is None

    def test_reference_asset_upper_cased(self) -> None:
        """Test the reference asset matches stream symbols."""
        assert Settings(_env_file=None, reference_asset=" btc ").reference_asset == "BTC"

    def test_template_requires_placeholder(self) -> None:
        """Test a trade link template without {pair} is rejected."""
        with pytest.raises(ValidationError, match="pair"):
            Settings(_env_file=None, trade_url_template="https://example.com/trade")

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_model_url_is_unset(self, value: str) -> None:
        """Test blank model URLs disable scoring."""
        assert Settings(_env_file=None, model_url=value).model_url is None

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("fee_percent", -0.1),
            ("depth_limit", 0),
            ("dispatch_interval_ms", -1),
            ("request_timeout", 0.0),
            ("log_level", "TRACE"),
        ],
    )
    def test_out_of_range_rejected(self, field: str, value: object) -> None:
        """Test bounds on numeric and enumerated settings."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from environment variables."""
        monkeypatch.setenv("REFERENCE_ASSET", "btc")
        monkeypatch.setenv("FEE_PERCENT", "0.1")
        monkeypatch.setenv("MODEL_URL", "https://models.test/score.joblib")
        monkeypatch.setenv("REPORTER_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.reference_asset == "BTC"
        assert settings.fee_percent == 0.1
        assert settings.model_url == "https://models.test/score.joblib"
        assert settings.reporter_enabled is False

    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the shared instance is built once."""
        monkeypatch.setenv("DEPTH_LIMIT", "10")
        get_settings.cache_clear()
        try:
            first = get_settings()
            assert first is get_settings()
            assert first.depth_limit == 10
        finally:
            get_settings.cache_clear()
