"""
Async Binance public REST client.

Only unauthenticated market-data endpoints are used:
- Connection pooling and keep-alive
- Fast JSON parsing with orjson
- Pydantic-validated responses
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson

from triscan.config.constants import (
    BINANCE_REST_URL,
    DEFAULT_DEPTH_LIMIT,
    DEFAULT_REQUEST_TIMEOUT,
    ENDPOINT_DEPTH,
)
from triscan.exchange.models import OrderBookDepth


class ExchangeClientError(Exception):
    """Base exception for exchange client errors."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class ExchangeAPIError(ExchangeClientError):
    """Exception for error responses returned by the exchange."""

    pass


class BinanceClient:
    """
    Async Binance REST client for order-book depth.

    Features:
    - Single session with connection pooling
    - Keep-alive for reduced latency
    - orjson for fast JSON parsing
    """

    def __init__(
        self,
        base_url: str = BINANCE_REST_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: REST API base URL.
            timeout: Total timeout per request in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=50,
                keepalive_timeout=30,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Translate transport errors into client errors."""
        session = await self._get_session()
        try:
            yield session
        except aiohttp.ClientError as e:
            raise ExchangeClientError(f"Network error: {e}") from e
        except TimeoutError as e:
            raise ExchangeClientError("Request timed out") from e

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        Make a GET request.

        Raises:
            ExchangeAPIError: On API error response.
            ExchangeClientError: On network or parsing errors.
        """
        url = f"{self._base_url}{endpoint}"

        async with self._request_context() as session:
            async with session.get(url, params=params or {}) as response:
                return await self._handle_response(response)

    async def _handle_response(self, response: aiohttp.ClientResponse) -> Any:
        """Parse and validate response."""
        body = await response.read()

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise ExchangeClientError(f"Invalid JSON response: {e}") from e

        if response.status >= 400:
            if isinstance(data, dict):
                code = data.get("code", response.status)
                msg = data.get("msg", "")
            else:
                code, msg = response.status, str(data)
            raise ExchangeAPIError(f"API error {code}: {msg}", code=code)

        return data

    async def get_depth(self, symbol: str, limit: int = DEFAULT_DEPTH_LIMIT) -> OrderBookDepth:
        """
        Get the top order-book levels for a symbol.

        Args:
            symbol: Trading symbol, e.g. "BTCUSDT".
            limit: Number of levels per side.

        Returns:
            Parsed depth with best levels first.
        """
        data = await self._get(ENDPOINT_DEPTH, {"symbol": symbol, "limit": limit})
        try:
            return OrderBookDepth.model_validate(data)
        except ValueError as e:
            raise ExchangeClientError(f"Malformed depth for {symbol}: {e}") from e

    async def __aenter__(self) -> "BinanceClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
