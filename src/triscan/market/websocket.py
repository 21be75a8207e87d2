"""
WebSocket client for the all-market ticker stream.

Manages one connection to Binance with:
- Fixed-delay reconnection that never gives up
- Heartbeat monitoring
- Error reporting to the display feed instead of termination
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from enum import Enum, auto
from typing import Any

import aiohttp
import orjson

from triscan.config.constants import (
    DEFAULT_RECONNECT_DELAY,
    WS_CLOSE_TIMEOUT,
    WS_MAX_MESSAGE_SIZE,
    WS_PING_INTERVAL,
    WS_RECEIVE_TIMEOUT,
)
from triscan.core.event_bus import EventBus, EventType


logger = logging.getLogger(__name__)


# Type aliases
MessageHandler = Callable[[Any], Coroutine[Any, Any, Any]]
DecodeErrorHandler = Callable[[Exception], Coroutine[Any, Any, None]]

RECONNECT_MESSAGE = "WebSocket error. Reconnecting..."


class ConnectionState(Enum):
    """WebSocket connection state."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    RECONNECTING = auto()
    CLOSED = auto()


class TickerStream:
    """
    Single WebSocket connection feeding decoded messages to a handler.

    Handles connection lifecycle and reconnection. Every failure is
    reported on the event bus and followed by a reconnect after a fixed
    delay.
    """

    def __init__(
        self,
        url: str,
        message_handler: MessageHandler,
        bus: EventBus,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        decode_error_handler: DecodeErrorHandler | None = None,
    ) -> None:
        """
        Initialize the stream.

        Args:
            url: Full stream URL.
            message_handler: Async callback for decoded messages.
            bus: Event bus for connection and error events.
            reconnect_delay: Seconds to wait before reconnecting.
            decode_error_handler: Async callback for frames that are not JSON.
        """
        self._url = url
        self._message_handler = message_handler
        self._bus = bus
        self._reconnect_delay = reconnect_delay
        self._decode_error_handler = decode_error_handler

        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._session: aiohttp.ClientSession | None = None
        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._message_count = 0
        self._reconnect_count = 0

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def message_count(self) -> int:
        """Get total messages received."""
        return self._message_count

    @property
    def reconnect_count(self) -> int:
        """Get number of reconnect attempts."""
        return self._reconnect_count

    async def connect(self) -> bool:
        """
        Establish WebSocket connection.

        Returns:
            True if connected successfully.
        """
        if self._state == ConnectionState.CONNECTED:
            return True

        self._state = ConnectionState.CONNECTING

        try:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession()

            logger.info(f"Connecting to {self._url}")
            self._ws = await self._session.ws_connect(
                self._url,
                heartbeat=WS_PING_INTERVAL,
                receive_timeout=WS_RECEIVE_TIMEOUT,
                max_msg_size=WS_MAX_MESSAGE_SIZE,
            )

        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Connection failed: {e}")
            self._state = ConnectionState.DISCONNECTED
            return False

        self._state = ConnectionState.CONNECTED
        logger.info("Ticker stream connected")
        await self._bus.emit(EventType.CONNECTED, self._url, source="stream")
        return True

    async def disconnect(self) -> None:
        """Close WebSocket connection."""
        self._running = False
        self._state = ConnectionState.CLOSED

        if self._ws and not self._ws.closed:
            await self._ws.close()

        if self._session and not self._session.closed:
            await self._session.close()

        self._ws = None
        self._session = None

    async def _handle_message(self, msg: aiohttp.WSMessage) -> bool:
        """
        Process a WebSocket message.

        Returns:
            False if the connection should be dropped.
        """
        if msg.type == aiohttp.WSMsgType.TEXT:
            self._message_count += 1
            try:
                data = orjson.loads(msg.data)
            except orjson.JSONDecodeError as e:
                logger.warning(f"Invalid JSON frame: {e}")
                if self._decode_error_handler:
                    await self._decode_error_handler(e)
                return True

            await self._message_handler(data)

        elif msg.type == aiohttp.WSMsgType.ERROR:
            logger.error(f"Stream error: {msg.data}")
            return False

        elif msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
        ):
            logger.warning("Stream closed by server")
            return False

        return True

    async def _connection_lost(self) -> None:
        """Report the failure and wait out the reconnect delay."""
        self._state = ConnectionState.RECONNECTING
        self._reconnect_count += 1

        if self._ws and not self._ws.closed:
            await self._ws.close()
        self._ws = None

        await self._bus.emit(EventType.FEED_ERROR, RECONNECT_MESSAGE, source="stream")
        await self._bus.emit(EventType.DISCONNECTED, self._url, source="stream")

        logger.info(f"Reconnecting in {self._reconnect_delay:.1f}s")
        await asyncio.sleep(self._reconnect_delay)

    async def run(self) -> None:
        """Main message loop with auto-reconnection."""
        self._running = True

        while self._running:
            if not await self.connect():
                await self._connection_lost()
                continue

            ws = self._ws
            if ws is None:
                await self._connection_lost()
                continue

            try:
                async for msg in ws:
                    if not self._running:
                        break

                    if not await self._handle_message(msg):
                        break

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in message loop: {e}")

            if self._running:
                await self._connection_lost()

    def start(self) -> asyncio.Task[None]:
        """Start the message loop as a task."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the message loop and disconnect."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await asyncio.wait_for(self._task, timeout=WS_CLOSE_TIMEOUT)
            except (TimeoutError, asyncio.CancelledError):
                pass

        await self.disconnect()
