"""
Quote store with O(1) updates and throttled snapshot dispatch.

The store keeps the latest best bid/ask per symbol. The dispatcher turns it
into immutable snapshots for the scan worker, no more often than the
configured interval.
"""

import math
from collections.abc import Callable

from triscan.config.constants import DEFAULT_DISPATCH_INTERVAL_MS
from triscan.core.types import Quote, Snapshot


# Type alias for snapshot consumers
DispatchCallback = Callable[[Snapshot], None]


class InvalidQuoteError(ValueError):
    """Raised when an update would put a bad quote in the store."""


class QuoteStore:
    """
    Latest top-of-book quote per symbol.

    Single writer (the ingestion handler), many readers. Each update swaps
    in a new frozen Quote, so a reader holding a Quote never sees it change.
    """

    __slots__ = ("_quotes", "_update_count")

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._quotes: dict[str, Quote] = {}
        self._update_count: int = 0

    def update(self, symbol: str, ask: float, bid: float) -> Quote:
        """
        Insert or overwrite the quote for a symbol.

        Args:
            symbol: Trading symbol.
            ask: Best ask price.
            bid: Best bid price.

        Returns:
            The stored Quote.

        Raises:
            InvalidQuoteError: If the symbol is empty or a price is not a
                finite positive number. The store is left unchanged.
        """
        if not symbol:
            raise InvalidQuoteError("empty symbol")
        for name, price in (("ask", ask), ("bid", bid)):
            if not math.isfinite(price) or price <= 0:
                raise InvalidQuoteError(f"{symbol}: {name} price must be > 0, got {price!r}")

        quote = Quote(symbol=symbol, ask_price=float(ask), bid_price=float(bid))
        self._quotes[symbol] = quote
        self._update_count += 1
        return quote

    def get(self, symbol: str) -> Quote | None:
        """
        Get the quote for a symbol.

        Returns:
            Quote or None if the symbol has never been seen.
        """
        return self._quotes.get(symbol)

    def snapshot(self, now_ms: int = 0) -> Snapshot:
        """
        Copy all current quotes into an immutable snapshot.

        Args:
            now_ms: Timestamp recorded on the snapshot.
        """
        return Snapshot(quotes=tuple(self._quotes.values()), taken_at_ms=now_ms)

    def __len__(self) -> int:
        return len(self._quotes)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._quotes

    @property
    def symbols(self) -> frozenset[str]:
        """Get all known symbols."""
        return frozenset(self._quotes)

    @property
    def update_count(self) -> int:
        """Get total number of accepted updates."""
        return self._update_count


class DispatchThrottle:
    """
    Minimum-interval gate for snapshot dispatch.

    The scan is quadratic in the number of symbols, so forwarding every
    tick would keep the worker permanently busy.
    """

    __slots__ = ("_min_interval_ms", "_last_dispatch_ms")

    def __init__(self, min_interval_ms: int = DEFAULT_DISPATCH_INTERVAL_MS) -> None:
        """
        Initialize throttle.

        Args:
            min_interval_ms: Minimum time between two dispatches.
        """
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must be >= 0")
        self._min_interval_ms = min_interval_ms
        self._last_dispatch_ms: int | None = None

    def ready(self, now_ms: int) -> bool:
        """
        Check whether a dispatch is allowed at `now_ms`, and claim it if so.

        Returns:
            True if nothing was dispatched yet or the interval has elapsed.
        """
        last = self._last_dispatch_ms
        if last is not None and now_ms - last < self._min_interval_ms:
            return False
        self._last_dispatch_ms = now_ms
        return True

    @property
    def min_interval_ms(self) -> int:
        return self._min_interval_ms

    @property
    def last_dispatch_ms(self) -> int | None:
        return self._last_dispatch_ms


class QuoteDispatcher:
    """Forwards throttled snapshots of a QuoteStore to a consumer."""

    def __init__(
        self,
        store: QuoteStore,
        throttle: DispatchThrottle,
        dispatch: DispatchCallback,
    ) -> None:
        self._store = store
        self._throttle = throttle
        self._dispatch = dispatch
        self._dispatch_count = 0

    def snapshot_and_maybe_dispatch(self, now_ms: int) -> Snapshot | None:
        """
        Snapshot the store and forward it if the throttle allows.

        Args:
            now_ms: Current monotonic time in milliseconds.

        Returns:
            The dispatched snapshot, or None if throttled or empty.
        """
        if not len(self._store):
            return None
        if not self._throttle.ready(now_ms):
            return None

        snapshot = self._store.snapshot(now_ms)
        self._dispatch_count += 1
        self._dispatch(snapshot)
        return snapshot

    @property
    def dispatch_count(self) -> int:
        return self._dispatch_count
