"""
Pydantic models for Binance payloads.

These models provide type-safe parsing of stream messages and REST
responses. Price and quantity strings are coerced to floats.
"""

import math

from pydantic import BaseModel, Field, field_validator


class TickerUpdate(BaseModel):
    """
    One entry of the all-market ticker stream.

    Only the symbol and best ask/bid are used; the other rolling-window
    fields of the payload are ignored.
    """

    symbol: str = Field(alias="s", min_length=1)
    ask_price: float = Field(alias="a", gt=0)
    bid_price: float = Field(alias="b", gt=0)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("ask_price", "bid_price", mode="after")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject inf prices, which pass the gt=0 check."""
        if not math.isfinite(v):
            raise ValueError("price must be finite")
        return v


class DepthLevel(BaseModel):
    """Single price level of an order book."""

    price: float
    quantity: float


class OrderBookDepth(BaseModel):
    """
    Order book depth response.

    Levels arrive as [price, quantity] string pairs, best first.
    """

    last_update_id: int = Field(default=0, alias="lastUpdateId")
    bids: list[tuple[float, float]] = Field(default_factory=list)
    asks: list[tuple[float, float]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def best_bid(self) -> DepthLevel | None:
        """Highest bid, or None for an empty side."""
        if not self.bids:
            return None
        price, quantity = self.bids[0]
        return DepthLevel(price=price, quantity=quantity)

    @property
    def best_ask(self) -> DepthLevel | None:
        """Lowest ask, or None for an empty side."""
        if not self.asks:
            return None
        price, quantity = self.asks[0]
        return DepthLevel(price=price, quantity=quantity)
