"""
Type definitions for the scanner.

This module contains the dataclasses, enums and Protocol definitions shared
across the pipeline. Values that cross the scan worker boundary (Quote,
Snapshot, CycleCandidate) are frozen and picklable.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol


if TYPE_CHECKING:
    from triscan.exchange.models import OrderBookDepth


# =============================================================================
# Enums
# =============================================================================


class LegSide(str, Enum):
    """Book side a leg is traded against."""

    ASK = "ASK"
    BID = "BID"


# Legs A and B are bought at the ask, leg C is sold at the bid
CYCLE_LEG_SIDES: tuple[LegSide, LegSide, LegSide] = (LegSide.ASK, LegSide.ASK, LegSide.BID)


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Quote:
    """
    Latest best bid and ask for one trading pair.

    Replaced as a whole on every update, never mutated.
    """

    symbol: str
    ask_price: float
    bid_price: float

    def price_for(self, side: LegSide) -> float:
        """Get the top-of-book price on the given side."""
        return self.ask_price if side is LegSide.ASK else self.bid_price


@dataclass(slots=True, frozen=True)
class Snapshot:
    """
    Immutable point-in-time copy of the quote store.

    Handed to the scan worker by value.
    """

    quotes: tuple[Quote, ...]
    taken_at_ms: int = 0

    def __len__(self) -> int:
        return len(self.quotes)

    def __iter__(self) -> Iterator[Quote]:
        return iter(self.quotes)

    def get(self, symbol: str) -> Quote | None:
        """Linear lookup; build a dict for repeated access."""
        for quote in self.quotes:
            if quote.symbol == symbol:
                return quote
        return None


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class CycleCandidate:
    """
    A profitable three-leg cycle found by the scanner.

    leg_a quotes against the reference asset, leg_b quotes the intermediate
    asset against leg_a's base, leg_c quotes the intermediate asset back
    against the reference asset.
    """

    leg_a: str
    leg_b: str
    leg_c: str
    profit_pct: float

    @property
    def key(self) -> tuple[str, str, str]:
        """Identity of the route; equal keys are the same opportunity."""
        return (self.leg_a, self.leg_b, self.leg_c)

    @property
    def legs(self) -> tuple[str, str, str]:
        return (self.leg_a, self.leg_b, self.leg_c)

    @property
    def row_id(self) -> str:
        """Stable display identifier."""
        return f"opportunity-{self.leg_a}-{self.leg_b}-{self.leg_c}"

    @property
    def route(self) -> str:
        return " → ".join(self.legs)


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of reconciling a candidate against fresh order-book depth."""

    is_valid: bool
    liquidity: tuple[float, float, float]
    reference_prices: tuple[float, float, float]
    error: str = ""

    @classmethod
    def unavailable(cls, error: str = "") -> "ValidationResult":
        """Safe "not actionable" result used whenever validation cannot run."""
        return cls(
            is_valid=False,
            liquidity=(0.0, 0.0, 0.0),
            reference_prices=(0.0, 0.0, 0.0),
            error=error,
        )


@dataclass(slots=True)
class LedgerEntry:
    """
    A known route with its latest validation and score.

    Created on first sighting and overwritten in place afterwards.
    """

    candidate: CycleCandidate
    validation: ValidationResult
    score: int
    first_seen_ms: int = 0

    @property
    def key(self) -> tuple[str, str, str]:
        return self.candidate.key


@dataclass(slots=True, frozen=True)
class ProfitSample:
    """One point of the max-profit trend series."""

    timestamp_ms: int
    label: str
    max_profit_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp_ms": self.timestamp_ms,
            "label": self.label,
            "max_profit_pct": self.max_profit_pct,
        }


@dataclass(slots=True)
class RowView:
    """
    Display payload for one ledger entry.

    Formatted the way the operator table shows it.
    """

    key: str
    legs: tuple[str, str, str]
    links: tuple[str, str, str]
    profit: str
    status: str
    liquidity: str
    prices: str
    score: int
    advice: str
    is_valid: bool
    profit_pct: float = field(default=0.0, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "legs": list(self.legs),
            "links": list(self.links),
            "profit": self.profit,
            "profit_pct": self.profit_pct,
            "status": self.status,
            "liquidity": self.liquidity,
            "prices": self.prices,
            "score": self.score,
            "advice": self.advice,
            "is_valid": self.is_valid,
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class DepthSource(Protocol):
    """Anything that can return order-book depth for a symbol."""

    async def get_depth(self, symbol: str, limit: int = 5) -> "OrderBookDepth":
        """Fetch the top `limit` levels for a symbol."""
        ...


class Predictor(Protocol):
    """Minimal model interface used by the confidence scorer."""

    def predict(self, X: Any) -> Sequence[float]:
        """Predict one output per input row."""
        ...
