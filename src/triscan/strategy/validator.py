"""
Depth validation of cycle candidates.

A candidate is only trusted when the top of the freshly fetched order book
for every leg shows exactly the price the quote store holds for that leg.
"""

import asyncio
import logging

from triscan.config.constants import DEFAULT_DEPTH_LIMIT
from triscan.core.types import (
    CYCLE_LEG_SIDES,
    CycleCandidate,
    DepthSource,
    LegSide,
    ValidationResult,
)
from triscan.exchange.models import DepthLevel, OrderBookDepth
from triscan.market.quotes import QuoteStore


logger = logging.getLogger(__name__)


class MissingQuoteError(LookupError):
    """Raised when a candidate leg has no quote in the store."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"no quote for {symbol}")
        self.symbol = symbol


class EmptyBookError(LookupError):
    """Raised when a fetched book has no level on the side a leg needs."""

    def __init__(self, symbol: str, side: LegSide) -> None:
        super().__init__(f"empty {side.value.lower()} side for {symbol}")
        self.symbol = symbol
        self.side = side


def _top_level(symbol: str, depth: OrderBookDepth, side: LegSide) -> DepthLevel:
    level = depth.best_ask if side is LegSide.ASK else depth.best_bid
    if level is None:
        raise EmptyBookError(symbol, side)
    return level


class DepthValidator:
    """
    Reconciles candidates against live order-book depth.

    Legs A and B are checked on the ask side, leg C on the bid side. Price
    equality is exact; any difference marks the candidate as a mismatch.
    """

    def __init__(
        self,
        source: DepthSource,
        store: QuoteStore,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
    ) -> None:
        """
        Initialize the validator.

        Args:
            source: Order-book depth provider.
            store: Quote store holding the desired prices.
            depth_limit: Levels requested per leg.
        """
        self._source = source
        self._store = store
        self._depth_limit = depth_limit

    async def validate(self, candidate: CycleCandidate) -> ValidationResult:
        """
        Validate a candidate against fresh depth for its three legs.

        Never raises: any fetch or lookup failure produces
        `ValidationResult.unavailable` carrying the error text. Cancellation
        still propagates.
        """
        try:
            return await self._validate(candidate)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(f"Validation unavailable for {candidate.route}: {error}")
            return ValidationResult.unavailable(error)

    async def _validate(self, candidate: CycleCandidate) -> ValidationResult:
        legs = candidate.legs

        books = await asyncio.gather(
            *(self._source.get_depth(symbol, limit=self._depth_limit) for symbol in legs)
        )

        fetched = [
            _top_level(symbol, book, side)
            for symbol, book, side in zip(legs, books, CYCLE_LEG_SIDES)
        ]

        desired: list[float] = []
        for symbol, side in zip(legs, CYCLE_LEG_SIDES):
            quote = self._store.get(symbol)
            if quote is None:
                raise MissingQuoteError(symbol)
            desired.append(quote.price_for(side))

        is_valid = all(level.price == price for level, price in zip(fetched, desired))

        if not is_valid:
            logger.debug(
                f"Mismatch {candidate.route}: fetched "
                f"{[level.price for level in fetched]} desired {desired}"
            )

        return ValidationResult(
            is_valid=is_valid,
            liquidity=(fetched[0].quantity, fetched[1].quantity, fetched[2].quantity),
            reference_prices=(desired[0], desired[1], desired[2]),
        )
