"""Display module: opportunity ledger, row rendering and the web dashboard."""

from triscan.display.ledger import OpportunityLedger
from triscan.display.render import OpportunityRenderer, build_row, trade_link


__all__ = [
    "OpportunityLedger",
    "OpportunityRenderer",
    "build_row",
    "trade_link",
]
