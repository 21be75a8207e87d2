"""
Triangular Arbitrage Scanner.

Watches a live Binance ticker stream for three-leg cycles that return to the
reference asset at a profit, checks them against fresh order-book depth and
keeps every route it has seen in an operator-facing ledger.
"""

__version__ = "1.0.0"
