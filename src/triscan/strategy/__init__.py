"""Strategy module: cycle search, depth validation and scoring."""

from triscan.strategy.scanner import ScanWorker, scan_snapshot
from triscan.strategy.scorer import ConfidenceScorer
from triscan.strategy.validator import DepthValidator, MissingQuoteError


__all__ = [
    "ConfidenceScorer",
    "DepthValidator",
    "MissingQuoteError",
    "ScanWorker",
    "scan_snapshot",
]
