"""Core module containing the event bus and type definitions."""

from triscan.core.event_bus import Event, EventBus, EventType
from triscan.core.types import (
    CycleCandidate,
    LedgerEntry,
    LegSide,
    ProfitSample,
    Quote,
    RowView,
    Snapshot,
    ValidationResult,
)


__all__ = [
    "CycleCandidate",
    "Event",
    "EventBus",
    "EventType",
    "LedgerEntry",
    "LegSide",
    "ProfitSample",
    "Quote",
    "RowView",
    "Snapshot",
    "ValidationResult",
]
