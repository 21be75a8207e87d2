"""
In-memory opportunity ledger.

Every route ever reported stays in the ledger for the whole session; later
sightings overwrite it in place. The ledger also keeps the max-profit trend
series, one point per non-empty scan batch.
"""

from collections.abc import Callable, Iterable
from typing import Any

from triscan.config.constants import STATUS_MISMATCH, STATUS_VALID
from triscan.core.types import CycleCandidate, LedgerEntry, ProfitSample, ValidationResult
from triscan.utils.time import format_time_label, get_timestamp_ms


RouteKey = tuple[str, str, str]


def _status(entry: LedgerEntry) -> str:
    return STATUS_VALID if entry.validation.is_valid else STATUS_MISMATCH


# Sort columns of the operator table
SORT_KEYS: dict[str, Callable[[LedgerEntry], Any]] = {
    "route": lambda entry: entry.candidate.route,
    "profit": lambda entry: entry.candidate.profit_pct,
    "status": _status,
    "liquidity": lambda entry: entry.validation.liquidity,
    "score": lambda entry: entry.score,
}


class OpportunityLedger:
    """
    Keyed, never-shrinking set of opportunities.

    Keys are (leg_a, leg_b, leg_c). There is no remove
    operation; filtering and sorting only produce views.
    """

    def __init__(self) -> None:
        self._entries: dict[RouteKey, LedgerEntry] = {}
        self._profit_history: list[ProfitSample] = []

    def upsert(
        self,
        candidate: CycleCandidate,
        validation: ValidationResult,
        score: int,
        now_ms: int | None = None,
    ) -> tuple[LedgerEntry, bool]:
        """
        Create or overwrite the entry for a candidate's route.

        Args:
            candidate: Candidate from the latest scan.
            validation: Its depth validation result.
            score: Its confidence score.
            now_ms: Wall-clock time, used as first-seen time on creation.

        Returns:
            (entry, created) where created is True on first sighting.
        """
        key = candidate.key
        entry = self._entries.get(key)

        if entry is None:
            entry = LedgerEntry(
                candidate=candidate,
                validation=validation,
                score=score,
                first_seen_ms=now_ms if now_ms is not None else get_timestamp_ms(),
            )
            self._entries[key] = entry
            return entry, True

        entry.candidate = candidate
        entry.validation = validation
        entry.score = score
        return entry, False

    def get(self, key: RouteKey) -> LedgerEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def entries(self) -> list[LedgerEntry]:
        """All entries in first-seen order."""
        return list(self._entries.values())

    def rows(
        self,
        filter_term: str = "",
        sort_by: str | None = None,
        descending: bool = False,
    ) -> list[LedgerEntry]:
        """
        Operator table view.

        Args:
            filter_term: Case-insensitive substring matched against the route.
            sort_by: One of route, profit, status, liquidity, score; None keeps
                first-seen order.
            descending: Reverse the sort.

        Raises:
            ValueError: For an unknown sort column.
        """
        term = filter_term.strip().upper()
        view = [
            entry
            for entry in self._entries.values()
            if not term or term in entry.candidate.route.upper()
        ]

        if sort_by:
            try:
                sort_key = SORT_KEYS[sort_by]
            except KeyError:
                raise ValueError(f"Unknown sort column: {sort_by}") from None
            view.sort(key=sort_key, reverse=descending)

        return view

    def record_batch(
        self,
        profits: Iterable[float],
        now_ms: int | None = None,
    ) -> ProfitSample | None:
        """
        Append the batch max profit to the trend series.

        The point is max(max(profits), 0). Empty batches add nothing.
        """
        values = list(profits)
        if not values:
            return None

        timestamp_ms = now_ms if now_ms is not None else get_timestamp_ms()
        sample = ProfitSample(
            timestamp_ms=timestamp_ms,
            label=format_time_label(timestamp_ms),
            max_profit_pct=max(max(values), 0.0),
        )
        self._profit_history.append(sample)
        return sample

    @property
    def profit_history(self) -> tuple[ProfitSample, ...]:
        return tuple(self._profit_history)

    @property
    def valid_count(self) -> int:
        """Number of routes whose latest validation passed."""
        return sum(1 for entry in self._entries.values() if entry.validation.is_valid)
