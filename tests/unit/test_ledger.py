"""
Unit tests for OpportunityLedger.

Tests the upsert protocol, table views and the profit series.
"""

import pytest

from triscan.core.types import CycleCandidate, ValidationResult
from triscan.display.ledger import OpportunityLedger


def make_candidate(a: str, b: str, c: str, profit: float) -> CycleCandidate:
    return CycleCandidate(leg_a=a, leg_b=b, leg_c=c, profit_pct=profit)


def make_result(valid: bool, liquidity: tuple[float, float, float] = (1.0, 1.0, 1.0)) -> ValidationResult:
    return ValidationResult(
        is_valid=valid,
        liquidity=liquidity,
        reference_prices=(1.0, 1.0, 1.0),
    )


class TestUpsert:
    """Tests for the upsert protocol."""

    def test_first_sighting_creates(
        self,
        candidate: CycleCandidate,
        valid_result: ValidationResult,
    ) -> None:
        """Test a new key creates an entry."""
        ledger = OpportunityLedger()

        entry, created = ledger.upsert(candidate, valid_result, 64, now_ms=1000)

        assert created
        assert len(ledger) == 1
        assert candidate.key in ledger
        assert entry.score == 64
        assert entry.first_seen_ms == 1000

    def test_same_key_overwrites_in_place(self, valid_result: ValidationResult) -> None:
        """Test a later batch replaces every derived field."""
        ledger = OpportunityLedger()
        first = make_candidate("ETHUSDT", "ETHBTC", "BTCUSDT", 1.7)
        later = make_candidate("ETHUSDT", "ETHBTC", "BTCUSDT", 0.4)
        mismatch = make_result(False, (3.0, 4.0, 5.0))

        entry, _ = ledger.upsert(first, valid_result, 64, now_ms=1000)
        again, created = ledger.upsert(later, mismatch, 12, now_ms=2000)

        assert not created
        assert again is entry
        assert len(ledger) == 1
        assert entry.candidate.profit_pct == 0.4
        assert entry.validation is mismatch
        assert entry.score == 12
        assert entry.first_seen_ms == 1000

    def test_upsert_is_idempotent(
        self,
        candidate: CycleCandidate,
        valid_result: ValidationResult,
    ) -> None:
        """Test applying the same inputs twice equals applying them once."""
        once = OpportunityLedger()
        twice = OpportunityLedger()

        once.upsert(candidate, valid_result, 50, now_ms=1)
        twice.upsert(candidate, valid_result, 50, now_ms=1)
        twice.upsert(candidate, valid_result, 50, now_ms=1)

        assert once.entries() == twice.entries()

    def test_ledger_never_shrinks(self, valid_result: ValidationResult) -> None:
        """Test size always equals the number of distinct keys seen."""
        ledger = OpportunityLedger()
        batches = [
            [("A", "AB", "BUSDT"), ("C", "CD", "DUSDT")],
            [("A", "AB", "BUSDT")],
            [],
            [("E", "EF", "FUSDT"), ("C", "CD", "DUSDT")],
        ]
        seen: set[tuple[str, str, str]] = set()

        for batch in batches:
            for legs in batch:
                ledger.upsert(make_candidate(*legs, 1.0), valid_result, 0)
                seen.add(legs)
                assert len(ledger) == len(seen)

        assert len(ledger) == 3
        assert not hasattr(ledger, "remove")

    def test_entries_in_first_seen_order(self, valid_result: ValidationResult) -> None:
        """Test overwrites do not reorder entries."""
        ledger = OpportunityLedger()
        ledger.upsert(make_candidate("A", "AB", "BUSDT", 1.0), valid_result, 0)
        ledger.upsert(make_candidate("C", "CD", "DUSDT", 1.0), valid_result, 0)
        ledger.upsert(make_candidate("A", "AB", "BUSDT", 2.0), valid_result, 0)

        assert [e.key[0] for e in ledger.entries()] == ["A", "C"]

    def test_valid_count(self) -> None:
        """Test counting routes whose latest validation passed."""
        ledger = OpportunityLedger()
        route = make_candidate("A", "AB", "BUSDT", 1.0)
        ledger.upsert(route, make_result(True), 0)
        ledger.upsert(make_candidate("C", "CD", "DUSDT", 1.0), make_result(True), 0)

        ledger.upsert(route, make_result(False), 0)

        assert ledger.valid_count == 1


class TestRows:
    """Tests for the operator table view."""

    @pytest.fixture
    def ledger(self) -> OpportunityLedger:
        ledger = OpportunityLedger()
        ledger.upsert(make_candidate("ETHUSDT", "ETHBTC", "BTCUSDT", 1.7), make_result(True, (2.0, 1.0, 1.0)), 40)
        ledger.upsert(make_candidate("BNBUSDT", "BNBETH", "ETHUSDT", 0.5), make_result(False, (9.0, 1.0, 1.0)), 90)
        ledger.upsert(make_candidate("SOLUSDT", "SOLBTC", "BTCUSDT", 3.2), make_result(True, (0.5, 1.0, 1.0)), 10)
        return ledger

    def test_unfiltered_keeps_order(self, ledger: OpportunityLedger) -> None:
        """Test the default view is first-seen order."""
        assert [r.key[0] for r in ledger.rows()] == ["ETHUSDT", "BNBUSDT", "SOLUSDT"]

    def test_filter_is_case_insensitive(self, ledger: OpportunityLedger) -> None:
        """Test substring filtering on the route."""
        assert [r.key[0] for r in ledger.rows("btcusdt")] == ["ETHUSDT", "SOLUSDT"]
        assert [r.key[0] for r in ledger.rows("bnbeth")] == ["BNBUSDT"]
        assert ledger.rows("XRP") == []

    @pytest.mark.parametrize(
        ("column", "expected"),
        [
            ("profit", ["BNBUSDT", "ETHUSDT", "SOLUSDT"]),
            ("score", ["SOLUSDT", "ETHUSDT", "BNBUSDT"]),
            ("route", ["BNBUSDT", "ETHUSDT", "SOLUSDT"]),
            ("liquidity", ["SOLUSDT", "ETHUSDT", "BNBUSDT"]),
        ],
    )
    def test_sort(self, ledger: OpportunityLedger, column: str, expected: list[str]) -> None:
        """Test each sortable column ascending and descending."""
        assert [r.key[0] for r in ledger.rows(sort_by=column)] == expected
        assert [r.key[0] for r in ledger.rows(sort_by=column, descending=True)] == expected[::-1]

    def test_sort_by_status(self, ledger: OpportunityLedger) -> None:
        """Test mismatches sort before valid routes, ties keep first-seen order."""
        assert [r.key[0] for r in ledger.rows(sort_by="status")] == ["BNBUSDT", "ETHUSDT", "SOLUSDT"]
        assert [r.key[0] for r in ledger.rows(sort_by="status", descending=True)] == [
            "ETHUSDT",
            "SOLUSDT",
            "BNBUSDT",
        ]

    def test_views_do_not_mutate(self, ledger: OpportunityLedger) -> None:
        """Test sorting and filtering leave the ledger untouched."""
        before = ledger.entries()

        ledger.rows("ETH", sort_by="profit", descending=True)

        assert ledger.entries() == before
        assert len(ledger) == 3

    def test_unknown_sort_column(self, ledger: OpportunityLedger) -> None:
        """Test an unknown column is rejected."""
        with pytest.raises(ValueError, match="Unknown sort column"):
            ledger.rows(sort_by="advice")


class TestProfitHistory:
    """Tests for the max-profit series."""

    def test_non_empty_batch_appends_max(self) -> None:
        """Test one point with the batch maximum."""
        ledger = OpportunityLedger()

        sample = ledger.record_batch([0.4, 1.7, 0.9], now_ms=1_700_000_000_000)

        assert sample is not None
        assert sample.max_profit_pct == 1.7
        assert len(sample.label) == 8
        assert ledger.profit_history == (sample,)

    def test_empty_batch_appends_nothing(self) -> None:
        """Test empty batches leave the series alone."""
        ledger = OpportunityLedger()

        assert ledger.record_batch([]) is None
        assert ledger.profit_history == ()

    def test_point_floored_at_zero(self) -> None:
        """Test the recorded maximum is never negative."""
        ledger = OpportunityLedger()

        sample = ledger.record_batch([-0.2, -1.0], now_ms=1)

        assert sample.max_profit_pct == 0.0
