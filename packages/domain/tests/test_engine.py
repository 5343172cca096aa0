"""Tests for the aggregation engine.

Tests cover:
- Inclusive cutoff filtering
- Accumulation, merging and overflow handling
- Percentage pass (zero shares, idempotency, normalization)
- Report ordering and determinism
- Partitioned execution matching sequential execution
"""

import pytest
from decimal import Decimal
from datetime import date

from captable_ledger.engine import (
    OwnershipAccumulator,
    assemble_report,
    assign_ownership_percentages,
    build_cap_table,
    build_cap_table_partitioned,
    filter_by_cutoff,
    generate_report,
    is_within_cutoff,
    order_aggregates,
)
from captable_ledger.errors import (
    AccumulationOverflowError,
    OwnershipAlreadyAssignedError,
    ZeroSharesError,
)
from captable_ledger.schemas import (
    MAX_SHARE_COUNT,
    CapTableReportCFG,
    OwnershipAggregate,
    TransactionRecord,
)


def txn(day: date, shares: int, cash: str, investor: str) -> TransactionRecord:
    return TransactionRecord(date=day, shares=shares, cash=Decimal(cash), investor=investor)


CUTOFF = date(2020, 3, 1)


@pytest.fixture
def scenario_records():
    """Alice and Bob before the cutoff, Carl after it."""
    return [
        txn(date(2020, 1, 1), 100, "1000.00", "Alice"),
        txn(date(2020, 2, 1), 50, "500.00", "Bob"),
        txn(date(2020, 6, 1), 9999, "1.00", "Carl"),
    ]


@pytest.fixture
def mixed_records():
    """Several investors, repeat purchases and out-of-order identifiers."""
    return [
        txn(date(2019, 5, 1), 300, "150.25", "Carl"),
        txn(date(2019, 6, 1), 120, "60.10", "alice"),
        txn(date(2019, 7, 1), 80, "40.05", "Bob"),
        txn(date(2019, 8, 1), 10, "5.00", "Carl"),
        txn(date(2020, 1, 1), 0, "0.00", "Dana"),
        txn(date(2020, 2, 29), 45, "22.50", "Alice"),
        txn(date(2020, 3, 1), 5, "2.51", "Bob"),
        txn(date(2020, 3, 2), 1000, "999.99", "Eve"),
    ]


# =============================================================================
# Date Filter
# =============================================================================

class TestDateFilter:
    """Test cutoff predicate."""

    def test_before_cutoff_included(self):
        assert is_within_cutoff(txn(date(2020, 2, 29), 1, "1", "A"), CUTOFF)

    def test_on_cutoff_included(self):
        assert is_within_cutoff(txn(CUTOFF, 1, "1", "A"), CUTOFF)

    def test_after_cutoff_excluded(self):
        assert not is_within_cutoff(txn(date(2020, 3, 2), 1, "1", "A"), CUTOFF)

    def test_filter_keeps_order(self, mixed_records):
        kept = list(filter_by_cutoff(mixed_records, CUTOFF))
        assert kept == mixed_records[:-1]


# =============================================================================
# Accumulation
# =============================================================================

class TestAccumulator:
    """Test grand totals and per-investor subtotals."""

    def test_accumulate_totals(self, scenario_records):
        accumulator = OwnershipAccumulator(CUTOFF).accumulate_all(scenario_records)
        assert accumulator.total_shares == 150
        assert accumulator.total_cash == Decimal("1500.00")
        assert [a.investor for a in accumulator.aggregates] == ["Alice", "Bob"]
        assert accumulator.records_accepted == 2
        assert accumulator.records_skipped == 1

    def test_same_investor_merges(self):
        records = [
            txn(date(2020, 1, 1), 100, "1000.00", "Alice"),
            txn(date(2020, 2, 1), 25, "300.50", "Alice"),
        ]
        accumulator = OwnershipAccumulator(CUTOFF).accumulate_all(records)
        assert len(accumulator.aggregates) == 1
        alice = accumulator.aggregates[0]
        assert alice.shares == 125
        assert alice.cash_paid == Decimal("1300.50")

    def test_investor_match_is_case_sensitive(self):
        records = [
            txn(date(2020, 1, 1), 10, "1", "Alice"),
            txn(date(2020, 1, 2), 10, "1", "alice"),
            txn(date(2020, 1, 3), 10, "1", "Alice "),
        ]
        accumulator = OwnershipAccumulator(CUTOFF).accumulate_all(records)
        assert [a.investor for a in accumulator.aggregates] == ["Alice", "alice", "Alice "]

    def test_zero_value_records(self):
        accumulator = OwnershipAccumulator(CUTOFF)
        accumulator.accumulate(txn(date(2020, 1, 1), 0, "0", "Alice"))
        assert accumulator.total_shares == 0
        assert accumulator.aggregates[0].shares == 0

    def test_share_overflow_raises(self):
        accumulator = OwnershipAccumulator(CUTOFF)
        accumulator.accumulate(txn(date(2020, 1, 1), MAX_SHARE_COUNT, "1", "Alice"))
        with pytest.raises(AccumulationOverflowError):
            accumulator.accumulate(txn(date(2020, 1, 2), 1, "1", "Bob"))
        # Failed record left no trace
        assert accumulator.total_shares == MAX_SHARE_COUNT
        assert [a.investor for a in accumulator.aggregates] == ["Alice"]

    def test_single_investor_overflow_raises(self):
        accumulator = OwnershipAccumulator(CUTOFF)
        accumulator.accumulate(txn(date(2020, 1, 1), MAX_SHARE_COUNT, "1", "Alice"))
        with pytest.raises(AccumulationOverflowError):
            accumulator.accumulate(txn(date(2020, 1, 2), 1, "1", "Alice"))
        alice = accumulator.aggregates[0]
        assert alice.shares == MAX_SHARE_COUNT
        assert alice.cash_paid == Decimal("1")

    def test_aggregate_has_no_unchecked_adder(self):
        assert not hasattr(OwnershipAggregate, "add")

    def test_share_total_at_limit_is_allowed(self):
        accumulator = OwnershipAccumulator(CUTOFF)
        accumulator.accumulate(txn(date(2020, 1, 1), MAX_SHARE_COUNT - 1, "1", "Alice"))
        accumulator.accumulate(txn(date(2020, 1, 2), 1, "1", "Alice"))
        assert accumulator.total_shares == MAX_SHARE_COUNT

    def test_inexact_cash_raises(self):
        accumulator = OwnershipAccumulator(CUTOFF)
        accumulator.accumulate(txn(date(2020, 1, 1), 1, "1" + "0" * 60, "Alice"))
        with pytest.raises(AccumulationOverflowError):
            accumulator.accumulate(txn(date(2020, 1, 2), 1, "0.01", "Alice"))

    def test_cash_sums_exactly(self):
        records = [txn(date(2020, 1, 1), 1, "0.10", "Alice") for _ in range(10)]
        accumulator = OwnershipAccumulator(CUTOFF).accumulate_all(records)
        assert accumulator.total_cash == Decimal("1.00")

    def test_merge_unions_with_sum(self):
        left = OwnershipAccumulator(CUTOFF)
        left.accumulate(txn(date(2020, 1, 1), 10, "1.00", "Alice"), position=0)
        left.accumulate(txn(date(2020, 1, 3), 5, "0.50", "Bob"), position=2)
        right = OwnershipAccumulator(CUTOFF)
        right.accumulate(txn(date(2020, 1, 2), 7, "0.70", "Bob"), position=1)
        right.accumulate(txn(date(2020, 1, 4), 3, "0.30", "Carl"), position=3)

        left.merge(right)

        assert left.total_shares == 25
        assert left.total_cash == Decimal("2.50")
        totals = {a.investor: (a.shares, a.cash_paid) for a in left.aggregates}
        assert totals == {
            "Alice": (10, Decimal("1.00")),
            "Bob": (12, Decimal("1.20")),
            "Carl": (3, Decimal("0.30")),
        }
        assert left.first_seen("Bob") == 1

    def test_merge_rejects_different_cutoffs(self):
        with pytest.raises(ValueError, match="different cutoffs"):
            OwnershipAccumulator(CUTOFF).merge(OwnershipAccumulator(date(2021, 1, 1)))


# =============================================================================
# Percentage Pass
# =============================================================================

class TestPercentages:
    """Test ownership percentage derivation."""

    def test_zero_total_raises(self):
        aggregates = [OwnershipAggregate(investor="Alice")]
        with pytest.raises(ZeroSharesError, match="Total shares is zero"):
            assign_ownership_percentages(aggregates, 0)
        assert aggregates[0].ownership is None

    def test_percentages_unrounded(self):
        aggregates = [
            OwnershipAggregate(investor="A", shares=1),
            OwnershipAggregate(investor="B", shares=2),
        ]
        assign_ownership_percentages(aggregates, 3)
        assert aggregates[0].ownership == Decimal(1) / Decimal(3) * 100
        assert aggregates[1].ownership == Decimal(2) / Decimal(3) * 100

    def test_pass_is_idempotent(self):
        aggregates = [OwnershipAggregate(investor="A", shares=1), OwnershipAggregate(investor="B", shares=6)]
        first = [a.ownership for a in assign_ownership_percentages(aggregates, 7)]
        second = [a.ownership for a in assign_ownership_percentages(aggregates, 7)]
        assert first == second

    def test_pass_with_changed_total_raises(self):
        aggregates = [OwnershipAggregate(investor="A", shares=1)]
        assign_ownership_percentages(aggregates, 4)
        with pytest.raises(OwnershipAlreadyAssignedError):
            assign_ownership_percentages(aggregates, 5)


# =============================================================================
# Ordering
# =============================================================================

class TestOrdering:
    """Test deterministic ordering policies."""

    def test_investor_order_is_code_point_order(self):
        aggregates = [OwnershipAggregate(investor=name) for name in ["bob", "Carl", "alice", "Bob"]]
        ordered = order_aggregates(aggregates, "investor")
        assert [a.investor for a in ordered] == ["Bob", "Carl", "alice", "bob"]

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="Unknown ordering"):
            order_aggregates([], "by_size")

    def test_first_seen_order(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF, ordering="first_seen")
        assert report.investors == ("Carl", "alice", "Bob", "Dana", "Alice")

    def test_investor_order(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF)
        assert report.investors == ("Alice", "Bob", "Carl", "Dana", "alice")


# =============================================================================
# End-to-end
# =============================================================================

class TestBuildCapTable:
    """Test complete report generation."""

    def test_scenario(self, scenario_records):
        report = build_cap_table(scenario_records, CUTOFF)
        assert report.total_shares == 150
        assert report.total_cash_raised == Decimal("1500.00")
        assert report.to_output_dict() == {
            "date": "03/01/2020",
            "cash_raised": "1500.00",
            "total_number_of_shares": 150,
            "ownership_list": [
                {"investor": "Alice", "shares": 100, "cash_paid": "1000.00", "ownership": "66.67"},
                {"investor": "Bob", "shares": 50, "cash_paid": "500.00", "ownership": "33.33"},
            ],
        }

    def test_only_record_after_cutoff_excludes_investor(self, scenario_records):
        report = build_cap_table(scenario_records, CUTOFF)
        assert report.get("Carl") is None

    def test_sum_invariants(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF)
        assert report.total_shares == sum(a.shares for a in report.ownership)
        assert report.total_cash_raised == sum((a.cash_paid for a in report.ownership), Decimal("0"))
        assert report.total_shares == 560
        assert report.total_cash_raised == Decimal("280.41")

    def test_percentages_sum_to_hundred(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF)
        total = sum((a.ownership for a in report.ownership), Decimal("0"))
        assert abs(total - Decimal("100")) / Decimal("100") <= Decimal("1e-6")

    def test_percentages_sum_with_thirds(self):
        records = [txn(date(2020, 1, 1), 1, "1", name) for name in ["A", "B", "C"]]
        report = build_cap_table(records, CUTOFF)
        total = sum((a.ownership for a in report.ownership), Decimal("0"))
        assert abs(total - Decimal("100")) / Decimal("100") <= Decimal("1e-6")
        assert [row["ownership"] for row in report.to_output_dict()["ownership_list"]] == ["33.33"] * 3

    def test_investors_unique(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF)
        assert len(report.investors) == len(set(report.investors))

    def test_zero_share_investor_listed_at_zero_percent(self, mixed_records):
        report = build_cap_table(mixed_records, CUTOFF)
        dana = report.get("Dana")
        assert dana.shares == 0
        assert dana.ownership == Decimal("0")

    def test_deterministic_output(self, mixed_records):
        first = build_cap_table(mixed_records, CUTOFF).to_json()
        second = build_cap_table(list(mixed_records), CUTOFF).to_json()
        assert first == second

    def test_all_records_after_cutoff_raises(self, scenario_records):
        with pytest.raises(ZeroSharesError):
            build_cap_table(scenario_records, date(2019, 12, 31))

    def test_all_zero_shares_raises(self):
        records = [txn(date(2020, 1, 1), 0, "100.00", "Alice"), txn(date(2020, 1, 2), 0, "5.00", "Bob")]
        with pytest.raises(ZeroSharesError):
            build_cap_table(records, CUTOFF)

    def test_empty_input_raises(self):
        with pytest.raises(ZeroSharesError):
            build_cap_table([], CUTOFF)

    def test_consumes_generator_once(self, scenario_records):
        report = build_cap_table((record for record in scenario_records), CUTOFF)
        assert report.total_shares == 150

    def test_assembling_twice_is_identical(self, mixed_records):
        accumulator = OwnershipAccumulator(CUTOFF).accumulate_all(mixed_records)
        first = assemble_report(accumulator)
        second = assemble_report(accumulator)
        assert first.to_json() == second.to_json()
        # Accumulator aggregates stay unassigned
        assert all(a.ownership is None for a in accumulator.aggregates)

    def test_report_aggregates_are_sealed(self, scenario_records):
        report = build_cap_table(scenario_records, CUTOFF)
        with pytest.raises(TypeError):
            report.ownership[0].shares = 1


# =============================================================================
# Partitioned Execution
# =============================================================================

class TestPartitioned:
    """Test that partitioning never changes the result."""

    @pytest.mark.parametrize("partitions", [1, 2, 3, 8, 20])
    @pytest.mark.parametrize("ordering", ["investor", "first_seen"])
    def test_matches_sequential(self, mixed_records, partitions, ordering):
        sequential = build_cap_table(mixed_records, CUTOFF, ordering=ordering)
        partitioned = build_cap_table_partitioned(
            mixed_records, CUTOFF, partitions=partitions, ordering=ordering
        )
        assert partitioned.to_json() == sequential.to_json()

    def test_limited_workers(self, mixed_records):
        report = build_cap_table_partitioned(mixed_records, CUTOFF, partitions=4, max_workers=1)
        assert report.total_shares == 560

    def test_zero_shares_raises(self, scenario_records):
        with pytest.raises(ZeroSharesError):
            build_cap_table_partitioned(scenario_records, date(2000, 1, 1), partitions=2)

    def test_invalid_partition_count(self, scenario_records):
        with pytest.raises(ValueError, match="partitions"):
            build_cap_table_partitioned(scenario_records, CUTOFF, partitions=0)

    def test_generate_report_from_config(self, mixed_records):
        config = CapTableReportCFG(cutoff_date=CUTOFF, ordering="first_seen", partitions=3)
        report = generate_report(mixed_records, config)
        assert report.to_json() == build_cap_table(mixed_records, CUTOFF, ordering="first_seen").to_json()
