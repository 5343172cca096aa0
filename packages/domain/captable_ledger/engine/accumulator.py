"""Per-investor accumulation of share and cash totals.

The OwnershipAccumulator is the aggregation map of the engine: it consumes a
record stream once, in order, keeping grand totals plus one
OwnershipAggregate per investor. Partial accumulators built over disjoint
slices of a stream can be merged because both totals are plain sums.

Numeric policy:
    - Shares are Python ints, bounded by MAX_SHARE_COUNT (unsigned 64-bit)
    - Cash is summed as Decimal in a wide context that traps Inexact, so a
      sum is either exact or raises AccumulationOverflowError
"""

import logging
from datetime import date
from decimal import Context, Decimal, DecimalException, Inexact, InvalidOperation, Overflow
from typing import Dict, Iterable, Optional, Tuple

from ..errors import AccumulationOverflowError
from ..schemas import MAX_SHARE_COUNT, OwnershipAggregate, TransactionRecord
from .filtering import is_within_cutoff

logger = logging.getLogger(__name__)

CASH_CONTEXT = Context(prec=60, traps=[Overflow, InvalidOperation, Inexact])


def add_shares(current: int, shares: int) -> int:
    """Add share counts, raising instead of exceeding the unsigned 64-bit range."""
    total = current + shares
    if total > MAX_SHARE_COUNT:
        raise AccumulationOverflowError(
            f"Share total {current} + {shares} exceeds maximum of {MAX_SHARE_COUNT}"
        )
    return total


def add_cash(current: Decimal, cash: Decimal) -> Decimal:
    """Add cash amounts exactly, raising if the sum cannot be represented."""
    try:
        return CASH_CONTEXT.add(current, cash)
    except DecimalException as exc:
        raise AccumulationOverflowError(
            f"Cash total {current} + {cash} cannot be represented exactly"
        ) from exc


class OwnershipAccumulator:
    """Running totals and per-investor aggregates for one cutoff date.

    ``accumulate`` expects records that already passed the cutoff filter;
    ``accumulate_all`` applies the filter itself.

    Example:
        accumulator = OwnershipAccumulator(date(2020, 3, 1))
        accumulator.accumulate_all(records)
        accumulator.total_shares  # 150
        report = assemble_report(accumulator)
    """

    def __init__(self, cutoff_date: date):
        self.cutoff_date = cutoff_date
        self._total_shares = 0
        self._total_cash = Decimal("0")
        self._aggregates: Dict[str, OwnershipAggregate] = {}
        # Investor -> stream position of their first qualifying record
        self._first_seen: Dict[str, int] = {}
        self._records_accepted = 0
        self._records_skipped = 0

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def total_shares(self) -> int:
        return self._total_shares

    @property
    def total_cash(self) -> Decimal:
        return self._total_cash

    @property
    def aggregates(self) -> Tuple[OwnershipAggregate, ...]:
        """Aggregates in the order their investors were first seen."""
        return tuple(self._aggregates.values())

    @property
    def records_accepted(self) -> int:
        return self._records_accepted

    @property
    def records_skipped(self) -> int:
        return self._records_skipped

    def first_seen(self, investor: str) -> int:
        """Stream position of the investor's first qualifying record."""
        return self._first_seen[investor]

    # ------------------------------------------------------------------ #
    # Accumulation
    # ------------------------------------------------------------------ #

    def accumulate(self, record: TransactionRecord, position: Optional[int] = None) -> None:
        """Add one qualifying record to the grand totals and its investor's aggregate.

        Args:
            record: Record dated on or before the cutoff
            position: Position of the record in the original stream. Defaults to
                the number of records accepted so far.

        Raises:
            AccumulationOverflowError: If a total leaves its representable range.
                Nothing is modified in that case.
        """
        if position is None:
            position = self._records_accepted

        aggregate = self._aggregates.get(record.investor)
        current_shares = aggregate.shares if aggregate else 0
        current_cash = aggregate.cash_paid if aggregate else Decimal("0")

        # Compute everything before mutating so a failure leaves state untouched
        total_shares = add_shares(self._total_shares, record.shares_purchased)
        total_cash = add_cash(self._total_cash, record.cash_paid)
        investor_shares = add_shares(current_shares, record.shares_purchased)
        investor_cash = add_cash(current_cash, record.cash_paid)

        if aggregate is None:
            aggregate = OwnershipAggregate(investor=record.investor)
            self._aggregates[record.investor] = aggregate
            self._first_seen[record.investor] = position

        aggregate.shares = investor_shares
        aggregate.cash_paid = investor_cash
        self._total_shares = total_shares
        self._total_cash = total_cash
        self._records_accepted += 1

    def accumulate_all(self, records: Iterable[TransactionRecord]) -> "OwnershipAccumulator":
        """Filter a record stream by the cutoff and accumulate what qualifies.

        The stream is consumed exactly once, in order.

        Returns:
            self, for chaining
        """
        for record in records:
            if is_within_cutoff(record, self.cutoff_date):
                self.accumulate(record)
            else:
                self._records_skipped += 1

        logger.debug(
            "Accumulated %d records (%d after cutoff %s) for %d investors",
            self._records_accepted,
            self._records_skipped,
            self.cutoff_date.isoformat(),
            len(self._aggregates),
        )
        return self

    def note_skipped(self, count: int = 1) -> None:
        """Count records that were filtered out before reaching this accumulator."""
        self._records_skipped += count

    def merge(self, other: "OwnershipAccumulator") -> "OwnershipAccumulator":
        """Fold another accumulator's totals into this one (union with sum per investor).

        Args:
            other: Accumulator built over a disjoint part of the same stream

        Returns:
            self, for chaining

        Raises:
            ValueError: If the accumulators were built for different cutoff dates
            AccumulationOverflowError: If a merged total leaves its range
        """
        if other.cutoff_date != self.cutoff_date:
            raise ValueError(
                f"Cannot merge accumulators for different cutoffs: "
                f"{self.cutoff_date.isoformat()} and {other.cutoff_date.isoformat()}"
            )

        self._total_shares = add_shares(self._total_shares, other._total_shares)
        self._total_cash = add_cash(self._total_cash, other._total_cash)

        for investor, incoming in other._aggregates.items():
            position = other._first_seen[investor]
            aggregate = self._aggregates.get(investor)
            if aggregate is None:
                self._aggregates[investor] = OwnershipAggregate(
                    investor=investor,
                    shares=incoming.shares,
                    cash_paid=incoming.cash_paid,
                )
                self._first_seen[investor] = position
                continue
            aggregate.shares = add_shares(aggregate.shares, incoming.shares)
            aggregate.cash_paid = add_cash(aggregate.cash_paid, incoming.cash_paid)
            self._first_seen[investor] = min(self._first_seen[investor], position)

        self._records_accepted += other._records_accepted
        self._records_skipped += other._records_skipped
        return self

    def __repr__(self) -> str:
        return (
            f"OwnershipAccumulator(cutoff_date={self.cutoff_date.isoformat()}, "
            f"investors={len(self._aggregates)}, total_shares={self._total_shares})"
        )
