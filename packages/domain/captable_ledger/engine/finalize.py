"""Percentage pass and report assembly.

Percentages depend on the grand share total, which is only known after the
whole stream has been accumulated, so this runs as a second pass:

    accumulate (stream) -> assign_ownership_percentages -> order_aggregates
    -> CapTableReport

No rounding happens here; two-decimal formatting is applied only when the
report is serialized.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ..errors import ZeroSharesError
from ..schemas import CapTableReport, OwnershipAggregate, OrderingPolicy
from .accumulator import OwnershipAccumulator

logger = logging.getLogger(__name__)


def assign_ownership_percentages(
    aggregates: Iterable[OwnershipAggregate],
    total_shares: int,
    cutoff_date=None,
) -> List[OwnershipAggregate]:
    """Set each aggregate's ownership to shares / total_shares * 100.

    Running it again with the same totals assigns the same values.

    Args:
        aggregates: Aggregates to update in place
        total_shares: Grand total of shares
        cutoff_date: Only used to make the error message specific

    Returns:
        The aggregates, as a list

    Raises:
        ZeroSharesError: If total_shares is zero
    """
    if total_shares == 0:
        raise ZeroSharesError(cutoff_date)

    aggregates = list(aggregates)
    for aggregate in aggregates:
        aggregate.assign_ownership(total_shares)
    return aggregates


def order_aggregates(
    aggregates: Sequence[OwnershipAggregate],
    ordering: OrderingPolicy = "investor",
    accumulator: Optional[OwnershipAccumulator] = None,
) -> List[OwnershipAggregate]:
    """Order aggregates for the report.

    Args:
        aggregates: Aggregates to order
        ordering: "investor" sorts by identifier (code point order);
            "first_seen" sorts by first appearance in the record stream
        accumulator: Source of first-seen positions. Without it, "first_seen"
            keeps the given order.

    Returns:
        New list in report order
    """
    if ordering == "investor":
        return sorted(aggregates, key=lambda a: a.investor)
    if ordering == "first_seen":
        if accumulator is None:
            return list(aggregates)
        return sorted(aggregates, key=lambda a: accumulator.first_seen(a.investor))
    raise ValueError(f"Unknown ordering policy: {ordering!r}")


def assemble_report(
    accumulator: OwnershipAccumulator,
    ordering: OrderingPolicy = "investor",
) -> CapTableReport:
    """Run the percentage pass and package the finished report.

    The accumulator is left unchanged: percentages are assigned on copies of
    its aggregates, so assembling twice yields identical reports.

    Raises:
        ZeroSharesError: If no shares qualified for the report
    """
    aggregates = [aggregate.model_copy() for aggregate in accumulator.aggregates]
    try:
        assign_ownership_percentages(aggregates, accumulator.total_shares, accumulator.cutoff_date)
    except ZeroSharesError:
        logger.debug(
            "No shares as of %s (%d records accepted)",
            accumulator.cutoff_date.isoformat(),
            accumulator.records_accepted,
        )
        raise

    ordered = order_aggregates(aggregates, ordering, accumulator)
    report = CapTableReport(
        cutoff_date=accumulator.cutoff_date,
        total_cash_raised=accumulator.total_cash,
        total_shares=accumulator.total_shares,
        ownership=tuple(aggregate.seal() for aggregate in ordered),
    )
    logger.debug(
        "Assembled cap table as of %s: %d investors, %d shares",
        report.cutoff_date.isoformat(),
        len(report.ownership),
        report.total_shares,
    )
    return report
