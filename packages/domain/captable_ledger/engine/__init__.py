"""Aggregation engine: cutoff filter, accumulator, percentage pass, assembly.

Usage:
    from captable_ledger.engine import build_cap_table

    report = build_cap_table(records, cutoff=date(2020, 3, 1))
"""

from .filtering import is_within_cutoff, filter_by_cutoff
from .accumulator import OwnershipAccumulator, add_shares, add_cash
from .finalize import assign_ownership_percentages, order_aggregates, assemble_report
from .pipeline import build_cap_table, build_cap_table_partitioned, generate_report

__all__ = [
    "is_within_cutoff",
    "filter_by_cutoff",
    "OwnershipAccumulator",
    "add_shares",
    "add_cash",
    "assign_ownership_percentages",
    "order_aggregates",
    "assemble_report",
    "build_cap_table",
    "build_cap_table_partitioned",
    "generate_report",
]
