"""Pipeline blocks for cap table jobs.

Architecture:
    Transactions → CapTableReportBlock → CapTableReport → OwnershipTableBlock → DataFrames

Usage:
    from captable_ledger.blocks import (
        BlockContext, BlockExecutor, CapTableReportBlock, OwnershipTableBlock
    )

    context = BlockContext()
    context.set("transactions", records)
    context.set("report_config", CapTableReportCFG(cutoff_date=date(2020, 3, 1)))
    BlockExecutor([CapTableReportBlock(), OwnershipTableBlock()]).execute(context)

    ownership_df = context.get("ownership_table")
"""

from .base import Block, BlockExecutor, BlockContext, topological_sort
from .cap_table import CapTableReportBlock, OwnershipTableBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "topological_sort",
    "CapTableReportBlock",
    "OwnershipTableBlock",
]
