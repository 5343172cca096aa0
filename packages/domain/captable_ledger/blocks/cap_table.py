"""Cap table pipeline blocks.

CapTableReportBlock runs the aggregation engine; OwnershipTableBlock turns the
finished report into DataFrames for analysis or spreadsheet output.

Output DataFrames:
- ownership_table: One row per investor, in report order
- cap_table_summary: High-level metrics (totals, investor count, as-of date)
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..engine import generate_report
from ..schemas import CapTableReport, CapTableReportCFG

OWNERSHIP_COLUMNS = ["investor", "shares", "cash_paid", "ownership_pct"]


class CapTableReportBlock(Block):
    """Builds the CapTableReport from validated transactions.

    Inputs (from context):
        - transactions: Iterable of TransactionRecord
        - report_config: CapTableReportCFG

    Outputs (to context):
        - cap_table_report: CapTableReport
    """

    def __init__(
        self,
        transactions_key: str = "transactions",
        config_key: str = "report_config",
        report_key: str = "cap_table_report",
    ):
        self.transactions_key = transactions_key
        self.config_key = config_key
        self.report_key = report_key

    def inputs(self) -> List[str]:
        return [self.transactions_key, self.config_key]

    def outputs(self) -> List[str]:
        return [self.report_key]

    def execute(self, context: BlockContext) -> None:
        config: CapTableReportCFG = context.get(self.config_key)
        report = generate_report(context.get(self.transactions_key), config)
        context.set(self.report_key, report)


class OwnershipTableBlock(Block):
    """Converts a CapTableReport to DataFrames.

    Inputs (from context):
        - cap_table_report: CapTableReport

    Outputs (to context):
        - ownership_table: DataFrame with columns:
            * investor: Investor identifier
            * shares: Shares held (int)
            * cash_paid: Cash paid (float)
            * ownership_pct: Ownership percentage, 0-100 (float, unrounded)

        - cap_table_summary: DataFrame with single row:
            * as_of_date: Report cutoff date
            * total_shares: Total shares
            * cash_raised: Total cash raised (float)
            * total_investors: Number of investors

    Floats are for analysis only; the report itself keeps exact decimals.
    """

    def __init__(self, report_key: str = "cap_table_report"):
        self.report_key = report_key

    def inputs(self) -> List[str]:
        return [self.report_key]

    def outputs(self) -> List[str]:
        return ["ownership_table", "cap_table_summary"]

    def execute(self, context: BlockContext) -> None:
        report: CapTableReport = context.get(self.report_key)
        context.set("ownership_table", self._compute_ownership(report))
        context.set("cap_table_summary", self._compute_summary(report))

    def _compute_ownership(self, report: CapTableReport) -> pd.DataFrame:
        rows = [
            {
                "investor": aggregate.investor,
                "shares": aggregate.shares,
                "cash_paid": float(aggregate.cash_paid),
                "ownership_pct": float(aggregate.ownership),
            }
            for aggregate in report.ownership
        ]
        if not rows:
            return pd.DataFrame(columns=OWNERSHIP_COLUMNS)
        return pd.DataFrame(rows, columns=OWNERSHIP_COLUMNS)

    def _compute_summary(self, report: CapTableReport) -> pd.DataFrame:
        return pd.DataFrame([{
            "as_of_date": report.cutoff_date,
            "total_shares": report.total_shares,
            "cash_raised": float(report.total_cash_raised),
            "total_investors": len(report.ownership),
        }])
