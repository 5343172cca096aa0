"""Cap table ledger schemas.

This package contains all Pydantic models for the ledger domain layer:
- Base types and conventions
- Transactions (validated purchase records)
- Ownership aggregates and the finished report
- Run and workbook configuration

Usage:
    from captable_ledger.schemas import (
        TransactionRecord, OwnershipAggregate, CapTableReport,
        CapTableReportCFG, WorkbookCFG
    )
"""

# Base types
from .base import (
    DomainModel,
    FrozenDomainModel,
    ShareCount,
    MoneyAmount,
    OwnershipPercent,
    InvestorId,
    MAX_SHARE_COUNT,
)

# Transactions
from .transactions import TransactionRecord

# Report
from .report import (
    OwnershipAggregate,
    CapTableReport,
    format_report_date,
    format_two_decimals,
)

# Configuration
from .config import (
    CapTableReportCFG,
    WorkbookCFG,
    OrderingPolicy,
)

__all__ = [
    # Base types
    "DomainModel",
    "FrozenDomainModel",
    "ShareCount",
    "MoneyAmount",
    "OwnershipPercent",
    "InvestorId",
    "MAX_SHARE_COUNT",
    # Transactions
    "TransactionRecord",
    # Report
    "OwnershipAggregate",
    "CapTableReport",
    "format_report_date",
    "format_two_decimals",
    # Configuration
    "CapTableReportCFG",
    "WorkbookCFG",
    "OrderingPolicy",
]
