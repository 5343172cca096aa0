"""Cap Table Ledger - point-in-time cap tables from equity purchase records.

This package turns a stream of validated purchase transactions into a cap
table report as of a cutoff date:
- Per-investor share and cash totals
- Ownership percentages derived from the grand share total
- Deterministic ordering and a fixed JSON output layout

The engine is pure Python over Pydantic models; reading CSV input, the CLI
and workbook output sit around it and are optional for library use.
"""

from .schemas import *  # noqa: F403, F401
from .errors import (  # noqa: F401
    CapTableError,
    ZeroSharesError,
    AccumulationOverflowError,
    OwnershipAlreadyAssignedError,
    TransactionSourceError,
    InvalidReportDateError,
    CircularDependencyError,
    ReportOutputError,
)
from .engine import build_cap_table, build_cap_table_partitioned, generate_report  # noqa: F401

__version__ = "0.1.0"
