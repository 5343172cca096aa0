"""Run configuration for report generation and workbook rendering.

CapTableReportCFG drives the aggregation engine; WorkbookCFG is what gets
passed to the Excel renderer.
"""

from typing import Optional, Literal
from datetime import date
from pydantic import Field

from .base import DomainModel


# Type alias for report ordering policies
OrderingPolicy = Literal["investor", "first_seen"]


class CapTableReportCFG(DomainModel):
    """Configuration for one cap table report.

    Ordering policies:
    - **investor**: ascending lexicographic order of the investor identifier
    - **first_seen**: order in which investors first appear in the record stream

    Examples:
        # Report as of today, ordered by investor
        CapTableReportCFG()

        # Historical report, stream order, split over four partitions
        CapTableReportCFG(
            cutoff_date=date(2020, 3, 1),
            ordering="first_seen",
            partitions=4,
        )
    """

    cutoff_date: Optional[date] = Field(
        default=None,
        description="Report as-of date (inclusive). None = today's date when the report is built"
    )

    ordering: OrderingPolicy = Field(
        default="investor",
        description="How investors are ordered in the ownership list"
    )

    partitions: int = Field(
        default=1,
        ge=1,
        description="Number of partitions to aggregate independently before merging"
    )

    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker threads for partitioned aggregation. None = one per partition"
    )

    def resolved_cutoff(self) -> date:
        """Return the concrete cutoff date, defaulting to today."""
        return self.cutoff_date if self.cutoff_date is not None else date.today()


class WorkbookCFG(DomainModel):
    """Configuration for the cap table workbook.

    Examples:
        WorkbookCFG(title="Acme Inc. Cap Table")
        WorkbookCFG(sheet_name="As of 2020-03-01", include_summary=False)
    """

    sheet_name: str = Field(
        default="Cap Table",
        min_length=1,
        max_length=31,  # Excel limit
        description="Worksheet title"
    )

    title: Optional[str] = Field(
        default=None,
        description="Heading printed above the table. None = 'Cap Table'"
    )

    include_summary: bool = Field(
        default=True,
        description="Render the summary block (investor count, cash raised, total shares)"
    )
