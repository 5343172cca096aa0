"""Ownership aggregates and the finished cap table report.

An OwnershipAggregate collects one investor's shares and cash while the
transaction stream is consumed; its ownership percentage is filled in once,
after the stream is exhausted. A CapTableReport packages the grand totals and
the ordered aggregates for one cutoff date.

Serializing a report in JSON mode (``to_json`` / ``to_output_dict``) produces
the published output layout:

    {
      "date": "03/01/2020",
      "cash_raised": "1500.00",
      "total_number_of_shares": 150,
      "ownership_list": [
        {"investor": "Alice", "shares": 100, "cash_paid": "1000.00", "ownership": "66.67"},
        ...
      ]
    }
"""

from datetime import date
from decimal import Decimal, Context, ROUND_HALF_EVEN
from typing import Any, Dict, Optional, Tuple
from pydantic import Field, PrivateAttr, field_serializer

from .base import (
    DomainModel,
    FrozenDomainModel,
    ShareCount,
    MoneyAmount,
    OwnershipPercent,
    InvestorId,
)
from ..errors import OwnershipAlreadyAssignedError

REPORT_DATE_FORMAT = "%m/%d/%Y"
TWO_PLACES = Decimal("0.01")


# =============================================================================
# Formatting helpers
# =============================================================================

def format_report_date(value: date) -> str:
    """Format a date as MM/DD/YYYY."""
    return value.strftime(REPORT_DATE_FORMAT)


def format_two_decimals(value: Decimal) -> str:
    """Format a decimal with exactly two fractional digits.

    Rounds half to even on the exact decimal value. The working precision
    grows with the magnitude so large totals never lose integer digits.
    """
    context = Context(prec=max(28, value.adjusted() + 4))
    return format(value.quantize(TWO_PLACES, rounding=ROUND_HALF_EVEN, context=context), "f")


# =============================================================================
# Ownership Aggregate
# =============================================================================

class OwnershipAggregate(DomainModel):
    """Accumulated holdings for one investor.

    Lifecycle:
        1. Created with zero shares and cash on the investor's first record
        2. Shares and cash are added for every further qualifying record
        3. ``assign_ownership`` sets the percentage once all records are in
        4. ``seal`` makes the aggregate read-only when it joins a report

    Assigning a different ownership value after it has been set raises
    OwnershipAlreadyAssignedError. Re-assigning the same value is a no-op so
    the percentage pass can be repeated with identical totals.
    """

    investor: InvestorId = Field(
        description="Investor identifier"
    )

    shares: ShareCount = Field(
        default=0,
        description="Total shares bought by this investor"
    )

    cash_paid: MoneyAmount = Field(
        default=Decimal("0"),
        description="Total cash paid by this investor"
    )

    ownership: Optional[OwnershipPercent] = Field(
        default=None,
        description="Share of total shares, 0-100. None until the percentage pass runs"
    )

    _sealed: bool = PrivateAttr(default=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            if self._sealed:
                raise TypeError(
                    f"OwnershipAggregate for '{self.investor}' is part of a finished report "
                    f"and cannot be modified"
                )
            if name == "ownership" and self.ownership is not None and value != self.ownership:
                raise OwnershipAlreadyAssignedError(
                    f"Ownership for '{self.investor}' is already {self.ownership}"
                )
        super().__setattr__(name, value)

    def assign_ownership(self, total_shares: int) -> Decimal:
        """Set ownership as this investor's shares over total shares, times 100.

        Args:
            total_shares: Grand total of shares across all investors (must be > 0)

        Returns:
            The assigned percentage (unrounded)
        """
        self.ownership = Decimal(self.shares) / Decimal(total_shares) * 100
        return self.ownership

    def seal(self) -> "OwnershipAggregate":
        """Make this aggregate read-only. Returns self for chaining."""
        self._sealed = True
        return self

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @field_serializer("cash_paid", when_used="json")
    def _serialize_cash_paid(self, value: Decimal) -> str:
        return format_two_decimals(value)

    @field_serializer("ownership", when_used="json")
    def _serialize_ownership(self, value: Optional[Decimal]) -> Optional[str]:
        if value is None:
            return None
        return format_two_decimals(value)


# =============================================================================
# Cap Table Report
# =============================================================================

class CapTableReport(FrozenDomainModel):
    """Point-in-time cap table.

    Built by the aggregation engine once the percentage pass has succeeded
    and never modified afterwards. Invariants:
        - total_shares equals the sum of shares over ``ownership``
        - total_cash_raised equals the sum of cash_paid over ``ownership``
        - each investor appears at most once
        - ownership percentages sum to 100 (within rounding) when
          total_shares > 0

    Usage:
        report = build_cap_table(records, cutoff=date(2020, 3, 1))
        print(report.to_json())
    """

    cutoff_date: date = Field(
        serialization_alias="date",
        description="Report as-of date; records after it are excluded"
    )

    total_cash_raised: MoneyAmount = Field(
        serialization_alias="cash_raised",
        description="Sum of cash over all qualifying records"
    )

    total_shares: ShareCount = Field(
        serialization_alias="total_number_of_shares",
        description="Sum of shares over all qualifying records"
    )

    ownership: Tuple[OwnershipAggregate, ...] = Field(
        default=(),
        serialization_alias="ownership_list",
        description="Per-investor aggregates in report order"
    )

    @field_serializer("cutoff_date", when_used="json")
    def _serialize_cutoff_date(self, value: date) -> str:
        return format_report_date(value)

    @field_serializer("total_cash_raised", when_used="json")
    def _serialize_cash_raised(self, value: Decimal) -> str:
        return format_two_decimals(value)

    @property
    def investors(self) -> Tuple[str, ...]:
        """Investor identifiers in report order."""
        return tuple(aggregate.investor for aggregate in self.ownership)

    def get(self, investor: str) -> Optional[OwnershipAggregate]:
        """Look up one investor's aggregate (exact match)."""
        return next((a for a in self.ownership if a.investor == investor), None)

    def to_output_dict(self) -> Dict[str, Any]:
        """Return the report in its published JSON-ready layout."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the report in its published layout."""
        return self.model_dump_json(by_alias=True, indent=indent)
