"""Equity purchase transactions.

A TransactionRecord is one row of the investment ledger: on a given date an
investor bought some number of shares for some amount of cash. Records are
validated when they are built and cannot be changed afterwards.
"""

from datetime import date
from decimal import Decimal
from pydantic import Field

from .base import FrozenDomainModel, ShareCount, MoneyAmount, InvestorId


class TransactionRecord(FrozenDomainModel):
    """A single equity purchase.

    Fields can be populated by name or by their short aliases, so both of
    these build the same record:

        TransactionRecord(investment_date=date(2020, 1, 1), shares_purchased=100,
                          cash_paid=Decimal("1000.00"), investor="Alice")
        TransactionRecord(date=date(2020, 1, 1), shares=100,
                          cash=Decimal("1000.00"), investor="Alice")

    Sign and range checks on cash belong to whoever produces the records;
    zero shares and zero cash are valid.
    """

    investment_date: date = Field(
        alias="date",
        description="Calendar date of the purchase (no time component)"
    )

    shares_purchased: ShareCount = Field(
        alias="shares",
        description="Number of shares bought"
    )

    cash_paid: MoneyAmount = Field(
        default=Decimal("0"),
        alias="cash",
        description="Cash paid for the shares"
    )

    investor: InvestorId = Field(
        description="Identifier of the purchasing investor"
    )
