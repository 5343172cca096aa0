"""Base classes and type system for cap table ledger models.

This module provides the foundational types and base classes used by the
transaction, aggregate, report and configuration schemas.
"""

from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Models
# =============================================================================

class DomainModel(BaseModel):
    """Base class for mutable domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Support for Decimal and date types
    - Population by field name as well as by alias
    """

    model_config = ConfigDict(
        frozen=False,  # Allow mutation while accumulating
        validate_assignment=True,  # Validate on field assignment
        use_enum_values=True,  # Use enum values in JSON
        arbitrary_types_allowed=True,  # Allow Decimal, date, etc.
        populate_by_name=True,
    )


class FrozenDomainModel(DomainModel):
    """Immutable domain model (transactions and finished reports)."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

# Share totals are bounded by the unsigned 64-bit range
MAX_SHARE_COUNT = 2**64 - 1

ShareCount = Annotated[
    int,
    Field(ge=0, description="Number of shares (non-negative integer)")
]

MoneyAmount = Annotated[
    Decimal,
    Field(description="Cash amount, kept as an exact decimal")
]

OwnershipPercent = Annotated[
    Decimal,
    Field(ge=0, le=100, description="Ownership percentage on a 0-100 scale")
]


# =============================================================================
# ID Conventions
# =============================================================================

InvestorId = Annotated[
    str,
    Field(
        description=(
            "Investor identifier. Matched exactly and case-sensitively; "
            "no trimming or normalization is applied."
        )
    )
]
