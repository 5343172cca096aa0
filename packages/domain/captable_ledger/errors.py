"""Exception hierarchy for cap table generation.

Every failure the package raises derives from CapTableError so callers can
catch one type at the program boundary.
"""


class CapTableError(Exception):
    """Base exception for all cap table failures."""


class ZeroSharesError(CapTableError):
    """Raised when no shares qualify for the report, so percentages are undefined."""

    def __init__(self, cutoff_date=None):
        self.cutoff_date = cutoff_date
        message = "Total shares is zero"
        if cutoff_date is not None:
            message += f" as of {cutoff_date.isoformat()}"
        super().__init__(message)


class AccumulationOverflowError(CapTableError):
    """Raised when a running total would leave its representable range."""


class OwnershipAlreadyAssignedError(CapTableError):
    """Raised when an aggregate's ownership percentage is reassigned to a new value."""


class TransactionSourceError(CapTableError):
    """Raised when the transaction file cannot be read or a row is invalid."""

    def __init__(self, message: str, row_number=None):
        self.row_number = row_number
        if row_number is not None:
            message = f"Row {row_number}: {message}"
        super().__init__(message)


class InvalidReportDateError(CapTableError):
    """Raised when a supplied report date is not in YYYY-MM-DD form."""


class CircularDependencyError(CapTableError):
    """Raised when pipeline blocks have circular dependencies."""


class ReportOutputError(CapTableError):
    """Raised when the finished report cannot be written to its destination."""
