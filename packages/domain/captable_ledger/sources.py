"""CSV transaction source.

Reads the investment ledger file into validated TransactionRecords. The file
layout is:

    #INVESTMENT DATE, SHARES PURCHASED, CASH PAID, INVESTOR
    2020-01-01,100,1000.00,Alice
    2020-02-01,50,500.00,Bob

Header names are matched after stripping whitespace, and whitespace directly
after a delimiter is skipped. Investor values are otherwise kept verbatim.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd
from pydantic import ValidationError

from .errors import TransactionSourceError
from .schemas import TransactionRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS: Dict[str, str] = {
    "#INVESTMENT DATE": "investment_date",
    "SHARES PURCHASED": "shares_purchased",
    "CASH PAID": "cash_paid",
    "INVESTOR": "investor",
}


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def read_transactions(path: Union[str, Path]) -> List[TransactionRecord]:
    """Read and validate every transaction in a CSV file.

    Args:
        path: Path to the CSV file (or a file-like object)

    Returns:
        Records in file order

    Raises:
        TransactionSourceError: If the file cannot be opened or parsed, a
            required column is missing, or a row fails validation (cash
            must be non-negative)
    """
    try:
        frame = pd.read_csv(path, dtype=str, skipinitialspace=True, keep_default_na=False)
    except OSError as exc:
        raise TransactionSourceError(f"Unable to open CSV input file {path}: {exc}") from exc
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise TransactionSourceError(f"Unable to read CSV data from {path}: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    missing = [column for column in CSV_COLUMNS if column not in frame.columns]
    if missing:
        raise TransactionSourceError(
            f"CSV file {path} is missing columns: {', '.join(missing)}"
        )

    rows = frame[list(CSV_COLUMNS)].rename(columns=CSV_COLUMNS).to_dict("records")
    records = []
    for row_number, row in enumerate(rows, start=1):
        try:
            record = TransactionRecord.model_validate(row)
        except ValidationError as exc:
            raise TransactionSourceError(_describe(exc), row_number=row_number) from exc
        if record.cash_paid < 0:
            raise TransactionSourceError(
                f"cash_paid: must be non-negative, got {record.cash_paid}", row_number=row_number
            )
        records.append(record)

    logger.debug("Read %d transactions from %s", len(records), path)
    return records
