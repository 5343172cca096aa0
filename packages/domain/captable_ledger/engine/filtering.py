"""Cutoff-date filtering for transaction streams."""

from datetime import date
from typing import Iterable, Iterator

from ..schemas import TransactionRecord


def is_within_cutoff(record: TransactionRecord, cutoff: date) -> bool:
    """Return True if the record is dated on or before the cutoff (inclusive)."""
    return record.investment_date <= cutoff


def filter_by_cutoff(records: Iterable[TransactionRecord], cutoff: date) -> Iterator[TransactionRecord]:
    """Lazily yield the records dated on or before the cutoff, in input order."""
    return (record for record in records if is_within_cutoff(record, cutoff))
