"""One-shot entry points for building a cap table report.

Each call owns its accumulator for its whole lifetime:

    Created(cutoff) -> Accumulating -> Finalizing -> Complete | Failed

``build_cap_table`` runs everything in the calling thread.
``build_cap_table_partitioned`` splits the stream round-robin across worker
threads, merges the partial accumulators in partition order, then applies
the same final ordering, so its output matches ``build_cap_table``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ..schemas import CapTableReport, CapTableReportCFG, OrderingPolicy, TransactionRecord
from .accumulator import OwnershipAccumulator
from .filtering import is_within_cutoff
from .finalize import assemble_report

logger = logging.getLogger(__name__)


def build_cap_table(
    records: Iterable[TransactionRecord],
    cutoff: date,
    ordering: OrderingPolicy = "investor",
) -> CapTableReport:
    """Build the cap table as of ``cutoff`` from a record stream.

    Args:
        records: Validated transactions, consumed once in order
        cutoff: Report date; records dated after it are ignored
        ordering: "investor" (default) or "first_seen"

    Returns:
        Finished, read-only report

    Raises:
        ZeroSharesError: If no shares qualify
        AccumulationOverflowError: If a total leaves its representable range
    """
    accumulator = OwnershipAccumulator(cutoff).accumulate_all(records)
    return assemble_report(accumulator, ordering)


def _accumulate_partition(
    cutoff: date,
    partition: Sequence[Tuple[int, TransactionRecord]],
) -> OwnershipAccumulator:
    accumulator = OwnershipAccumulator(cutoff)
    for position, record in partition:
        if is_within_cutoff(record, cutoff):
            accumulator.accumulate(record, position=position)
        else:
            accumulator.note_skipped()
    return accumulator


def build_cap_table_partitioned(
    records: Iterable[TransactionRecord],
    cutoff: date,
    partitions: int = 2,
    max_workers: Optional[int] = None,
    ordering: OrderingPolicy = "investor",
) -> CapTableReport:
    """Build the cap table by aggregating partitions of the stream in parallel.

    Args:
        records: Validated transactions
        cutoff: Report date
        partitions: Number of round-robin partitions (>= 1)
        max_workers: Worker threads; defaults to one per partition
        ordering: "investor" (default) or "first_seen"

    Raises:
        ValueError: If partitions < 1
        ZeroSharesError: If no shares qualify
        AccumulationOverflowError: If a total leaves its representable range
    """
    if partitions < 1:
        raise ValueError(f"partitions must be >= 1, got {partitions}")

    indexed = list(enumerate(records))
    buckets: List[List[Tuple[int, TransactionRecord]]] = [
        indexed[i::partitions] for i in range(partitions)
    ]

    with ThreadPoolExecutor(max_workers=max_workers or partitions) as pool:
        partials = list(pool.map(lambda bucket: _accumulate_partition(cutoff, bucket), buckets))

    merged = OwnershipAccumulator(cutoff)
    for partial in partials:
        merged.merge(partial)

    logger.debug(
        "Merged %d partitions: %d records accepted, %d skipped",
        partitions,
        merged.records_accepted,
        merged.records_skipped,
    )
    return assemble_report(merged, ordering)


def generate_report(
    records: Iterable[TransactionRecord],
    config: CapTableReportCFG,
) -> CapTableReport:
    """Build a report as described by a CapTableReportCFG."""
    cutoff = config.resolved_cutoff()
    if config.partitions > 1:
        return build_cap_table_partitioned(
            records,
            cutoff,
            partitions=config.partitions,
            max_workers=config.max_workers,
            ordering=config.ordering,
        )
    return build_cap_table(records, cutoff, ordering=config.ordering)
