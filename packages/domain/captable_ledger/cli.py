"""Command-line entry point.

Reads a transaction CSV, builds the cap table as of the report date and
writes it as JSON (stdout unless --output is given).

    captable -f investments.csv -d 2020-03-01
    captable -f investments.csv -o cap_table.json --xlsx cap_table.xlsx
"""

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence

from captable_excel.report_sheet_renderer import ReportSheetRenderer

from . import __version__
from .blocks import BlockContext, BlockExecutor, CapTableReportBlock
from .errors import CapTableError, InvalidReportDateError, ReportOutputError
from .logger import setup_logger
from .schemas import CapTableReport, CapTableReportCFG, WorkbookCFG
from .sources import read_transactions

REPORT_DATE_INPUT_FORMAT = "%Y-%m-%d"


def parse_report_date(value: str) -> date:
    """Parse a YYYY-MM-DD report date.

    Raises:
        InvalidReportDateError: If the value is not a valid date in that form
    """
    try:
        return datetime.strptime(value, REPORT_DATE_INPUT_FORMAT).date()
    except ValueError as exc:
        raise InvalidReportDateError(
            f"Invalid report date supplied: {value!r} (expected YYYY-MM-DD)"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="captable",
        description="Creates a JSON cap table from a CSV input file",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-f", "--csv-file",
        required=True,
        help="CSV input file that contains the investment transactions",
    )
    parser.add_argument(
        "-d", "--report-date",
        help="Date to calculate the report to (YYYY-MM-DD, default: today)",
    )
    parser.add_argument("-o", "--output", help="Write the JSON report to this file instead of stdout")
    parser.add_argument("--xlsx", help="Also render the report as an Excel workbook at this path")
    parser.add_argument(
        "--ordering",
        choices=["investor", "first_seen"],
        default="investor",
        help="Order of the ownership list (default: investor)",
    )
    parser.add_argument(
        "--partitions",
        type=int,
        default=1,
        help="Aggregate the input in this many parallel partitions (default: 1)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log messages to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Returns:
        Process exit code: 0 on success, 1 on a cap table error
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logger("captable_ledger", log_file=args.log_file, level=getattr(logging, args.log_level))

    if args.partitions < 1:
        parser.error("--partitions must be at least 1")

    try:
        report_date = parse_report_date(args.report_date) if args.report_date else None
        config = CapTableReportCFG(
            cutoff_date=report_date,
            ordering=args.ordering,
            partitions=args.partitions,
        )
        logger.info("Reading transactions from %s", args.csv_file)
        report = _run_report(args.csv_file, config)
        # Workbook first so a bad path fails before any JSON is emitted
        if args.xlsx:
            _write_workbook(report, args.xlsx)
        _write_json(report, args.output)
    except CapTableError as exc:
        logger.error("%s", exc)
        return 1
    return 0


def _run_report(csv_file: str, config: CapTableReportCFG) -> CapTableReport:
    context = BlockContext()
    context.set("transactions", read_transactions(csv_file))
    context.set("report_config", config)
    BlockExecutor([CapTableReportBlock()]).execute(context)
    return context.get("cap_table_report")


def _write_workbook(report: CapTableReport, path: str) -> None:
    try:
        ReportSheetRenderer(WorkbookCFG()).render(report, path)
    except OSError as exc:
        raise ReportOutputError(f"Unable to write workbook {path}: {exc}") from exc
    logging.getLogger("captable_ledger").info("Wrote workbook to %s", path)


def _write_json(report: CapTableReport, output: Optional[str]) -> None:
    payload = report.to_json(indent=2)
    if output is None:
        print(payload)
        return
    try:
        Path(output).write_text(payload + "\n", encoding="utf-8")
    except OSError as exc:
        raise ReportOutputError(f"Unable to write report {output}: {exc}") from exc
    logging.getLogger("captable_ledger").info("Wrote report to %s", output)
