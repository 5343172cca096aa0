"""Single-sheet workbook renderer for a finished cap table report."""

from __future__ import annotations

from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side, Alignment, PatternFill
from openpyxl.utils import get_column_letter

from captable_ledger.schemas import CapTableReport, WorkbookCFG, format_report_date

HEADERS = ["Investor", "Shares", "Cash Paid", "Ownership %"]
CASH_FORMAT = "#,##0.00"
SHARES_FORMAT = "#,##0"
PERCENT_FORMAT = "0.00"


class ReportSheetRenderer:
    """Render one sheet: title block, ownership table with totals, summary block."""

    # Table starts below the title block
    TITLE_ROW = 1
    AS_OF_ROW = 2
    HEADER_ROW = 4

    def __init__(self, config: Optional[WorkbookCFG] = None):
        self.config = config or WorkbookCFG()

        self.title_font = Font(bold=True, size=14)
        self.bold_font = Font(bold=True)
        self.italic_font = Font(italic=True)

        # Header styling
        self.header_font = Font(bold=True, color="FFFFFF")  # White text on dark blue
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

        # Section header styling
        self.section_header_font = Font(italic=True, bold=True)
        self.section_header_fill = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.top_border = Border(top=Side(style='medium'))

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right')

    def render(self, report: CapTableReport, output_path: str) -> str:
        wb = self.build_workbook(report)
        wb.save(output_path)
        return output_path

    def build_workbook(self, report: CapTableReport) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = self.config.sheet_name

        self._render_title(ws, report)
        totals_row = self._render_ownership_table(ws, report)
        if self.config.include_summary:
            self._render_summary(ws, report, totals_row + 2)

        ws.column_dimensions["A"].width = 30
        for col in range(2, len(HEADERS) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 16
        ws.freeze_panes = ws.cell(row=self.HEADER_ROW + 1, column=1)
        return wb

    # ------------------------------------------------------------------ #
    # Sections
    # ------------------------------------------------------------------ #

    def _render_title(self, ws, report: CapTableReport) -> None:
        title_cell = ws.cell(row=self.TITLE_ROW, column=1, value=self.config.title or "Cap Table")
        title_cell.font = self.title_font

        as_of_cell = ws.cell(
            row=self.AS_OF_ROW,
            column=1,
            value=f"As of {format_report_date(report.cutoff_date)}",
        )
        as_of_cell.font = self.italic_font

    def _render_ownership_table(self, ws, report: CapTableReport) -> int:
        """Write header, one row per investor and a SUM totals row.

        Returns:
            Row number of the totals row
        """
        for col, header in enumerate(HEADERS, start=1):
            cell = ws.cell(row=self.HEADER_ROW, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.thin_border

        row = self.HEADER_ROW + 1
        for aggregate in report.ownership:
            ws.cell(row=row, column=1, value=aggregate.investor).border = self.thin_border
            self._number_cell(ws, row, 2, aggregate.shares, SHARES_FORMAT)
            self._number_cell(ws, row, 3, float(aggregate.cash_paid), CASH_FORMAT)
            self._number_cell(ws, row, 4, float(aggregate.ownership), PERCENT_FORMAT)
            row += 1

        first_data_row = self.HEADER_ROW + 1
        last_data_row = row - 1
        totals_row = row

        label = ws.cell(row=totals_row, column=1, value="Total")
        label.font = self.bold_font
        label.border = self.top_border
        for col, number_format in ((2, SHARES_FORMAT), (3, CASH_FORMAT), (4, PERCENT_FORMAT)):
            letter = get_column_letter(col)
            cell = ws.cell(
                row=totals_row,
                column=col,
                value=f"=SUM({letter}{first_data_row}:{letter}{last_data_row})",
            )
            cell.font = self.bold_font
            cell.number_format = number_format
            cell.border = self.top_border
            cell.alignment = self.right_align

        return totals_row

    def _render_summary(self, ws, report: CapTableReport, start_row: int) -> None:
        header = ws.cell(row=start_row, column=1, value="Summary")
        header.font = self.section_header_font
        header.fill = self.section_header_fill
        ws.cell(row=start_row, column=2).fill = self.section_header_fill

        rows = [
            ("Investors", len(report.ownership), SHARES_FORMAT),
            ("Total Shares", report.total_shares, SHARES_FORMAT),
            ("Cash Raised", float(report.total_cash_raised), CASH_FORMAT),
        ]
        for offset, (label, value, number_format) in enumerate(rows, start=1):
            ws.cell(row=start_row + offset, column=1, value=label)
            cell = ws.cell(row=start_row + offset, column=2, value=value)
            cell.number_format = number_format
            cell.alignment = self.right_align

    def _number_cell(self, ws, row: int, col: int, value, number_format: str):
        cell = ws.cell(row=row, column=col, value=value)
        cell.number_format = number_format
        cell.alignment = self.right_align
        cell.border = self.thin_border
        return cell
