"""Excel output for cap table reports."""

from .report_sheet_renderer import ReportSheetRenderer

__all__ = ["ReportSheetRenderer"]
