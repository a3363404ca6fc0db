"""
Report package: CSV, JSON and PDF renderings of a health history.

Usage:
    from health_analytics.services.report import ReportFormat, ReportService

    content, filename = report_service.export_report(7, ReportFormat.PDF)
"""
from health_analytics.services.report.base import ReportContext, ReportFormat, report_filename
from health_analytics.services.report.csv_renderer import render_csv
from health_analytics.services.report.json_renderer import render_json
from health_analytics.services.report.pdf_renderer import PdfReportRenderer, TablePaginator
from health_analytics.services.report.report_service import ReportService

__all__ = [
    "PdfReportRenderer",
    "ReportContext",
    "ReportFormat",
    "ReportService",
    "TablePaginator",
    "render_csv",
    "render_json",
    "report_filename",
]
