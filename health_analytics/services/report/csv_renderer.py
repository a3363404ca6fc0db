"""
CSV report rendering.

Layout:
    === PATIENT INFORMATION ===
    Name,<name>
    Age,<n> years
    Height,<n> cm
    <blank>
    Date & Time,Metric Type,Value,Status,Context,Notes
    <one row per reading entry>
    <blank>
    === STATISTICS SUMMARY ===
    <blank>
    BLOOD PRESSURE
    Average Systolic,130.00 mmHg
    ...
"""
import csv
import io

from health_analytics.core.datetime_utils import format_local
from health_analytics.services.report.base import ReportContext, statistics_blocks

READING_HEADERS = ["Date & Time", "Metric Type", "Value", "Status", "Context", "Notes"]


def render_csv(ctx: ReportContext) -> bytes:
    """Render the report as UTF-8 CSV."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer)

    writer.writerow(["=== PATIENT INFORMATION ==="])
    for label, value in ctx.patient_lines():
        writer.writerow([label, value])
    writer.writerow([])

    writer.writerow(READING_HEADERS)
    for entry in ctx.history.reading_history:
        writer.writerow([
            format_local(entry.timestamp, ctx.tz),
            entry.metric_type,
            entry.value,
            entry.status,
            entry.context or "",
            entry.notes or "",
        ])

    writer.writerow([])
    writer.writerow(["=== STATISTICS SUMMARY ==="])
    blocks = statistics_blocks(ctx.history.summary)
    if not blocks:
        writer.writerow(["No data available for this period"])
    for title, lines in blocks:
        writer.writerow([])
        writer.writerow([title])
        for label, value in lines:
            writer.writerow([label, value])

    return buffer.getvalue().encode("utf-8")
