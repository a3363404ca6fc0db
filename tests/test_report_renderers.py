"""
Tests for CSV, JSON and PDF report rendering.
"""
import csv
import io
import json
from datetime import date

import pytest
from reportlab.lib.pagesizes import A4

from health_analytics.models import SubjectProfile
from health_analytics.services.aggregation import present_families
from health_analytics.services.report import (
    PdfReportRenderer,
    ReportContext,
    ReportFormat,
    TablePaginator,
    render_csv,
    render_json,
    report_filename,
)
from health_analytics.services.report.base import format_long_date, format_thousands
from health_analytics.services.report.pdf_renderer import (
    HEADER_HEIGHT,
    HEADING_HEIGHT,
    PAGE_BOTTOM_LIMIT,
    SECTION_GAP,
    TEXT_LINE_HEIGHT,
    TOP_MARGIN,
    NumberedCanvas,
    ReportDocument,
    truncate_text,
    wrap_text,
)
from health_analytics.core.exceptions import UnsupportedReportFormatError


@pytest.fixture
def make_context(analytics_service, resolver):
    def _make(user_id, profile=None):
        return ReportContext(
            history=analytics_service.get_summary(user_id),
            profile=profile or SubjectProfile(name="Budi Santoso", birth_date=date(1990, 1, 20), height_cm=170),
            generated_at=resolver.now(),
            tz=resolver.tz,
        )
    return _make


@pytest.fixture
def context(make_context, add_record, subject_id):
    add_record(0, 8, systolic=130, diastolic=85, blood_sugar=110)
    add_record(3, 9, weight=70.0, activity="walk")
    return make_context(subject_id)


def _csv_rows(content: bytes):
    return list(csv.reader(io.StringIO(content.decode("utf-8"))))


class TestFormatting:
    def test_report_format_parse(self):
        assert ReportFormat.parse("PDF") is ReportFormat.PDF
        assert ReportFormat.CSV.media_type == "text/csv"
        with pytest.raises(UnsupportedReportFormatError) as exc_info:
            ReportFormat.parse("xlsx")
        assert exc_info.value.status_code == 400

    def test_filename(self):
        assert report_filename(date(2024, 3, 9), date(2024, 3, 15), ReportFormat.PDF) == (
            "health_history_2024-03-09_to_2024-03-15.pdf"
        )

    def test_helpers(self):
        assert format_thousands(12500) == "12,500"
        assert format_long_date(date(2024, 1, 15)) == "15 January 2024"

    def test_context_labels(self, context):
        assert context.age == 34
        assert context.period_label == "09 March 2024 to 15 March 2024"
        assert context.generated_label.startswith("15 March 2024, 12:00:00")
        assert context.patient_lines() == [
            ("Name", "Budi Santoso"), ("Age", "34 years"), ("Height", "170 cm")
        ]

    def test_unknown_values_are_left_out(self, make_context, subject_id):
        ctx = make_context(subject_id, SubjectProfile(name="User"))
        assert ctx.patient_lines() == [("Name", "User")]
        assert ctx.patient_info() == {"name": "User", "age": None, "height_cm": None}


class TestCsv:
    def test_layout(self, context):
        rows = _csv_rows(render_csv(context))
        assert rows[0] == ["=== PATIENT INFORMATION ==="]
        assert rows[1] == ["Name", "Budi Santoso"]
        assert rows[2] == ["Age", "34 years"]
        assert rows[3] == ["Height", "170 cm"]
        assert rows[4] == []
        assert rows[5] == ["Date & Time", "Metric Type", "Value", "Status", "Context", "Notes"]
        assert rows[6] == ["2024-03-15 08:00:00", "blood_pressure", "130/85 mmHg", "Attention", "", ""]
        assert ["=== STATISTICS SUMMARY ==="] in rows
        assert ["BLOOD PRESSURE"] in rows
        assert ["Total Steps", "1,000"] in rows
        assert ["Average Systolic", "130.00 mmHg"] in rows

    def test_empty_period(self, make_context):
        rows = _csv_rows(render_csv(make_context(999)))
        assert ["No data available for this period"] in rows
        header_index = rows.index(["Date & Time", "Metric Type", "Value", "Status", "Context", "Notes"])
        assert rows[header_index + 1] == []


class TestJson:
    def test_keys(self, context):
        document = json.loads(render_json(context))
        assert set(document) == {
            "patient_info", "period", "statistics_summary", "trend_charts",
            "reading_history", "generated_at",
        }
        assert document["patient_info"] == {"name": "Budi Santoso", "age": 34, "height_cm": 170}
        assert document["period"] == {
            "start_date": "2024-03-09", "end_date": "2024-03-15", "time_range": "7days"
        }
        assert document["statistics_summary"]["blood_pressure"]["avg_systolic"] == 130.0
        assert len(document["reading_history"]) == 4
        assert document["generated_at"] == "2024-03-15T12:00:00+07:00"

    def test_statistics_round_trip(self, make_context, add_record, subject_id):
        add_record(0, 8, systolic=121, diastolic=80, blood_sugar=101)
        add_record(1, 8, systolic=124, diastolic=83, blood_sugar=104, weight=70.25)
        add_record(2, 8, weight=70.5)
        ctx = make_context(subject_id)
        summary = ctx.history.summary
        stats = json.loads(render_json(ctx))["statistics_summary"]

        families = [key for key in ("blood_pressure", "blood_sugar", "weight", "activity") if stats[key] is not None]
        assert families == present_families(summary)
        for family in families:
            for name, value in getattr(summary, family).model_dump().items():
                if isinstance(value, float):
                    assert round(stats[family][name], 2) == round(value, 2)
                else:
                    assert stats[family][name] == value
        assert stats["weight"]["avg_weight"] == 70.38

    def test_pretty_printed(self, context):
        assert render_json(context).startswith(b"{\n  ")


class TestPdf:
    def test_renders_pdf_with_page_footer(self, context):
        content = PdfReportRenderer(compress=False).render(context)
        assert content.startswith(b"%PDF")
        assert b"Page 1 of 1" in content
        assert b"HEALTH HISTORY REPORT" in content
        assert b"STATISTICS SUMMARY" in content

    def test_empty_period_still_renders(self, make_context):
        content = PdfReportRenderer(compress=False).render(make_context(999))
        assert b"No readings recorded for this period." in content
        assert b"Page 1 of 1" in content

    def test_long_history_paginates(self, make_context, add_record, subject_id):
        for day in range(7):
            for hour in range(6, 22):
                add_record(day, hour, systolic=120, diastolic=80, blood_sugar=95)
        content = PdfReportRenderer(compress=False).render(make_context(subject_id))
        assert b"Page 1 of " in content
        assert b"Page 1 of 1)" not in content

    def test_compressed_output_is_smaller(self, context):
        compressed = PdfReportRenderer(compress=True).render(context)
        plain = PdfReportRenderer(compress=False).render(context)
        assert compressed.startswith(b"%PDF")
        assert len(compressed) < len(plain)


class TestTextFitting:
    def test_wrap_keeps_newlines(self):
        assert wrap_text("a\nb", 50) == ["a", "b"]

    def test_wrap_empty(self):
        assert wrap_text("", 50) == [""]
        assert wrap_text(None, 50) == [""]

    def test_wrap_splits_long_words(self):
        lines = wrap_text("x" * 200, 20)
        assert len(lines) > 1
        assert "".join(lines) == "x" * 200

    def test_truncate(self):
        assert truncate_text("Date", 30) == "Date"
        shortened = truncate_text("A very long column title indeed", 15)
        assert shortened.endswith("...")


class TestTablePaginator:
    @pytest.fixture
    def paginator(self):
        return TablePaginator(header_height=10, page_top=25, bottom_limit=100)

    def test_fits_on_one_page(self, paginator):
        placements, page, cursor = paginator.paginate([10, 10], page=1, top=30)
        assert [(p.kind, p.page, p.top) for p in placements] == [
            ("header", 1, 30), ("row", 1, 40), ("row", 1, 50)
        ]
        assert page == 1
        assert cursor == 60

    def test_overflow_repeats_header(self, paginator):
        placements, page, cursor = paginator.paginate([30, 30, 30], page=1, top=30)
        assert [(p.kind, p.page, p.row_index) for p in placements] == [
            ("header", 1, None), ("row", 1, 0), ("row", 1, 1),
            ("header", 2, None), ("row", 2, 2),
        ]
        assert page == 2
        assert cursor == 25 + 10 + 30

    def test_no_orphan_header(self, paginator):
        placements, page, _ = paginator.paginate([20], page=1, top=80)
        assert placements[0].kind == "header"
        assert placements[0].page == 2
        assert placements[0].top == 25

    def test_oversize_row_is_placed(self, paginator):
        placements, page, cursor = paginator.paginate([500, 10], page=1, top=25)
        assert [(p.kind, p.page) for p in placements] == [
            ("header", 1), ("row", 1), ("header", 2), ("row", 2)
        ]
        assert cursor == 45


class TestSections:
    @pytest.fixture
    def doc(self):
        return ReportDocument(NumberedCanvas(io.BytesIO(), pagesize=A4), TablePaginator())

    def test_section_stays_on_page_when_heading_and_first_row_fit(self, doc):
        doc.cursor = 200.0
        doc.section("READING HISTORY", HEADER_HEIGHT + 8)
        assert doc.page == 1
        assert doc.cursor == 200.0 + SECTION_GAP + HEADING_HEIGHT

    def test_heading_is_not_left_alone_at_page_bottom(self, doc):
        # 240 + gap + heading + header + row crosses the bottom limit.
        doc.cursor = 240.0
        doc.section("READING HISTORY", HEADER_HEIGHT + 8)
        assert doc.page == 2
        assert doc.cursor == TOP_MARGIN + HEADING_HEIGHT

    def test_placeholder_line_must_fit_too(self, doc):
        doc.cursor = PAGE_BOTTOM_LIMIT - SECTION_GAP - HEADING_HEIGHT - 3
        doc.section("READING HISTORY", TEXT_LINE_HEIGHT)
        assert doc.page == 2
