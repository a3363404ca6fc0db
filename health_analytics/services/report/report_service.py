"""
Service layer for report exports.

export_report() re-runs the whole analytics pipeline for the request, loads
the subject profile and hands both to the renderer for the requested format.
Nothing is cached or persisted; a failed fetch aborts the export before any
bytes are produced.
"""
import logging
from datetime import date
from typing import Callable, Dict, Optional, Sequence, Tuple

from health_analytics.core.exceptions import degraded_lookup
from health_analytics.models import DEFAULT_SUBJECT_NAME, SubjectProfile
from health_analytics.repositories.interfaces import HealthRecordSource, SubjectProfileSource
from health_analytics.services.analytics_service import HealthAnalyticsService
from health_analytics.services.report.base import ReportContext, ReportFormat, report_filename
from health_analytics.services.report.csv_renderer import render_csv
from health_analytics.services.report.json_renderer import render_json
from health_analytics.services.report.pdf_renderer import PdfReportRenderer
from health_analytics.services.time_window import RangeSelector

logger = logging.getLogger(__name__)


class ReportService:
    """
    Produces downloadable reports.

    Dependencies are injected via constructor; see
    core.dependencies.get_report_service().
    """

    def __init__(
        self,
        analytics_service: HealthAnalyticsService,
        record_source: HealthRecordSource,
        profile_source: SubjectProfileSource,
        pdf_renderer: Optional[PdfReportRenderer] = None,
    ):
        self._analytics = analytics_service
        self._records = record_source
        self._profiles = profile_source
        pdf_renderer = pdf_renderer or PdfReportRenderer()
        self._renderers: Dict[ReportFormat, Callable[[ReportContext], bytes]] = {
            ReportFormat.CSV: render_csv,
            ReportFormat.JSON: render_json,
            ReportFormat.PDF: pdf_renderer.render,
        }

    def load_profile(self, user_id: int) -> SubjectProfile:
        """
        Profile used in report headers.

        A missing subject gets the default name. The profile fetch itself is
        critical; the height fallback from the latest record is not.
        """
        profile = self._profiles.fetch_subject_profile(user_id)
        if profile is None:
            profile = SubjectProfile(name=DEFAULT_SUBJECT_NAME)
        if profile.height_cm is None:
            latest = degraded_lookup(
                lambda: self._records.fetch_latest_record(user_id),
                fallback=None,
                name="latest_record_height",
            )
            if latest is not None and latest.height_cm is not None:
                profile = SubjectProfile(
                    name=profile.name,
                    birth_date=profile.birth_date,
                    height_cm=latest.height_cm,
                )
        return profile

    def export_report(
        self,
        user_id: int,
        report_format: ReportFormat,
        selector: RangeSelector = RangeSelector.SHORT,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        metrics: Optional[Sequence[str]] = None,
    ) -> Tuple[bytes, str]:
        """
        Render a report for ``user_id``.

        Args:
            user_id: Whose data to export.
            report_format: csv, json or pdf.
            selector: Requested range.
            start_date: First day for a custom range.
            end_date: Last day for a custom range.
            metrics: Optional family filter, as for get_summary().

        Returns:
            (document bytes, suggested filename)

        Raises:
            MissingRangeBoundsError: Custom range without both dates.
            UpstreamFetchFailedError: A record or profile fetch failed.
        """
        history = self._analytics.get_summary(user_id, selector, start_date, end_date, metrics)
        profile = self.load_profile(user_id)
        resolver = self._analytics.resolver
        ctx = ReportContext(
            history=history,
            profile=profile,
            generated_at=resolver.now(),
            tz=resolver.tz,
        )

        content = self._renderers[report_format](ctx)
        filename = report_filename(history.window.start_date, history.window.end_date, report_format)

        logger.info(
            "Report exported",
            extra={
                "user_id": user_id,
                "format": report_format.value,
                "bytes": len(content),
                "file_name": filename,
            }
        )
        return content, filename
