"""
History router - health history, report export and trend chart endpoints.

Architecture:
    HTTP Request → Router (this file) → Services → Repositories → Database

Every endpoint re-runs the analytics pipeline for the requested window; the
router only parses query parameters and shapes the HTTP response.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from fastapi.responses import HTMLResponse

from health_analytics.core.dependencies import (
    bind_log_subject,
    get_analytics_service,
    get_graph_service,
    get_report_service,
)
from health_analytics.core.middleware import get_metrics_collector
from health_analytics.schemas import HealthHistory
from health_analytics.services.analytics_service import HealthAnalyticsService
from health_analytics.services.graph import GraphService
from health_analytics.services.report import ReportFormat, ReportService
from health_analytics.services.time_window import RangeSelector

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/users/{user_id}/health-history",
    tags=["Health History"],
    dependencies=[Depends(bind_log_subject)],
)

TIME_RANGE_DESCRIPTION = "One of 7days, 30days, 3months or custom (default 7days)"


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=HealthHistory,
    summary="Get health history",
    description="Summary statistics with period-over-period change, 7/30/90-day trend series, "
                "reading history and a 7/30/90-day breakdown for one user."
)
async def get_health_history(
    user_id: int = Path(..., description="User whose records to analyse"),
    time_range: Optional[str] = Query(None, description=TIME_RANGE_DESCRIPTION),
    start_date: Optional[date] = Query(None, description="First day of a custom range"),
    end_date: Optional[date] = Query(None, description="Last day of a custom range"),
    metrics: List[str] = Query(default=[], description="Restrict summary and charts to these families"),
    analytics_service: HealthAnalyticsService = Depends(get_analytics_service),
) -> HealthHistory:
    """
    Get the health history for a user.

    Raises:
    - 400 Bad Request: Unknown time range, custom range without both dates,
      or start after end
    - 502 Bad Gateway: Record storage failed
    """
    selector = RangeSelector.parse(time_range)
    return analytics_service.get_summary(user_id, selector, start_date, end_date, metrics)


@router.get(
    "/report",
    summary="Download a health history report",
    description="Render the health history as a CSV, JSON or PDF file download.",
    response_class=Response,
)
async def download_report(
    user_id: int = Path(..., description="User whose records to export"),
    report_format: str = Query("pdf", alias="format", description="csv, json or pdf"),
    time_range: Optional[str] = Query(None, description=TIME_RANGE_DESCRIPTION),
    start_date: Optional[date] = Query(None, description="First day of a custom range"),
    end_date: Optional[date] = Query(None, description="Last day of a custom range"),
    metrics: List[str] = Query(default=[], description="Restrict the summary to these families"),
    report_service: ReportService = Depends(get_report_service),
) -> Response:
    """
    Download a report file.

    Raises:
    - 400 Bad Request: Unsupported format or invalid range
    - 502 Bad Gateway: Record or profile storage failed
    """
    fmt = ReportFormat.parse(report_format)
    selector = RangeSelector.parse(time_range)
    content, filename = report_service.export_report(
        user_id, fmt, selector, start_date, end_date, metrics
    )
    get_metrics_collector().record_report(fmt.value)

    return Response(
        content=content,
        media_type=fmt.media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get(
    "/chart",
    response_class=HTMLResponse,
    summary="Get HTML trend chart",
    description="Interactive Plotly chart of the 90-day daily trend series."
)
async def get_trend_chart(
    user_id: int = Path(..., description="User whose records to chart"),
    metrics: List[str] = Query(default=[], description="Restrict the chart to these families"),
    report_service: ReportService = Depends(get_report_service),
    analytics_service: HealthAnalyticsService = Depends(get_analytics_service),
    graph_service: GraphService = Depends(get_graph_service),
) -> HTMLResponse:
    """
    Get the trend chart page.

    Trend series always cover the 90 days up to today, so no range is taken.
    """
    history = analytics_service.get_summary(user_id, RangeSelector.SHORT, metrics=metrics)
    profile = report_service.load_profile(user_id)
    html_content = graph_service.generate_html_chart(history.trend_charts, profile.name)
    return HTMLResponse(content=html_content)
