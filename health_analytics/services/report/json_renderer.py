"""
JSON report rendering.
"""
import json

from health_analytics.core.datetime_utils import to_local
from health_analytics.services.report.base import ReportContext


def render_json(ctx: ReportContext) -> bytes:
    """
    Render the report as pretty-printed JSON.

    Top-level keys: patient_info, period, statistics_summary, trend_charts,
    reading_history, generated_at.
    """
    history = ctx.history
    document = {
        "patient_info": ctx.patient_info(),
        "period": {
            "start_date": history.window.start_date.isoformat(),
            "end_date": history.window.end_date.isoformat(),
            "time_range": history.window.time_range,
        },
        "statistics_summary": history.summary.model_dump(mode="json"),
        "trend_charts": history.trend_charts.model_dump(mode="json"),
        "reading_history": [entry.model_dump(mode="json") for entry in history.reading_history],
        "generated_at": to_local(ctx.generated_at, ctx.tz).isoformat(),
    }
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
