"""
Service layer for rendering trend charts as an interactive HTML page.

This is the visual counterpart of the trend_charts block of a health
history: it draws the 90-day daily series for every family present.
Figure construction is delegated to PlotlyBuilder.
"""

import logging
from typing import Optional

import plotly.io as pio

from health_analytics.core.metric_registry import (
    ACTIVITY,
    BLOOD_SUGAR,
    WEIGHT,
    require_family,
)
from health_analytics.schemas import TrendCharts
from health_analytics.services.graph.plotly_builder import PlotlyBuilder, series_values

logger = logging.getLogger(__name__)


# =============================================================================
# GRAPH SERVICE
# =============================================================================

class GraphService:
    """
    Orchestrates chart rendering for TrendCharts.
    """

    def __init__(self, plotly_builder: Optional[PlotlyBuilder] = None):
        self._builder = plotly_builder or PlotlyBuilder()

    def generate_html_chart(self, trend_charts: TrendCharts, subject_name: str) -> str:
        """Generate complete HTML with an interactive Plotly chart."""
        fig = self._builder.create_figure()

        bp = trend_charts.blood_pressure
        if bp is not None and bp.days_90:
            self._builder.add_blood_pressure_traces(fig, bp.days_90)

        for key in (BLOOD_SUGAR, WEIGHT, ACTIVITY):
            series = getattr(trend_charts, key)
            if series is None:
                continue
            extracted = series_values(key, series.days_90)
            if extracted is None:
                continue
            dates, values = extracted
            family = require_family(key)
            # Steps swamp the vitals scale; start with activity hidden.
            self._builder.add_family_trace(fig, family, dates, values, visible=key != ACTIVITY)
            self._builder.add_reference_band(fig, key, (dates[0], dates[-1]))

        if not fig.data:
            return self._generate_empty_chart(subject_name)

        self._builder.apply_layout(fig, subject_name)
        logger.debug(
            "Trend chart rendered",
            extra={"traces": len(fig.data), "subject": subject_name}
        )
        return pio.to_html(
            fig,
            include_plotlyjs="cdn",
            config=self._builder.get_config(),
            div_id="health-trends",
        )

    def _generate_empty_chart(self, subject_name: str) -> str:
        """Generate a styled placeholder when there is nothing to plot."""
        fig = self._builder.create_figure()
        self._builder.apply_empty_layout(fig, subject_name)
        return pio.to_html(
            fig,
            include_plotlyjs="cdn",
            config=self._builder.get_config(),
            div_id="health-trends",
        )
