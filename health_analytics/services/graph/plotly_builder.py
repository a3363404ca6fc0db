"""
Plotly figure builder for trend chart visualization.

Responsibilities:
- Creating traces (blood pressure pair and single-value families)
- Applying layout configuration
- Adding reference bands and annotations

GraphService decides what to draw; this module only knows how Plotly wants it.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import plotly.graph_objects as go

from health_analytics.core.metric_registry import (
    ACTIVITY,
    BLOOD_SUGAR,
    WEIGHT,
    MetricFamily,
)
from health_analytics.schemas import BloodPressurePoint

logger = logging.getLogger(__name__)

# Shaded "normal" bands; families without a clinical range get none.
REFERENCE_BANDS: Dict[str, Tuple[float, float]] = {
    BLOOD_SUGAR: (70, 140),
}

BAND_COLOR = "rgba(76, 175, 80, 0.08)"

# Steps run in the thousands, so activity sits on the right-hand axis.
SECONDARY_AXIS_FAMILIES = {ACTIVITY}


class PlotlyBuilder:
    """
    Builder for the trend chart figure.

    Usage:
        builder = PlotlyBuilder()
        fig = builder.create_figure()
        builder.add_blood_pressure_traces(fig, points)
        builder.add_family_trace(fig, family, dates, values)
        builder.apply_layout(fig, subject_name)
    """

    def create_figure(self) -> go.Figure:
        """Create a new empty Plotly figure."""
        return go.Figure()

    def add_blood_pressure_traces(
        self, fig: go.Figure, points: List[BloodPressurePoint]
    ) -> None:
        """
        Add the systolic/diastolic pair with the band between them filled.
        """
        dates = [p.date for p in points]

        fig.add_trace(go.Scatter(
            x=dates, y=[p.systolic for p in points],
            name="Systolic",
            mode="lines+markers",
            line=dict(color="#263238", width=2.5, shape="spline"),
            marker=dict(size=9, color="#263238", symbol="triangle-up",
                        line=dict(width=1.5, color="white")),
            hovertemplate=(
                "<b>Systolic</b><br>"
                "<span style='color:#666'>Normal: 90-139 mmHg</span><br>"
                "%{x|%b %d, %Y}<br>"
                "<b>Avg: %{y:.1f} mmHg</b>"
                "<extra></extra>"
            ),
        ))

        fig.add_trace(go.Scatter(
            x=dates, y=[p.diastolic for p in points],
            name="Diastolic",
            mode="lines+markers",
            line=dict(color="#607D8B", width=2.5, shape="spline", dash="dot"),
            marker=dict(size=9, color="#607D8B", symbol="triangle-down",
                        line=dict(width=1.5, color="white")),
            fill="tonexty",
            fillcolor="rgba(38, 50, 56, 0.08)",
            hovertemplate=(
                "<b>Diastolic</b><br>"
                "<span style='color:#666'>Normal: 60-89 mmHg</span><br>"
                "%{x|%b %d, %Y}<br>"
                "<b>Avg: %{y:.1f} mmHg</b>"
                "<extra></extra>"
            ),
        ))

    def add_family_trace(
        self,
        fig: go.Figure,
        family: MetricFamily,
        dates: List[date],
        values: List[float],
        visible: bool = True,
    ) -> None:
        """Add a single-value daily series for ``family``."""
        range_line = ""
        if family.normal_range:
            range_line = f"<span style='color:#666'>Normal: {family.normal_range}</span><br>"

        fig.add_trace(go.Scatter(
            x=dates,
            y=values,
            yaxis="y2" if family.key in SECONDARY_AXIS_FAMILIES else "y",
            name=family.display_name,
            visible=True if visible else "legendonly",
            mode="lines+markers",
            line=dict(width=3, color=family.color, shape="spline"),
            marker=dict(size=10, color=family.color, line=dict(width=2, color="white")),
            connectgaps=True,
            hovertemplate=(
                f"<b>{family.display_name}</b><br>"
                f"{range_line}"
                "%{x|%b %d, %Y}<br>"
                f"<b>%{{y:,.2f}} {family.unit}</b>"
                "<extra></extra>"
            ),
        ))

    def add_reference_band(
        self, fig: go.Figure, family_key: str, date_range: Tuple[date, date]
    ) -> None:
        """Add a subtle normal-range band behind a family's trace."""
        band = REFERENCE_BANDS.get(family_key)
        if band is None:
            return

        low, high = band
        fig.add_shape(
            type="rect",
            x0=date_range[0] - timedelta(days=1),
            x1=date_range[1] + timedelta(days=1),
            y0=low, y1=high,
            yref="y",
            fillcolor=BAND_COLOR,
            line=dict(width=0),
            layer="below",
        )

    def apply_layout(self, fig: go.Figure, subject_name: str) -> None:
        """Apply layout with a secondary Y-axis for activity."""
        fig.update_layout(
            title=dict(
                text=f"<b>Health Trends</b><br><sup style='color:#757575'>{subject_name}</sup>",
                font=dict(size=18),
                x=0.5, xanchor="center",
            ),
            xaxis=dict(
                type="date",
                showgrid=True,
                gridcolor="rgba(0,0,0,0.06)",
                tickformat="%b %d",
                tickangle=-45,
                nticks=8,
                rangeselector=dict(
                    buttons=[
                        dict(count=7, label="7D", step="day", stepmode="backward"),
                        dict(count=1, label="1M", step="month", stepmode="backward"),
                        dict(step="all", label="90D"),
                    ],
                    bgcolor="rgba(255,255,255,0.95)",
                    activecolor="#E3F2FD",
                    font=dict(size=11),
                ),
            ),
            yaxis=dict(
                title=dict(text="Vitals", font=dict(size=11, color="#9E9E9E")),
                side="left",
                showgrid=True,
                gridcolor="rgba(0,0,0,0.06)",
            ),
            yaxis2=dict(
                title=dict(text="Steps", font=dict(size=11, color="#9E9E9E")),
                side="right",
                overlaying="y",
                showgrid=False,
            ),
            hovermode="x unified",
            legend=dict(
                orientation="h",
                x=0.5, xanchor="center",
                y=-0.18, yanchor="top",
                font=dict(size=11, color="#424242"),
                bgcolor="rgba(255,255,255,0.9)",
                bordercolor="rgba(0,0,0,0.08)",
                borderwidth=1,
            ),
            height=650,
            margin=dict(l=50, r=50, t=90, b=120),
            template="plotly_white",
            paper_bgcolor="#FAFAFA",
            plot_bgcolor="#FFFFFF",
            dragmode="pan",
        )

    def apply_empty_layout(self, fig: go.Figure, subject_name: str) -> None:
        """Apply layout for an empty chart (no readings in the last 90 days)."""
        fig.update_layout(
            title=dict(
                text=f"<b>Health Trends</b><br><sup>{subject_name}</sup>",
                font=dict(size=20),
                x=0.5, xanchor="center",
            ),
            xaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
            yaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
            height=450,
            template="plotly_white",
            paper_bgcolor="#FAFAFA",
            plot_bgcolor="#FFFFFF",
            annotations=[
                dict(text="<b>No readings yet</b>", xref="paper", yref="paper",
                     x=0.5, y=0.5, showarrow=False, font=dict(size=18, color="#424242")),
                dict(text="Readings from the last 90 days will appear here",
                     xref="paper", yref="paper", x=0.5, y=0.38,
                     showarrow=False, font=dict(size=14, color="#757575")),
            ],
        )

    def get_config(self) -> Dict[str, Any]:
        """Plotly client config."""
        return {
            "displayModeBar": True,
            "displaylogo": False,
            "modeBarButtonsToRemove": ["lasso2d", "select2d", "autoScale2d"],
            "responsive": True,
            "scrollZoom": True,
            "toImageButtonOptions": {
                "format": "png",
                "filename": "health_trends",
                "height": 800,
                "width": 1200,
                "scale": 2,
            },
        }


# Point attribute plotted for each single-value family.
VALUE_ATTRIBUTES: Dict[str, str] = {
    BLOOD_SUGAR: "avg_value",
    WEIGHT: "weight",
    ACTIVITY: "steps",
}


def series_values(family_key: str, points: List[Any]) -> Optional[Tuple[List[date], List[float]]]:
    """
    Pull (dates, values) out of a single-value family's points.

    Returns None when there is nothing to plot.
    """
    attribute = VALUE_ATTRIBUTES.get(family_key)
    if attribute is None or not points:
        return None
    return [p.date for p in points], [getattr(p, attribute) for p in points]
