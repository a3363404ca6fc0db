"""
Pydantic schemas for analytics results.
"""
from health_analytics.schemas.health_history import (
    ActivityPoint,
    ActivitySummary,
    BloodPressurePoint,
    BloodPressureSummary,
    BloodSugarPoint,
    BloodSugarSummary,
    HealthHistory,
    HealthSummary,
    PeriodSummary,
    RangeBreakdown,
    ReadingEntry,
    TrendBucket,
    TrendCharts,
    TrendSeries,
    WeekBucket,
    WeightPoint,
    WeightSummary,
    WindowInfo,
)

__all__ = [
    "ActivityPoint",
    "ActivitySummary",
    "BloodPressurePoint",
    "BloodPressureSummary",
    "BloodSugarPoint",
    "BloodSugarSummary",
    "HealthHistory",
    "HealthSummary",
    "PeriodSummary",
    "RangeBreakdown",
    "ReadingEntry",
    "TrendBucket",
    "TrendCharts",
    "TrendSeries",
    "WeekBucket",
    "WeightPoint",
    "WeightSummary",
    "WindowInfo",
]
