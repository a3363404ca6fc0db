"""
Pydantic models for analytics output.

These are the shapes returned by HealthAnalyticsService.get_summary(), served
by the API and embedded in JSON reports.
"""
from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# FAMILY SUMMARIES
# =============================================================================

class BloodPressureSummary(BaseModel):
    """Average blood pressure over a period."""
    avg_systolic: float
    avg_diastolic: float
    change_percent: float = Field(..., description="Systolic change vs. the prior period, percent")
    status: str = Field(..., description="WHO band: Low, Normal or High")
    systolic_assessment: str = Field(..., description="Normal, Attention or Abnormal")
    diastolic_assessment: str = Field(..., description="Normal, Attention or Abnormal")
    normal_range: Optional[str] = None
    readings: int


class BloodSugarSummary(BaseModel):
    """Average blood sugar over a period."""
    avg_value: float
    change_percent: float
    status: str
    assessment: str
    normal_range: Optional[str] = None
    readings: int


class WeightSummary(BaseModel):
    """Average weight over a period."""
    avg_weight: float
    bmi: Optional[float] = Field(None, description="Not computed on this path")
    trend: str = Field(..., description="Stable, Up or Down")
    change_percent: float
    readings: int


class ActivitySummary(BaseModel):
    """Estimated activity totals over a period."""
    total_steps: int
    total_calories: int
    change_percent: float
    readings: int


class PeriodSummary(BaseModel):
    """Per-family summaries. A family with no qualifying records is None."""
    blood_pressure: Optional[BloodPressureSummary] = None
    blood_sugar: Optional[BloodSugarSummary] = None
    weight: Optional[WeightSummary] = None
    activity: Optional[ActivitySummary] = None

    def is_empty(self) -> bool:
        return not any((self.blood_pressure, self.blood_sugar, self.weight, self.activity))


class WeekBucket(BaseModel):
    """Summary of one Monday-Sunday week inside a window."""
    week: str
    start_date: date
    end_date: date
    summary: PeriodSummary


class HealthSummary(PeriodSummary):
    """Summary of a window, with weekly sub-summaries for longer windows."""
    weeks: List[WeekBucket] = Field(default_factory=list)


# =============================================================================
# TREND CHARTS
# =============================================================================

class BloodPressurePoint(BaseModel):
    date: date
    systolic: float
    diastolic: float


class BloodSugarPoint(BaseModel):
    date: date
    avg_value: float


class WeightPoint(BaseModel):
    date: date
    weight: float


class ActivityPoint(BaseModel):
    date: date
    steps: int
    calories: int


PointT = TypeVar("PointT")


class TrendBucket(BaseModel, Generic[PointT]):
    """
    A family's mean (activity: totals) over one week or calendar month.

    ``point.date`` equals ``start_date``.
    """
    label: str = Field(..., description='"Week 2" or "Mar 2024"')
    start_date: date
    end_date: date
    point: PointT


class TrendSeries(BaseModel, Generic[PointT]):
    """
    One family's trend points.

    days_* hold daily points over the last 7, 30 and 90 days. weeks_30 buckets
    the last 30 days by Monday-Sunday week and months_90 the last 90 days by
    calendar month.
    """
    days_7: List[PointT] = Field(default_factory=list)
    days_30: List[PointT] = Field(default_factory=list)
    days_90: List[PointT] = Field(default_factory=list)
    weeks_30: List[TrendBucket[PointT]] = Field(default_factory=list)
    months_90: List[TrendBucket[PointT]] = Field(default_factory=list)


class TrendCharts(BaseModel):
    """Trend series per family. A family excluded by the metrics filter is None."""
    blood_pressure: Optional[TrendSeries[BloodPressurePoint]] = None
    blood_sugar: Optional[TrendSeries[BloodSugarPoint]] = None
    weight: Optional[TrendSeries[WeightPoint]] = None
    activity: Optional[TrendSeries[ActivityPoint]] = None


# =============================================================================
# READING HISTORY & RESULT
# =============================================================================

class ReadingEntry(BaseModel):
    """One metric observation extracted from a record."""
    record_id: int
    timestamp: datetime
    metric_type: str
    value: str
    status: str
    context: Optional[str] = None
    notes: Optional[str] = None


class WindowInfo(BaseModel):
    """The resolved window a result covers."""
    time_range: str
    start: datetime
    end: datetime
    start_date: date
    end_date: date


class RangeBreakdown(BaseModel):
    """Side-by-side summaries of the last 7, 30 and 90 days."""
    start_date: date
    end_date: date
    days_7: HealthSummary
    days_30: HealthSummary
    days_90: HealthSummary


class HealthHistory(BaseModel):
    """Everything get_summary() produces for one user and window."""
    user_id: int
    window: WindowInfo
    summary: HealthSummary
    trend_charts: TrendCharts
    reading_history: List[ReadingEntry]
    breakdown: RangeBreakdown
