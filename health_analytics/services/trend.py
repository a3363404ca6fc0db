"""
Trend chart construction and week/month bucketing.

Daily points are built once from the 90-day record set and the 7- and 30-day
daily series are cut from the tail of that, so all three always agree. The
same per-family point logic also summarizes the last 30 days by week and the
last 90 days by calendar month. Days are calendar days in the reporting
timezone.

Week buckets run Monday to Sunday and are numbered from the week containing
the window's first day ("Week 1"), so the same record set always buckets the
same way regardless of when it is fetched.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from health_analytics.core.datetime_utils import local_date, monday_of
from health_analytics.core.metric_registry import (
    ACTIVITY,
    BLOOD_PRESSURE,
    BLOOD_SUGAR,
    WEIGHT,
    summarized_family_keys,
)
from health_analytics.models import HealthRecord
from health_analytics.schemas import (
    ActivityPoint,
    BloodPressurePoint,
    BloodSugarPoint,
    TrendBucket,
    TrendCharts,
    TrendSeries,
    WeightPoint,
)
from health_analytics.services.activity import ActivityEstimator, FlatRateActivityEstimator
from health_analytics.services.comparison import round_half_away

logger = logging.getLogger(__name__)

SERIES_DAYS = {"days_7": 7, "days_30": 30, "days_90": 90}
WEEKLY_DAYS = 30
MONTHLY_DAYS = 90

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

PointFactory = Callable[[date, List[HealthRecord]], Optional[object]]


# =============================================================================
# DAILY GROUPING
# =============================================================================

def group_by_day(records: Iterable[HealthRecord], tz: tzinfo) -> Dict[date, List[HealthRecord]]:
    """Group records by their calendar day in ``tz``."""
    days: Dict[date, List[HealthRecord]] = defaultdict(list)
    for record in records:
        days[local_date(record.timestamp, tz)].append(record)
    return days


def _avg(values: Sequence[float]) -> float:
    return round_half_away(sum(values) / len(values))


class TrendBuilder:
    """
    Builds TrendCharts from the 90-day record set.

    Args:
        tz: Reporting timezone used to assign records to days.
        activity_estimator: Strategy for step and calorie totals.
    """

    def __init__(self, tz: tzinfo, activity_estimator: Optional[ActivityEstimator] = None):
        self._tz = tz
        self._activity = activity_estimator or FlatRateActivityEstimator()

    # Each point factory returns None when no record in the group carries the family.

    def blood_pressure_point(self, start: date, records: List[HealthRecord]) -> Optional[BloodPressurePoint]:
        readings = [r for r in records if r.has_blood_pressure]
        if not readings:
            return None
        return BloodPressurePoint(
            date=start,
            systolic=_avg([r.systolic for r in readings]),
            diastolic=_avg([r.diastolic for r in readings]),
        )

    def blood_sugar_point(self, start: date, records: List[HealthRecord]) -> Optional[BloodSugarPoint]:
        values = [r.blood_sugar for r in records if r.has_blood_sugar]
        if not values:
            return None
        return BloodSugarPoint(date=start, avg_value=_avg(values))

    def weight_point(self, start: date, records: List[HealthRecord]) -> Optional[WeightPoint]:
        values = [r.weight for r in records if r.has_weight]
        if not values:
            return None
        return WeightPoint(date=start, weight=_avg(values))

    def activity_point(self, start: date, records: List[HealthRecord]) -> Optional[ActivityPoint]:
        estimate = self._activity.estimate(records)
        if not estimate.entries:
            return None
        return ActivityPoint(date=start, steps=estimate.steps, calories=estimate.calories)

    @staticmethod
    def daily_points(days: Dict[date, List[HealthRecord]], make_point: PointFactory) -> List:
        points = []
        for day in sorted(days):
            point = make_point(day, days[day])
            if point is not None:
                points.append(point)
        return points

    @staticmethod
    def bucket_points(groups: Sequence["RecordGroup"], make_point: PointFactory, point_type: type) -> List:
        buckets = []
        for group in groups:
            point = make_point(group.start_date, group.records)
            if point is not None:
                buckets.append(TrendBucket[point_type](
                    label=group.label,
                    start_date=group.start_date,
                    end_date=group.end_date,
                    point=point,
                ))
        return buckets

    @staticmethod
    def _tails(points: List, today: date) -> Dict[str, List]:
        """Cut the 7/30/90-day tails out of a sorted point list."""
        cuts = {}
        for name, length in SERIES_DAYS.items():
            first_day = today - timedelta(days=length - 1)
            cuts[name] = [p for p in points if first_day <= p.date <= today]
        return cuts

    def _series(
        self,
        days: Dict[date, List[HealthRecord]],
        weeks: List["WeekGroup"],
        months: List["MonthGroup"],
        today: date,
        make_point: PointFactory,
        point_type: type,
    ) -> TrendSeries:
        return TrendSeries[point_type](
            **self._tails(self.daily_points(days, make_point), today),
            weeks_30=self.bucket_points(weeks, make_point, point_type),
            months_90=self.bucket_points(months, make_point, point_type),
        )

    def build(
        self,
        records: Iterable[HealthRecord],
        today: date,
        families: Optional[Sequence[str]] = None,
    ) -> TrendCharts:
        """
        Build trend series for every requested family.

        Args:
            records: Records from the 90-day trend window.
            today: Last day of every series, in the reporting timezone.
            families: Canonical family keys to include; None means all.

        Returns:
            TrendCharts; excluded families are None, included families with no
            data have empty series.
        """
        families = summarized_family_keys() if families is None else families
        days = group_by_day(records, self._tz)

        week_start = today - timedelta(days=WEEKLY_DAYS - 1)
        month_start = today - timedelta(days=MONTHLY_DAYS - 1)
        weeks = group_days_by_week(
            {day: rs for day, rs in days.items() if week_start <= day <= today}, week_start
        )
        months = group_days_by_month(
            {day: rs for day, rs in days.items() if month_start <= day <= today}
        )

        charts = TrendCharts()
        if BLOOD_PRESSURE in families:
            charts.blood_pressure = self._series(
                days, weeks, months, today, self.blood_pressure_point, BloodPressurePoint
            )
        if BLOOD_SUGAR in families:
            charts.blood_sugar = self._series(days, weeks, months, today, self.blood_sugar_point, BloodSugarPoint)
        if WEIGHT in families:
            charts.weight = self._series(days, weeks, months, today, self.weight_point, WeightPoint)
        if ACTIVITY in families:
            charts.activity = self._series(days, weeks, months, today, self.activity_point, ActivityPoint)

        logger.debug(
            "Built trend charts",
            extra={"days": len(days), "weeks": len(weeks), "months": len(months)}
        )
        return charts


# =============================================================================
# WEEK & MONTH BUCKETING
# =============================================================================

@dataclass
class RecordGroup:
    """Records falling in one calendar span."""
    start_date: date
    end_date: date
    records: List[HealthRecord] = field(default_factory=list)


@dataclass
class WeekGroup(RecordGroup):
    """Records falling in one Monday-Sunday week of a window."""
    index: int = 1

    @property
    def label(self) -> str:
        return f"Week {self.index}"


@dataclass
class MonthGroup(RecordGroup):
    """Records falling in one calendar month."""

    @property
    def label(self) -> str:
        return f"{MONTH_ABBR[self.start_date.month - 1]} {self.start_date.year}"


def week_index(day: date, window_start: date) -> int:
    """1-based week number of ``day`` counted from the week containing ``window_start``."""
    offset = (monday_of(day) - monday_of(window_start)).days // 7 + 1
    return max(offset, 1)


def group_days_by_week(days: Dict[date, List[HealthRecord]], window_start: date) -> List[WeekGroup]:
    """
    Bucket day groups into weeks anchored to ``window_start``.

    Returns:
        Non-empty week groups sorted by start date.
    """
    groups: Dict[int, WeekGroup] = {}
    for day in sorted(days):
        index = week_index(day, window_start)
        group = groups.get(index)
        if group is None:
            monday = monday_of(day)
            group = groups[index] = WeekGroup(
                start_date=monday,
                end_date=monday + timedelta(days=6),
                index=index,
            )
        group.records.extend(days[day])
    return sorted(groups.values(), key=lambda g: g.start_date)


def group_by_week(
    records: Iterable[HealthRecord],
    window_start: date,
    tz: tzinfo,
) -> List[WeekGroup]:
    """Bucket records into weeks anchored to ``window_start``."""
    return group_days_by_week(group_by_day(records, tz), window_start)


def _month_end(first: date) -> date:
    if first.month == 12:
        return date(first.year, 12, 31)
    return date(first.year, first.month + 1, 1) - timedelta(days=1)


def group_days_by_month(days: Dict[date, List[HealthRecord]]) -> List[MonthGroup]:
    """Bucket day groups by calendar month; non-empty groups sorted by month."""
    groups: Dict[date, MonthGroup] = {}
    for day in sorted(days):
        first = day.replace(day=1)
        group = groups.get(first)
        if group is None:
            group = groups[first] = MonthGroup(start_date=first, end_date=_month_end(first))
        group.records.extend(days[day])
    return sorted(groups.values(), key=lambda g: g.start_date)
