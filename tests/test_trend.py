"""
Tests for trend series and week/month bucketing.
"""
from datetime import date, datetime, timezone
from itertools import count

import pytest

from health_analytics.core.metric_registry import BLOOD_SUGAR
from health_analytics.models import HealthRecord
from health_analytics.services.trend import (
    TrendBuilder,
    group_by_day,
    group_by_week,
    group_days_by_month,
    week_index,
)

_ids = count(1)


@pytest.fixture
def builder(tz):
    return TrendBuilder(tz)


@pytest.fixture
def make(at):
    def _make(days_ago=0, hour=9, **metrics):
        return HealthRecord(id=next(_ids), user_id=1, timestamp=at(days_ago, hour), **metrics)
    return _make


class TestDailyGrouping:
    def test_days_are_local(self, tz):
        # 18:00 UTC on the 14th is 01:00 on the 15th in Jakarta.
        late = HealthRecord(id=1, user_id=1, timestamp=datetime(2024, 3, 14, 18, 0, tzinfo=timezone.utc))
        early = HealthRecord(id=2, user_id=1, timestamp=datetime(2024, 3, 14, 16, 0, tzinfo=timezone.utc))
        days = group_by_day([late, early], tz)
        assert [r.id for r in days[date(2024, 3, 15)]] == [1]
        assert [r.id for r in days[date(2024, 3, 14)]] == [2]


class TestTrendBuilder:
    def test_readings_on_the_same_day_are_averaged(self, builder, make, today):
        charts = builder.build([
            make(1, 8, systolic=120, diastolic=80),
            make(1, 20, systolic=131, diastolic=85),
        ], today)
        point = charts.blood_pressure.days_7[0]
        assert point.date == date(2024, 3, 14)
        assert point.systolic == 125.5
        assert point.diastolic == 82.5

    def test_series_are_tails_of_the_ninety_day_series(self, builder, make, today):
        charts = builder.build([
            make(0, blood_sugar=100),
            make(6, blood_sugar=110),
            make(7, blood_sugar=120),
            make(29, blood_sugar=130),
            make(30, blood_sugar=140),
            make(89, blood_sugar=150),
        ], today)
        series = charts.blood_sugar
        assert [p.avg_value for p in series.days_7] == [110, 100]
        assert [p.avg_value for p in series.days_30] == [130, 120, 110, 100]
        assert [p.avg_value for p in series.days_90] == [150, 140, 130, 120, 110, 100]

    def test_points_are_sorted_by_day(self, builder, make, today):
        charts = builder.build([make(1, weight=70.0), make(3, weight=71.0), make(2, weight=70.5)], today)
        assert [p.date for p in charts.weight.days_7] == [
            date(2024, 3, 12), date(2024, 3, 13), date(2024, 3, 14)
        ]

    def test_activity_points(self, builder, make, today):
        charts = builder.build([
            make(0, 7, activity="walk"),
            make(0, 18, activity="yoga"),
            make(0, 19, activity=""),
        ], today)
        point = charts.activity.days_7[0]
        assert point.steps == 2000
        assert point.calories == 400

    def test_family_filter(self, builder, make, today):
        charts = builder.build([make(0, blood_sugar=100, weight=70.0)], today, families=(BLOOD_SUGAR,))
        assert charts.blood_sugar is not None
        assert charts.weight is None
        assert charts.blood_pressure is None

    def test_included_family_without_data_has_empty_series(self, builder, make, today):
        charts = builder.build([make(0, blood_sugar=100)], today)
        assert charts.weight is not None
        assert charts.weight.days_7 == []
        assert charts.weight.days_90 == []

    def test_serializes_dates(self, builder, make, today):
        charts = builder.build([make(0, blood_sugar=100)], today)
        dumped = charts.model_dump(mode="json")
        assert dumped["blood_sugar"]["days_7"] == [{"date": "2024-03-15", "avg_value": 100.0}]


class TestBucketedSeries:
    # Today is Friday 15 March 2024. The weekly range starts Thursday 15
    # February (Week 1 = 12-18 Feb); the monthly range starts 17 December 2023.

    @pytest.fixture
    def sugar(self, builder, make, today):
        return builder.build([
            make(0, blood_sugar=100),
            make(3, blood_sugar=110),
            make(29, blood_sugar=130),
            make(30, blood_sugar=140),
            make(89, blood_sugar=150),
            make(90, blood_sugar=160),
        ], today).blood_sugar

    def test_weeks_cover_last_thirty_days(self, sugar):
        assert [b.label for b in sugar.weeks_30] == ["Week 1", "Week 5"]
        assert [b.point.avg_value for b in sugar.weeks_30] == [130.0, 105.0]
        assert sugar.weeks_30[0].start_date == date(2024, 2, 12)
        assert sugar.weeks_30[0].end_date == date(2024, 2, 18)
        assert sugar.weeks_30[1].start_date == date(2024, 3, 11)
        assert sugar.weeks_30[1].end_date == date(2024, 3, 17)

    def test_months_cover_last_ninety_days(self, sugar):
        assert [b.label for b in sugar.months_90] == ["Dec 2023", "Feb 2024", "Mar 2024"]
        assert [b.point.avg_value for b in sugar.months_90] == [150.0, 135.0, 105.0]
        assert sugar.months_90[0].start_date == date(2023, 12, 1)
        assert sugar.months_90[0].end_date == date(2023, 12, 31)
        assert sugar.months_90[1].end_date == date(2024, 2, 29)

    def test_bucket_point_is_dated_at_bucket_start(self, sugar):
        for bucket in sugar.weeks_30 + sugar.months_90:
            assert bucket.point.date == bucket.start_date

    def test_bucket_means_are_rounded(self, builder, make, today):
        charts = builder.build([
            make(1, weight=70.0),
            make(2, weight=70.5),
            make(3, weight=71.25),
        ], today)
        assert [b.point.weight for b in charts.weight.weeks_30] == [70.58]
        assert [b.point.weight for b in charts.weight.months_90] == [70.58]

    def test_activity_buckets_total_entries(self, builder, make, today):
        charts = builder.build([
            make(1, activity="walk"),
            make(2, activity="swim"),
            make(2, 18, activity=""),
        ], today)
        bucket = charts.activity.weeks_30[0]
        assert bucket.point.steps == 2000
        assert bucket.point.calories == 400

    def test_records_missing_the_family_make_no_bucket(self, builder, make, today):
        charts = builder.build([make(0, weight=70.0)], today)
        assert charts.blood_pressure.weeks_30 == []
        assert charts.blood_pressure.months_90 == []
        assert len(charts.weight.weeks_30) == 1

    def test_serializes_buckets(self, builder, make, today):
        charts = builder.build([make(0, blood_sugar=100)], today)
        dumped = charts.model_dump(mode="json")
        assert dumped["blood_sugar"]["weeks_30"] == [{
            "label": "Week 5",
            "start_date": "2024-03-11",
            "end_date": "2024-03-17",
            "point": {"date": "2024-03-11", "avg_value": 100.0},
        }]


class TestWeekBucketing:
    def test_week_index(self):
        # Window starts Thursday 15 Feb 2024; its week starts Monday 12 Feb.
        assert week_index(date(2024, 2, 15), date(2024, 2, 15)) == 1
        assert week_index(date(2024, 2, 18), date(2024, 2, 15)) == 1
        assert week_index(date(2024, 2, 19), date(2024, 2, 15)) == 2
        assert week_index(date(2024, 3, 4), date(2024, 2, 15)) == 4

    def test_group_by_week(self, make, tz):
        # Today is Friday 15 March 2024.
        records = [make(0, blood_sugar=100), make(4, blood_sugar=110), make(5, blood_sugar=120)]
        groups = group_by_week(records, date(2024, 3, 9), tz)
        assert [g.label for g in groups] == ["Week 1", "Week 2"]
        assert groups[0].start_date == date(2024, 3, 4)
        assert groups[0].end_date == date(2024, 3, 10)
        assert len(groups[0].records) == 1
        assert groups[1].start_date == date(2024, 3, 11)
        assert len(groups[1].records) == 2

    def test_no_records_no_weeks(self, tz):
        assert group_by_week([], date(2024, 3, 9), tz) == []

    def test_week_numbers_are_not_capped(self, make, tz):
        groups = group_by_week([make(0, blood_sugar=100)], date(2024, 2, 15), tz)
        assert groups[0].label == "Week 5"

    def test_group_days_by_month(self, make, tz):
        # 15 days back is 29 February.
        days = group_by_day([make(0, weight=70.0), make(20, weight=71.0), make(15, weight=72.0)], tz)
        groups = group_days_by_month(days)
        assert [g.label for g in groups] == ["Feb 2024", "Mar 2024"]
        assert [len(g.records) for g in groups] == [2, 1]
        assert groups[1].end_date == date(2024, 3, 31)
