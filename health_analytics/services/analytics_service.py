"""
Service layer for health history analytics.

HealthAnalyticsService is the orchestration point of the engine:

    TimeWindowResolver -> record fetch (window + prior window) -> Aggregator
                       -> record fetch (90-day superset)       -> TrendBuilder
                       -> record fetch (window)                -> reading history

It holds no state between calls; every get_summary() re-fetches and
recomputes. Any repository failure propagates as UpstreamFetchFailedError and
nothing partial is returned.
"""
import logging
from datetime import date
from typing import List, Optional, Sequence

from health_analytics.core.metric_registry import resolve_family_filter
from health_analytics.models import HealthRecord
from health_analytics.repositories.interfaces import HealthRecordSource
from health_analytics.schemas import (
    HealthHistory,
    HealthSummary,
    RangeBreakdown,
    WeekBucket,
    WindowInfo,
)
from health_analytics.services.aggregation import Aggregator, present_families
from health_analytics.services.reading_history import build_reading_history
from health_analytics.services.time_window import RangeSelector, TimeWindow, TimeWindowResolver
from health_analytics.services.trend import TrendBuilder, group_by_week

logger = logging.getLogger(__name__)

# Selectors whose summaries are broken down into weeks.
WEEKLY_SELECTORS = {RangeSelector.MEDIUM, RangeSelector.LONG, RangeSelector.CUSTOM}


class HealthAnalyticsService:
    """
    Builds HealthHistory results for a user.

    Dependencies are injected via constructor for testability; see
    core.dependencies.get_analytics_service().
    """

    def __init__(
        self,
        record_source: HealthRecordSource,
        window_resolver: TimeWindowResolver,
        aggregator: Optional[Aggregator] = None,
        trend_builder: Optional[TrendBuilder] = None,
    ):
        """
        Initialize the analytics service.

        Args:
            record_source: Read access to health records.
            window_resolver: Resolver carrying the reporting timezone and clock.
            aggregator: Summary builder; a default one is created if omitted.
            trend_builder: Trend builder; a default one using the resolver's
                timezone is created if omitted.
        """
        self._records = record_source
        self._resolver = window_resolver
        self._aggregator = aggregator or Aggregator()
        self._trends = trend_builder or TrendBuilder(window_resolver.tz)

    @property
    def resolver(self) -> TimeWindowResolver:
        return self._resolver

    def summarize_with_weeks(
        self,
        records: Sequence[HealthRecord],
        prior: Sequence[HealthRecord],
        window: TimeWindow,
        families: Sequence[str],
        weekly: bool,
    ) -> HealthSummary:
        """
        Summarize a window and, if ``weekly``, each week inside it.

        Week summaries are not compared against anything (change is 0).
        """
        period = self._aggregator.summarize(records, prior, families)
        weeks: List[WeekBucket] = []
        if weekly:
            for group in group_by_week(records, window.start_date, self._resolver.tz):
                weeks.append(WeekBucket(
                    week=group.label,
                    start_date=group.start_date,
                    end_date=group.end_date,
                    summary=self._aggregator.summarize(group.records, (), families),
                ))
        return HealthSummary(**period.model_dump(), weeks=weeks)

    def build_breakdown(
        self,
        trend_records: Sequence[HealthRecord],
        trend_window: TimeWindow,
        families: Sequence[str],
    ) -> RangeBreakdown:
        """
        Summaries of the last 7, 30 and 90 days cut from the trend record set.

        These are overview numbers only and carry no prior-period comparison.
        """
        summaries = {}
        for name, selector in (
            ("days_7", RangeSelector.SHORT),
            ("days_30", RangeSelector.MEDIUM),
            ("days_90", RangeSelector.LONG),
        ):
            window = self._resolver.last_days(selector.days, selector)
            records = [r for r in trend_records if window.contains(r.timestamp)]
            summaries[name] = self.summarize_with_weeks(
                records, (), window, families, weekly=selector is not RangeSelector.SHORT
            )
        return RangeBreakdown(
            start_date=trend_window.start_date,
            end_date=trend_window.end_date,
            **summaries,
        )

    def get_summary(
        self,
        user_id: int,
        selector: RangeSelector = RangeSelector.SHORT,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        metrics: Optional[Sequence[str]] = None,
    ) -> HealthHistory:
        """
        Build the full health history for ``user_id``.

        Args:
            user_id: Whose records to analyse.
            selector: Requested range.
            start_date: First day for a custom range.
            end_date: Last day for a custom range.
            metrics: Optional family filter for summary and charts; names or
                aliases, unknown names ignored. Reading history is never filtered.

        Returns:
            HealthHistory for the resolved window.

        Raises:
            MissingRangeBoundsError: Custom range without both dates.
            InvalidRangeError: Custom range that starts after it ends.
            UpstreamFetchFailedError: Any record fetch failed.
        """
        window = self._resolver.resolve(selector, start_date, end_date)
        trend_window = self._resolver.trend_window()
        families = resolve_family_filter(metrics)

        records = self._records.fetch_records(user_id, window.start, window.end)
        prior = self._records.fetch_records_for_comparison(user_id, window)
        trend_records = self._records.fetch_records(user_id, trend_window.start, trend_window.end)

        summary = self.summarize_with_weeks(
            records, prior, window, families, weekly=window.selector in WEEKLY_SELECTORS
        )
        charts = self._trends.build(trend_records, trend_window.end_date, families)
        history = build_reading_history(records)
        breakdown = self.build_breakdown(trend_records, trend_window, families)

        logger.info(
            "Health history built",
            extra={
                "user_id": user_id,
                "time_range": window.selector.value,
                "records": len(records),
                "prior_records": len(prior),
                "trend_records": len(trend_records),
                "readings": len(history),
                "families": present_families(summary),
            }
        )

        return HealthHistory(
            user_id=user_id,
            window=WindowInfo(
                time_range=window.selector.value,
                start=window.start,
                end=window.end,
                start_date=window.start_date,
                end_date=window.end_date,
            ),
            summary=summary,
            trend_charts=charts,
            reading_history=history,
            breakdown=breakdown,
        )
