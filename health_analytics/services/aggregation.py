"""
Nullable-aware aggregation of health records into per-family summaries.

Each family only looks at records where all of its fields are present; a
family with no such records is left out of the summary entirely. Averages are
rounded to two decimals half away from zero, and change percentages come from
the same family's values over the prior period.

WHO statuses are taken from the whole-number part of an average (140.5 mg/dL
is Normal); reading-band assessments see the unrounded average.
"""
import logging
from typing import Iterable, List, Optional, Sequence

from health_analytics.core.metric_registry import (
    ACTIVITY,
    BLOOD_PRESSURE,
    BLOOD_SUGAR,
    WEIGHT,
    require_family,
    summarized_family_keys,
)
from health_analytics.models import HealthRecord
from health_analytics.schemas import (
    ActivitySummary,
    BloodPressureSummary,
    BloodSugarSummary,
    PeriodSummary,
    WeightSummary,
)
from health_analytics.services.activity import ActivityEstimator, FlatRateActivityEstimator
from health_analytics.services.comparison import percent_change, round_half_away
from health_analytics.services.status import (
    assess_blood_sugar,
    assess_diastolic,
    assess_systolic,
    get_blood_pressure_status,
    get_blood_sugar_status,
)

logger = logging.getLogger(__name__)

# Weight changes inside +/- this many percent are reported as Stable.
WEIGHT_TREND_DEAD_BAND = 1.0


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def weight_trend(change: float) -> str:
    if change > WEIGHT_TREND_DEAD_BAND:
        return "Up"
    if change < -WEIGHT_TREND_DEAD_BAND:
        return "Down"
    return "Stable"


class Aggregator:
    """
    Builds PeriodSummary objects from record sets.

    Args:
        activity_estimator: Strategy used for step and calorie totals.
    """

    def __init__(self, activity_estimator: Optional[ActivityEstimator] = None):
        self._activity = activity_estimator or FlatRateActivityEstimator()

    def summarize_blood_pressure(
        self, records: Iterable[HealthRecord], prior: Iterable[HealthRecord] = ()
    ) -> Optional[BloodPressureSummary]:
        current = [r for r in records if r.has_blood_pressure]
        if not current:
            return None
        avg_systolic = _mean([r.systolic for r in current])
        avg_diastolic = _mean([r.diastolic for r in current])
        prior_systolic = _mean([r.systolic for r in prior if r.has_blood_pressure])
        return BloodPressureSummary(
            avg_systolic=round_half_away(avg_systolic),
            avg_diastolic=round_half_away(avg_diastolic),
            change_percent=percent_change(avg_systolic, prior_systolic),
            status=get_blood_pressure_status(int(avg_systolic), int(avg_diastolic)).value,
            systolic_assessment=assess_systolic(avg_systolic).value,
            diastolic_assessment=assess_diastolic(avg_diastolic).value,
            normal_range=require_family(BLOOD_PRESSURE).normal_range,
            readings=len(current),
        )

    def summarize_blood_sugar(
        self, records: Iterable[HealthRecord], prior: Iterable[HealthRecord] = ()
    ) -> Optional[BloodSugarSummary]:
        current = [r.blood_sugar for r in records if r.has_blood_sugar]
        if not current:
            return None
        avg = _mean(current)
        prior_avg = _mean([r.blood_sugar for r in prior if r.has_blood_sugar])
        return BloodSugarSummary(
            avg_value=round_half_away(avg),
            change_percent=percent_change(avg, prior_avg),
            status=get_blood_sugar_status(int(avg)).value,
            assessment=assess_blood_sugar(avg).value,
            normal_range=require_family(BLOOD_SUGAR).normal_range,
            readings=len(current),
        )

    def summarize_weight(
        self, records: Iterable[HealthRecord], prior: Iterable[HealthRecord] = ()
    ) -> Optional[WeightSummary]:
        current = [r.weight for r in records if r.has_weight]
        if not current:
            return None
        avg = _mean(current)
        prior_avg = _mean([r.weight for r in prior if r.has_weight])
        change = percent_change(avg, prior_avg)
        # BMI needs a height join this path does not do.
        return WeightSummary(
            avg_weight=round_half_away(avg),
            bmi=None,
            trend=weight_trend(change),
            change_percent=change,
            readings=len(current),
        )

    def summarize_activity(
        self, records: Iterable[HealthRecord], prior: Iterable[HealthRecord] = ()
    ) -> Optional[ActivitySummary]:
        current = self._activity.estimate(records)
        if current.entries == 0:
            return None
        previous = self._activity.estimate(prior)
        return ActivitySummary(
            total_steps=current.steps,
            total_calories=current.calories,
            change_percent=percent_change(current.steps, previous.steps),
            readings=current.entries,
        )

    def summarize(
        self,
        records: Sequence[HealthRecord],
        prior: Sequence[HealthRecord] = (),
        families: Optional[Sequence[str]] = None,
    ) -> PeriodSummary:
        """
        Summarize every requested family.

        Args:
            records: Records in the current period.
            prior: Records in the prior equivalent period (empty for no comparison).
            families: Canonical family keys to include; None means all.

        Returns:
            PeriodSummary with absent families set to None.
        """
        families = summarized_family_keys() if families is None else families
        summary = PeriodSummary()
        if BLOOD_PRESSURE in families:
            summary.blood_pressure = self.summarize_blood_pressure(records, prior)
        if BLOOD_SUGAR in families:
            summary.blood_sugar = self.summarize_blood_sugar(records, prior)
        if WEIGHT in families:
            summary.weight = self.summarize_weight(records, prior)
        if ACTIVITY in families:
            summary.activity = self.summarize_activity(records, prior)

        logger.debug(
            "Summarized records",
            extra={"records": len(records), "prior_records": len(prior), "families": list(families)}
        )
        return summary


def present_families(summary: PeriodSummary) -> List[str]:
    """Keys of the families present in ``summary``, in registry order."""
    return [key for key in summarized_family_keys() if getattr(summary, key) is not None]
