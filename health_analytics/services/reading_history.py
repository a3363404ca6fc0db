"""
Reading history reconstruction.

Flattens records into one entry per metric observation, newest first. A record
yields entries in a fixed family order (blood pressure, blood sugar, weight,
heart rate, activity); records with the same timestamp keep their input order.
"""
from typing import Iterable, List

from health_analytics.core.metric_registry import ACTIVITY, BLOOD_PRESSURE, BLOOD_SUGAR, HEART_RATE, WEIGHT
from health_analytics.models import HealthRecord
from health_analytics.schemas import ReadingEntry
from health_analytics.services.status import (
    ReadingStatus,
    assess_blood_sugar,
    assess_heart_rate,
    assess_systolic,
)


def record_entries(record: HealthRecord) -> List[ReadingEntry]:
    """Entries for a single record, in family order."""
    entries = []

    def add(metric_type: str, value: str, status: ReadingStatus) -> None:
        entries.append(ReadingEntry(
            record_id=record.id,
            timestamp=record.timestamp,
            metric_type=metric_type,
            value=value,
            status=status.value,
        ))

    if record.has_blood_pressure:
        add(BLOOD_PRESSURE, f"{record.systolic}/{record.diastolic} mmHg", assess_systolic(record.systolic))
    if record.has_blood_sugar:
        add(BLOOD_SUGAR, f"{record.blood_sugar} mg/dL", assess_blood_sugar(record.blood_sugar))
    if record.has_weight:
        add(WEIGHT, f"{record.weight:.2f} kg", ReadingStatus.NORMAL)
    if record.has_heart_rate:
        add(HEART_RATE, f"{record.heart_rate} bpm", assess_heart_rate(record.heart_rate))
    if record.has_activity:
        add(ACTIVITY, record.activity, ReadingStatus.NORMAL)
    return entries


def build_reading_history(records: Iterable[HealthRecord]) -> List[ReadingEntry]:
    """All entries for ``records``, sorted by timestamp descending (stable)."""
    ordered = sorted(records, key=lambda r: r.timestamp, reverse=True)
    return [entry for record in ordered for entry in record_entries(record)]
