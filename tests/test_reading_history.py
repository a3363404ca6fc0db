"""
Tests for reading history reconstruction.
"""
from datetime import datetime, timezone

from health_analytics.models import HealthRecord
from health_analytics.services.reading_history import build_reading_history, record_entries


def _record(record_id, hour, **metrics):
    return HealthRecord(
        id=record_id,
        user_id=1,
        timestamp=datetime(2024, 3, 14, hour, 0, tzinfo=timezone.utc),
        **metrics
    )


def test_entries_follow_family_order():
    record = _record(
        1, 2,
        activity="walked 30 minutes",
        heart_rate=72,
        weight=70.5,
        blood_sugar=95,
        systolic=118,
        diastolic=76,
    )
    entries = record_entries(record)
    assert [e.metric_type for e in entries] == [
        "blood_pressure", "blood_sugar", "weight", "heart_rate", "activity"
    ]
    assert [e.value for e in entries] == [
        "118/76 mmHg", "95 mg/dL", "70.50 kg", "72 bpm", "walked 30 minutes"
    ]
    assert all(e.status == "Normal" for e in entries)
    assert all(e.record_id == 1 for e in entries)


def test_blood_pressure_status_follows_systolic():
    entries = record_entries(_record(1, 2, systolic=135, diastolic=95))
    assert entries[0].status == "Attention"


def test_status_bands():
    entries = record_entries(_record(1, 2, blood_sugar=130, heart_rate=55))
    assert [e.status for e in entries] == ["Abnormal", "Attention"]


def test_partial_and_blank_metrics_are_skipped():
    entries = record_entries(_record(1, 2, systolic=120, activity="   "))
    assert entries == []


def test_newest_first_and_stable_for_ties():
    older = _record(1, 1, blood_sugar=90)
    tie_a = _record(2, 5, blood_sugar=100)
    tie_b = _record(3, 5, weight=60.0)
    history = build_reading_history([older, tie_a, tie_b])
    assert [e.record_id for e in history] == [2, 3, 1]


def test_empty():
    assert build_reading_history([]) == []
