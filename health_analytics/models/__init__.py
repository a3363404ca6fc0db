"""
Domain models for the analytics engine.
"""
from health_analytics.models.health_record import HealthRecord
from health_analytics.models.subject_profile import DEFAULT_SUBJECT_NAME, SubjectProfile

__all__ = ["HealthRecord", "SubjectProfile", "DEFAULT_SUBJECT_NAME"]
