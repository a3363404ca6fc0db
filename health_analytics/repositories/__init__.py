"""
Repository layer for data access.

Architecture:
    API Layer (routers) -> Service Layer -> Repository Layer (this package) -> SQLite
"""
from health_analytics.repositories.base import Database
from health_analytics.repositories.health_record_repository import HealthRecordRepository
from health_analytics.repositories.profile_repository import SubjectProfileRepository

__all__ = ["Database", "HealthRecordRepository", "SubjectProfileRepository"]
