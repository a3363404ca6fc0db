"""
Shared pytest fixtures.

Key patterns:

1. Database Isolation: Each test gets a fresh temporary database
2. Frozen Clock: The window resolver runs at a fixed instant in Asia/Jakarta
3. DI Override: app.dependency_overrides injects the test services

Fixture Hierarchy:
    temp_db → repositories → services → test_app → client
"""
import os
import tempfile
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from health_analytics.core import dependencies as deps
from health_analytics.core.datetime_utils import to_utc
from health_analytics.core.exceptions import setup_exception_handlers
from health_analytics.repositories import (
    Database,
    HealthRecordRepository,
    SubjectProfileRepository,
)
from health_analytics.services.analytics_service import HealthAnalyticsService
from health_analytics.services.graph import GraphService
from health_analytics.services.report import PdfReportRenderer, ReportService
from health_analytics.services.time_window import TimeWindowResolver

TZ = ZoneInfo("Asia/Jakarta")

# 2024-03-15 12:00 in Jakarta (UTC+7). 2024 is a leap year.
NOW = datetime(2024, 3, 15, 5, 0, tzinfo=timezone.utc)
TODAY = NOW.astimezone(TZ).date()


def local_time(days_ago: int = 0, hour: int = 9, minute: int = 0) -> datetime:
    """UTC instant for ``hour:minute`` Jakarta time, ``days_ago`` days before TODAY."""
    day = TODAY - timedelta(days=days_ago)
    return to_utc(datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ))


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def today():
    """Frozen "today" in the reporting timezone (2024-03-15)."""
    return TODAY


@pytest.fixture
def at():
    """The local_time helper, for tests that build records by hand."""
    return local_time


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Each test gets a fresh SQLite file, removed afterwards.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    db = Database(db_path=db_path)
    yield db

    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def record_repo(temp_db):
    """Create a HealthRecordRepository with the test database."""
    return HealthRecordRepository(db=temp_db)


@pytest.fixture
def profile_repo(temp_db):
    """Create a SubjectProfileRepository with the test database."""
    return SubjectProfileRepository(db=temp_db)


@pytest.fixture
def subject_id(profile_repo):
    """A stored subject born 20 January 1990."""
    return profile_repo.create("Budi Santoso", birth_date=date(1990, 1, 20))


@pytest.fixture
def add_record(record_repo, subject_id):
    """
    Store a record for the test subject.

    Usage:
        add_record(days_ago=2, systolic=120, diastolic=80)
    """
    def _add(days_ago: int = 0, hour: int = 9, minute: int = 0, user_id=None, **metrics):
        return record_repo.save(
            user_id=user_id if user_id is not None else subject_id,
            timestamp=local_time(days_ago, hour, minute),
            **metrics
        )
    return _add


@pytest.fixture
def resolver():
    """Window resolver with a frozen clock."""
    return TimeWindowResolver(tz=TZ, clock=lambda: NOW)


@pytest.fixture
def analytics_service(record_repo, resolver):
    return HealthAnalyticsService(record_source=record_repo, window_resolver=resolver)


@pytest.fixture
def report_service(analytics_service, record_repo, profile_repo):
    """Report service whose PDFs are uncompressed so their text can be searched."""
    return ReportService(
        analytics_service=analytics_service,
        record_source=record_repo,
        profile_source=profile_repo,
        pdf_renderer=PdfReportRenderer(compress=False),
    )


@pytest.fixture
def graph_service():
    return GraphService()


@pytest.fixture
def test_app(temp_db, record_repo, profile_repo, resolver, analytics_service, report_service, graph_service):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers with test services injected through
    dependency_overrides. The readiness probe resolves the database directly,
    so the cached instance is pointed at the test database too.
    """
    from health_analytics.api.routers import health_router, history_router

    app = FastAPI(title="Health Analytics API Test")
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_health_record_repository] = lambda: record_repo
    app.dependency_overrides[deps.get_subject_profile_repository] = lambda: profile_repo
    app.dependency_overrides[deps.get_window_resolver] = lambda: resolver
    app.dependency_overrides[deps.get_analytics_service] = lambda: analytics_service
    app.dependency_overrides[deps.get_report_service] = lambda: report_service
    app.dependency_overrides[deps.get_graph_service] = lambda: graph_service
    deps._database_instance = temp_db

    app.include_router(health_router)
    app.include_router(history_router)

    yield app

    app.dependency_overrides.clear()
    deps.reset_database()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)
