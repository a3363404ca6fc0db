"""
FastAPI Dependency Injection configuration for the Health Analytics API.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (HealthAnalyticsService, ReportService, GraphService)
         ↓ Injected
    Repository Layer (HealthRecordRepository, SubjectProfileRepository)
         ↓ Injected
    Database (SQLite Connection)

The reporting timezone is read from settings once here and handed to the
window resolver, which the analytics and report services share.

Testing:
    app.dependency_overrides[get_analytics_service] = lambda: analytics_service
"""
import logging
from typing import Optional

from health_analytics.core.config import settings
from health_analytics.core.logging_config import bind_subject

logger = logging.getLogger(__name__)


# =============================================================================
# DATABASE DEPENDENCY
# =============================================================================

# Imported lazily to avoid circular imports with repositories.
_database_instance: Optional["Database"] = None


def get_database() -> "Database":
    """
    Get the database instance (created on first use, then reused).

    Returns:
        Database: The configured database instance.
    """
    global _database_instance

    if _database_instance is None:
        from health_analytics.repositories.base import Database

        logger.info(f"Initializing database: {settings.database_path}")
        _database_instance = Database(
            db_path=settings.database_path,
            busy_timeout=settings.health_analytics_db_busy_timeout
        )
        logger.info("Database initialized successfully")

    return _database_instance


def reset_database() -> None:
    """Drop the cached database instance (for testing only)."""
    global _database_instance
    _database_instance = None


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_health_record_repository() -> "HealthRecordRepository":
    """
    Get a HealthRecordRepository instance with database injected.

    Returns:
        HealthRecordRepository: Read access to health records.
    """
    from health_analytics.repositories import HealthRecordRepository

    return HealthRecordRepository(db=get_database())


def get_subject_profile_repository() -> "SubjectProfileRepository":
    """Get a SubjectProfileRepository instance with database injected."""
    from health_analytics.repositories import SubjectProfileRepository

    return SubjectProfileRepository(db=get_database())


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_window_resolver() -> "TimeWindowResolver":
    """Get a TimeWindowResolver bound to the configured reporting timezone."""
    from health_analytics.services.time_window import TimeWindowResolver

    return TimeWindowResolver(tz=settings.reporting_timezone)


def get_analytics_service() -> "HealthAnalyticsService":
    """
    Get a HealthAnalyticsService instance with its record source and
    window resolver injected.

    Returns:
        HealthAnalyticsService: Builds health histories.
    """
    from health_analytics.services.analytics_service import HealthAnalyticsService

    return HealthAnalyticsService(
        record_source=get_health_record_repository(),
        window_resolver=get_window_resolver(),
    )


def get_report_service() -> "ReportService":
    """
    Get a ReportService instance.

    The PDF renderer's stream compression follows settings.

    Returns:
        ReportService: Renders CSV, JSON and PDF exports.
    """
    from health_analytics.services.report import PdfReportRenderer, ReportService

    return ReportService(
        analytics_service=get_analytics_service(),
        record_source=get_health_record_repository(),
        profile_source=get_subject_profile_repository(),
        pdf_renderer=PdfReportRenderer(compress=settings.health_analytics_pdf_compression),
    )


def get_graph_service() -> "GraphService":
    """
    Get a GraphService instance.

    GraphService is stateless and doesn't require repository injection.
    """
    from health_analytics.services.graph import GraphService

    return GraphService()


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

async def bind_log_subject(user_id: int) -> int:
    """
    Router-level dependency tagging the request's log lines with ``user_id``.

    Async so the context variable is set on the request's own task.
    """
    bind_subject(user_id)
    return user_id
