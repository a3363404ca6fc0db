"""
Shared exception classes and error handling utilities for the Health Analytics service.

This module provides:
- Custom exception hierarchy for analytics and reporting errors
- Consistent error response formatting
- Exception handlers for FastAPI integration
- degraded_lookup() for enrichment calls whose failure must not abort a request

Usage:
    from health_analytics.core.exceptions import MissingRangeBoundsError

    # In service layer - raise domain exceptions
    raise MissingRangeBoundsError(start_date=None, end_date="2024-01-31")

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class HealthAnalyticsError(Exception):
    """
    Base exception for all Health Analytics domain errors.

    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# TIME WINDOW EXCEPTIONS
# =============================================================================

class MissingRangeBoundsError(HealthAnalyticsError):
    """Raised when a custom range is requested without both start and end dates."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "start_date and end_date are required for custom range"


class InvalidRangeError(HealthAnalyticsError):
    """Raised when a custom range starts after it ends."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "start_date must not be after end_date"


# =============================================================================
# REPORT EXCEPTIONS
# =============================================================================

class UnsupportedReportFormatError(HealthAnalyticsError):
    """Raised when an export is requested in a format we cannot render."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Unsupported report format"

    def __init__(self, report_format: Optional[str] = None, **kwargs: Any):
        detail = f"Unsupported report format '{report_format}'" if report_format else self.detail
        super().__init__(detail=detail, report_format=report_format, **kwargs)


# =============================================================================
# UPSTREAM / DATABASE EXCEPTIONS
# =============================================================================

class UpstreamFetchFailedError(HealthAnalyticsError):
    """
    Raised when the record or profile store fails.

    The engine never retries; the whole operation is aborted.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Failed to fetch health data"

    def __init__(self, operation: Optional[str] = None, **kwargs: Any):
        detail = f"Failed to fetch health data during {operation}" if operation else self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


class DatabaseError(HealthAnalyticsError):
    """Raised when the database cannot be initialised."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Database operation failed"

    def __init__(self, operation: Optional[str] = None, **kwargs: Any):
        detail = f"Database error during {operation}" if operation else self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


class DegradedLookupError(HealthAnalyticsError):
    """
    Raised when a non-critical enrichment lookup fails.

    Never reaches a client: degraded_lookup() converts it into a fallback value.
    """

    detail = "Optional lookup failed"


def degraded_lookup(
    lookup: Callable[[], T],
    fallback: T,
    name: str,
) -> T:
    """
    Run an enrichment lookup, returning ``fallback`` if it fails.

    Only DegradedLookupError and UpstreamFetchFailedError are absorbed; any
    other exception is a programming error and propagates.

    Args:
        lookup: Zero-argument callable performing the lookup.
        fallback: Value returned when the lookup fails.
        name: Lookup name for the warning log.

    Returns:
        The lookup result, or ``fallback``.
    """
    try:
        return lookup()
    except (DegradedLookupError, UpstreamFetchFailedError) as e:
        logger.warning(
            "Enrichment lookup failed, continuing without it",
            extra={"lookup": name, "error": e.detail}
        )
        return fallback


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def health_analytics_exception_handler(
    request: Request,
    exc: HealthAnalyticsError
) -> JSONResponse:
    """Handle HealthAnalyticsError exceptions and return consistent JSON responses."""
    logger.warning(
        f"HealthAnalyticsError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(HealthAnalyticsError, health_analytics_exception_handler)
