"""
Health, readiness, and metrics endpoints for operational visibility.

- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (is the database reachable?)
- /metrics: Prometheus-compatible metrics
- /metrics/json: The same metrics as JSON

No authentication; these are for infrastructure.
"""
import logging
import sqlite3
import time
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Response
from pydantic import BaseModel

from health_analytics import __version__
from health_analytics.core.exceptions import HealthAnalyticsError
from health_analytics.core.middleware import get_metrics_collector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok" or "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready" or "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float
    reports_rendered_total: int


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Check if the application is running. Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    """Liveness probe. No I/O; always 200 while the process is up."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

async def _check_database() -> DependencyStatus:
    """
    Check SQLite database connectivity with a trivial query.
    """
    from health_analytics.core.dependencies import get_database

    start = time.perf_counter()
    try:
        db = get_database()
        with closing(db.get_connection()) as conn:
            conn.execute("SELECT 1")

        latency_ms = (time.perf_counter() - start) * 1000
        return DependencyStatus(
            name="database",
            status="ok",
            latency_ms=round(latency_ms, 2),
            message="SQLite connection healthy"
        )
    except (sqlite3.Error, HealthAnalyticsError) as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.error("Database health check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="database",
            status="unavailable",
            latency_ms=round(latency_ms, 2),
            message=f"Connection failed: {type(e).__name__}"
        )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Check if the application is ready to serve requests. Returns 503 if the database is unreachable."
)
async def readiness_check(response: Response) -> ReadyResponse:
    """
    Readiness probe.

    Returns:
    - 200 with status="ready" if the database answers
    - 503 with status="not_ready" otherwise
    """
    db_status = await _check_database()
    dependencies = [db_status]

    if any(d.status == "unavailable" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    else:
        status = "ready"

    return ReadyResponse(
        status=status,
        dependencies=dependencies,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Export metrics in Prometheus text format. "
                "Includes HTTP request counts, latency percentiles, and reports rendered per format."
)
async def get_metrics() -> Response:
    """
    Export metrics in Prometheus text format.

    Scrape configuration (prometheus.yml):
        scrape_configs:
          - job_name: 'health-analytics'
            static_configs:
              - targets: ['localhost:8000']
            metrics_path: /metrics
    """
    collector = get_metrics_collector()
    return Response(
        content=collector.get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
    description="Export metrics in JSON format."
)
async def get_metrics_json() -> MetricsResponse:
    collector = get_metrics_collector()
    return MetricsResponse(**collector.get_summary())


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@router.get(
    "/",
    summary="API root",
    description="Root endpoint with basic API information."
)
async def root() -> Dict[str, Any]:
    """Service name, version, and links to documentation."""
    return {
        "service": "Health Analytics API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
