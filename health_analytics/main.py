"""
FastAPI application entry point for the Health Analytics API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging with request id propagation
- Dependency Injection: services and repositories injected via Depends()
- Exception Handling: consistent error responses via setup_exception_handlers()
- CORS Middleware
- Lifespan Management: database initialization
- Metrics Collection: in-memory metrics for Prometheus scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack (order matters!)                          │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics endpoints  │
    │    └── history.py    - history, report export, chart        │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── HealthAnalyticsService - Summaries, trends, history  │
    │    ├── ReportService          - CSV / JSON / PDF export     │
    │    └── GraphService           - Plotly trend chart          │
    ├─────────────────────────────────────────────────────────────┤
    │  Repositories (repositories/)   ← Injected into Services    │
    │    ├── HealthRecordRepository   - Record reads              │
    │    └── SubjectProfileRepository - Profile reads             │
    ├─────────────────────────────────────────────────────────────┤
    │  Database (SQLite)              ← Injected into Repositories│
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from health_analytics import __version__
from health_analytics.api.routers import health_router, history_router
from health_analytics.core.config import settings
from health_analytics.core.dependencies import get_database
from health_analytics.core.exceptions import setup_exception_handlers
from health_analytics.core.logging_config import setup_logging
from health_analytics.core.middleware import LoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, create the data directory and open the
    database (which creates the schema). Shutdown: log and exit.
    """
    setup_logging(level="INFO", json_format=True, tz=settings.reporting_timezone)

    logger = logging.getLogger(__name__)
    logger.info("Starting Health Analytics API...")

    settings.ensure_directories()
    db = get_database()
    logger.info(
        "Database initialized",
        extra={"db_path": db.db_path, "timezone": settings.health_analytics_timezone}
    )

    yield

    logger.info("Health Analytics API shutting down...")


app = FastAPI(
    title="Health Analytics API",
    description="Health history analytics: period summaries with period-over-period change, "
                "trend series, reading history, and CSV/JSON/PDF report export.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Executed in REVERSE order of registration.

# 1. CORS Middleware (innermost - closest to routes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging Middleware (outermost - captures all requests)
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(history_router)


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "health_analytics.main:app",
        host=settings.health_analytics_host,
        port=settings.health_analytics_port,
        reload=settings.health_analytics_reload
    )


if __name__ == "__main__":
    run()
