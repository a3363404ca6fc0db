"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from health_analytics.api.routers.health import router as health_router
from health_analytics.api.routers.history import router as history_router

__all__ = ["health_router", "history_router"]
