"""
Service layer: the analytics engine and its report and chart renderers.

Modules are imported directly (e.g. health_analytics.services.aggregation) so
that repositories can depend on time_window without pulling in the services
that depend on repositories.
"""
