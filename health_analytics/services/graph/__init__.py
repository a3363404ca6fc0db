"""
Trend chart rendering (Plotly).
"""
from health_analytics.services.graph.graph_service import GraphService
from health_analytics.services.graph.plotly_builder import PlotlyBuilder

__all__ = ["GraphService", "PlotlyBuilder"]
