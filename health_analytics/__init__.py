"""
Health Analytics - summaries, trend charts, reading history and reports
for personal health metrics.
"""

__version__ = "1.0.0"
