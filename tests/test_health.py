"""
Tests for health, readiness, and metrics endpoints.
"""
import json
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.testclient import TestClient

from health_analytics import __version__
from health_analytics.core.logging_config import (
    ContextTextFormatter,
    JSONFormatter,
    bind_subject,
    clear_log_context,
    get_subject_id,
    set_request_id,
)
from health_analytics.core.middleware import LoggingMiddleware, MetricsCollector, RequestMetrics
from health_analytics.services.analytics_service import HealthAnalyticsService


# =============================================================================
# ROOT / LIVENESS / READINESS
# =============================================================================

def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Health Analytics API"
    assert data["version"] == __version__
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["timestamp"].endswith("Z")


def test_ready_endpoint(client):
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["dependencies"][0]["name"] == "database"
    assert data["dependencies"][0]["status"] == "ok"


# =============================================================================
# METRICS
# =============================================================================

def test_metrics_endpoint(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    content = response.text
    assert "http_requests_total" in content
    assert "reports_rendered_total" in content


def test_metrics_json_endpoint(client):
    response = client.get("/metrics/json")
    assert response.status_code == 200
    data = response.json()
    assert "http_requests_total" in data
    assert "http_request_duration_ms_p95" in data
    assert "reports_rendered_total" in data


class TestMetricsCollector:
    def _request(self, status_code, duration_ms=10.0):
        return RequestMetrics(
            timestamp=datetime.now(timezone.utc),
            method="GET",
            path="/x",
            status_code=status_code,
            duration_ms=duration_ms,
            request_id="abc",
        )

    def test_counts_by_status(self):
        collector = MetricsCollector()
        collector.record_request(self._request(200))
        collector.record_request(self._request(404))
        collector.record_request(self._request(502))
        summary = collector.get_summary()
        assert summary["http_requests_total"] == 3
        assert summary["http_requests_2xx_total"] == 1
        assert summary["http_requests_4xx_total"] == 1
        assert summary["http_requests_5xx_total"] == 1

    def test_empty_percentiles(self):
        assert MetricsCollector().get_latency_percentiles() == {"p50": 0, "p95": 0, "p99": 0}

    def test_reports_by_format(self):
        collector = MetricsCollector()
        collector.record_report("pdf")
        collector.record_report("pdf")
        collector.record_report("csv")
        assert collector.get_summary()["reports_rendered_total"] == 3
        text = collector.get_prometheus_format()
        assert 'reports_rendered_total{format="pdf"} 2' in text
        assert 'reports_rendered_total{format="csv"} 1' in text


# =============================================================================
# LOGGING
# =============================================================================

def test_request_id_header():
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    response = TestClient(app).get("/ping")
    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 8


def _log_record(msg="Report exported"):
    return logging.LogRecord(
        name="health_analytics.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_includes_extra_fields_and_request_id():
    record = _log_record()
    record.user_id = 7
    set_request_id("req12345")
    try:
        payload = json.loads(JSONFormatter().format(record))
    finally:
        clear_log_context()
    assert payload["message"] == "Report exported"
    assert payload["extra"]["user_id"] == 7
    assert payload["request_id"] == "req12345"
    assert "subject_id" not in payload
    assert "local_time" not in payload


def test_json_formatter_adds_subject_and_local_time():
    record = _log_record()
    record.created = datetime(2024, 3, 15, 5, 0, tzinfo=timezone.utc).timestamp()
    bind_subject(42)
    try:
        payload = json.loads(JSONFormatter(tz=ZoneInfo("Asia/Jakarta")).format(record))
    finally:
        clear_log_context()
    assert payload["timestamp"] == "2024-03-15T05:00:00.000Z"
    assert payload["local_time"] == "2024-03-15T12:00:00+07:00"
    assert payload["subject_id"] == 42


def test_text_formatter_appends_context():
    set_request_id("abcd1234")
    bind_subject(3)
    try:
        line = ContextTextFormatter().format(_log_record("Chart rendered"))
    finally:
        clear_log_context()
    assert line.endswith("Chart rendered [req=abcd1234 user=3]")


def test_history_requests_bind_subject(client, monkeypatch):
    seen = []

    original = HealthAnalyticsService.get_summary

    def spy(self, *args, **kwargs):
        seen.append(get_subject_id())
        return original(self, *args, **kwargs)

    monkeypatch.setattr(HealthAnalyticsService, "get_summary", spy)
    assert client.get("/api/v1/users/5/health-history").status_code == 200
    assert seen == [5]
