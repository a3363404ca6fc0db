"""
Tests for ReportService.
"""
import json
from datetime import date

import pytest

from health_analytics.core.exceptions import DegradedLookupError, UpstreamFetchFailedError, degraded_lookup
from health_analytics.models import HealthRecord, SubjectProfile
from health_analytics.services.report import ReportFormat, ReportService
from health_analytics.services.time_window import RangeSelector


class TestExportReport:
    def test_csv_export(self, report_service, add_record, subject_id):
        add_record(1, systolic=118, diastolic=78, height_cm=172)
        content, filename = report_service.export_report(subject_id, ReportFormat.CSV)
        assert filename == "health_history_2024-03-09_to_2024-03-15.csv"
        text = content.decode("utf-8")
        assert "Budi Santoso" in text
        assert "Height,172 cm" in text

    def test_json_export_with_custom_range(self, report_service, add_record, subject_id):
        add_record(20, blood_sugar=100)
        content, filename = report_service.export_report(
            subject_id, ReportFormat.JSON, RangeSelector.CUSTOM, date(2024, 2, 1), date(2024, 2, 29)
        )
        assert filename == "health_history_2024-02-01_to_2024-02-29.json"
        document = json.loads(content)
        assert document["period"]["time_range"] == "custom"
        assert document["statistics_summary"]["blood_sugar"]["readings"] == 1

    def test_pdf_export(self, report_service, add_record, subject_id):
        add_record(0, weight=70.0)
        content, filename = report_service.export_report(subject_id, ReportFormat.PDF)
        assert filename.endswith(".pdf")
        assert content.startswith(b"%PDF")

    def test_unknown_subject_gets_default_name(self, report_service):
        content, _ = report_service.export_report(4242, ReportFormat.JSON)
        assert json.loads(content)["patient_info"]["name"] == "User"


class _ProfileSource:
    def __init__(self, profile):
        self.profile = profile

    def fetch_subject_profile(self, user_id):
        return self.profile


class _RecordSource:
    def __init__(self, latest=None, fail=False):
        self.latest = latest
        self.fail = fail

    def fetch_records(self, user_id, start, end):
        return []

    def fetch_records_for_comparison(self, user_id, window):
        return []

    def fetch_latest_record(self, user_id):
        if self.fail:
            raise UpstreamFetchFailedError(operation="fetch_latest_record")
        return self.latest


class TestLoadProfile:
    def _service(self, analytics_service, profile, records):
        return ReportService(
            analytics_service=analytics_service,
            record_source=records,
            profile_source=_ProfileSource(profile),
        )

    def test_height_falls_back_to_latest_record(self, analytics_service, at):
        latest = HealthRecord(id=1, user_id=1, timestamp=at(0), height_cm=165)
        service = self._service(analytics_service, SubjectProfile(name="Rina"), _RecordSource(latest))
        assert service.load_profile(1).height_cm == 165

    def test_failed_height_lookup_is_not_fatal(self, analytics_service):
        service = self._service(analytics_service, SubjectProfile(name="Rina"), _RecordSource(fail=True))
        profile = service.load_profile(1)
        assert profile.name == "Rina"
        assert profile.height_cm is None

    def test_known_height_skips_lookup(self, analytics_service):
        service = self._service(
            analytics_service, SubjectProfile(name="Rina", height_cm=160), _RecordSource(fail=True)
        )
        assert service.load_profile(1).height_cm == 160

    def test_profile_failure_aborts(self, analytics_service):
        class _Failing:
            def fetch_subject_profile(self, user_id):
                raise UpstreamFetchFailedError(operation="fetch_subject_profile")

        service = ReportService(
            analytics_service=analytics_service,
            record_source=_RecordSource(),
            profile_source=_Failing(),
        )
        with pytest.raises(UpstreamFetchFailedError):
            service.export_report(1, ReportFormat.CSV)


class TestDegradedLookup:
    def test_returns_result(self):
        assert degraded_lookup(lambda: 42, fallback=0, name="answer") == 42

    def test_degraded_error_returns_fallback(self):
        def lookup():
            raise DegradedLookupError()

        assert degraded_lookup(lookup, fallback="none", name="optional") == "none"

    def test_other_errors_propagate(self):
        def lookup():
            raise ValueError("bug")

        with pytest.raises(ValueError):
            degraded_lookup(lookup, fallback=None, name="optional")
