"""
Shared report model and formatting.

Every renderer takes a ReportContext (history + profile + generation instant +
reporting timezone) and returns bytes. The statistics wording is built once
here so CSV, JSON and PDF reports never disagree.
"""
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from health_analytics.core.datetime_utils import local_date, to_local
from health_analytics.core.exceptions import UnsupportedReportFormatError
from health_analytics.core.metric_registry import require_family
from health_analytics.models import SubjectProfile
from health_analytics.schemas import HealthHistory, PeriodSummary


class ReportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @classmethod
    def parse(cls, value: str) -> "ReportFormat":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            raise UnsupportedReportFormatError(report_format=value)


_MEDIA_TYPES = {
    ReportFormat.CSV: "text/csv",
    ReportFormat.JSON: "application/json",
    ReportFormat.PDF: "application/pdf",
}


def report_filename(start_date: date, end_date: date, report_format: ReportFormat) -> str:
    """health_history_<start>_to_<end>.<ext>"""
    return f"health_history_{start_date.isoformat()}_to_{end_date.isoformat()}.{report_format.value}"


def format_thousands(value: int) -> str:
    return f"{value:,}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def format_long_date(day: date) -> str:
    """15 January 2024"""
    return f"{day.day:02d} {day.strftime('%B %Y')}"


@dataclass(frozen=True)
class ReportContext:
    """Everything a renderer needs."""

    history: HealthHistory
    profile: SubjectProfile
    generated_at: datetime
    tz: tzinfo

    @property
    def today(self) -> date:
        return local_date(self.generated_at, self.tz)

    @property
    def age(self) -> Optional[int]:
        return self.profile.age_on(self.today)

    @property
    def generated_label(self) -> str:
        """Generation time in the reporting timezone, e.g. "15 January 2024, 10:30:00 WIB"."""
        local = to_local(self.generated_at, self.tz)
        return f"{format_long_date(local.date())}, {local.strftime('%H:%M:%S %Z')}".strip()

    @property
    def period_label(self) -> str:
        window = self.history.window
        return f"{format_long_date(window.start_date)} to {format_long_date(window.end_date)}"

    def patient_info(self) -> Dict[str, Any]:
        return {
            "name": self.profile.name,
            "age": self.age,
            "height_cm": self.profile.height_cm,
        }

    def patient_lines(self) -> List[Tuple[str, str]]:
        """Label/value pairs for the patient block; unknown values are left out."""
        lines = [("Name", self.profile.name)]
        if self.age is not None:
            lines.append(("Age", f"{self.age} years"))
        if self.profile.height_cm is not None:
            lines.append(("Height", f"{self.profile.height_cm} cm"))
        return lines


# =============================================================================
# STATISTICS WORDING
# =============================================================================

def statistics_blocks(summary: PeriodSummary) -> List[Tuple[str, List[Tuple[str, str]]]]:
    """
    Label/value blocks per present family, in registry order.

    Returns:
        [(family title, [(label, value), ...]), ...]
    """
    blocks = []
    bp = summary.blood_pressure
    if bp is not None:
        blocks.append((require_family("blood_pressure").display_name.upper(), [
            ("Average Systolic", f"{bp.avg_systolic:.2f} mmHg"),
            ("Average Diastolic", f"{bp.avg_diastolic:.2f} mmHg"),
            ("Change", format_percent(bp.change_percent)),
            ("Status", bp.status),
            ("Systolic Assessment", bp.systolic_assessment),
            ("Diastolic Assessment", bp.diastolic_assessment),
            ("Normal Range", bp.normal_range or ""),
            ("Readings", str(bp.readings)),
        ]))
    sugar = summary.blood_sugar
    if sugar is not None:
        blocks.append((require_family("blood_sugar").display_name.upper(), [
            ("Average", f"{sugar.avg_value:.2f} mg/dL"),
            ("Change", format_percent(sugar.change_percent)),
            ("Status", sugar.status),
            ("Assessment", sugar.assessment),
            ("Normal Range", sugar.normal_range or ""),
            ("Readings", str(sugar.readings)),
        ]))
    weight = summary.weight
    if weight is not None:
        lines = [
            ("Average", f"{weight.avg_weight:.2f} kg"),
            ("Trend", weight.trend),
            ("Change", format_percent(weight.change_percent)),
        ]
        if weight.bmi is not None:
            lines.append(("BMI", f"{weight.bmi:.2f}"))
        lines.append(("Readings", str(weight.readings)))
        blocks.append((require_family("weight").display_name.upper(), lines))
    activity = summary.activity
    if activity is not None:
        blocks.append((require_family("activity").display_name.upper(), [
            ("Total Steps", format_thousands(activity.total_steps)),
            ("Total Calories", f"{format_thousands(activity.total_calories)} kcal"),
            ("Change", format_percent(activity.change_percent)),
            ("Entries", str(activity.readings)),
        ]))
    return blocks


def statistics_table_rows(summary: PeriodSummary) -> List[List[str]]:
    """Rows for the four-column (Parameter, Value, Status/Trend, Change) PDF table."""
    rows = []
    bp = summary.blood_pressure
    if bp is not None:
        rows.append([
            "Blood Pressure",
            f"Systolic: {bp.avg_systolic:.2f} mmHg\nDiastolic: {bp.avg_diastolic:.2f} mmHg",
            f"{bp.status} (systolic {bp.systolic_assessment}, diastolic {bp.diastolic_assessment})",
            format_percent(bp.change_percent),
        ])
        if bp.normal_range:
            rows.append(["", f"Normal range: {bp.normal_range}", "", ""])
    sugar = summary.blood_sugar
    if sugar is not None:
        rows.append([
            "Blood Sugar",
            f"Average: {sugar.avg_value:.2f} mg/dL",
            f"{sugar.status} ({sugar.assessment})",
            format_percent(sugar.change_percent),
        ])
        if sugar.normal_range:
            rows.append(["", f"Normal range: {sugar.normal_range}", "", ""])
    weight = summary.weight
    if weight is not None:
        value = f"Average: {weight.avg_weight:.2f} kg"
        if weight.bmi is not None:
            value += f"\nBMI: {weight.bmi:.2f}"
        rows.append(["Weight", value, f"Trend: {weight.trend}", format_percent(weight.change_percent)])
    activity = summary.activity
    if activity is not None:
        rows.append([
            "Activity",
            f"Steps: {format_thousands(activity.total_steps)}\n"
            f"Calories: {format_thousands(activity.total_calories)} kcal",
            f"{activity.readings} entries",
            format_percent(activity.change_percent),
        ])
    return rows
