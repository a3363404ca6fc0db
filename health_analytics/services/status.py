"""
Status classification for raw health metric values.

Two independent classifier families live here and are deliberately kept apart:

- WHO bands (Low / Normal / High) used for summary status and reused by the
  alerting subsystem, plus BMI.
- Reading bands (Normal / Attention / Abnormal) used for reading history and
  the per-component assessments in summaries.

The two families disagree at several boundaries (systolic 121-139 is WHO
"Normal" but a reading "Attention"); callers pick the family they need.
"""
from enum import Enum
from typing import Optional


class WhoStatus(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"


class ReadingStatus(str, Enum):
    NORMAL = "Normal"
    ATTENTION = "Attention"
    ABNORMAL = "Abnormal"


# =============================================================================
# WHO BANDS
# =============================================================================

def get_blood_pressure_status(systolic: int, diastolic: int) -> WhoStatus:
    """Joint blood pressure band: either component can push it Low or High."""
    if systolic < 90 or diastolic < 60:
        return WhoStatus.LOW
    if systolic >= 140 or diastolic >= 90:
        return WhoStatus.HIGH
    return WhoStatus.NORMAL


def get_blood_sugar_status(value: float) -> WhoStatus:
    if value < 70:
        return WhoStatus.LOW
    if value > 140:
        return WhoStatus.HIGH
    return WhoStatus.NORMAL


def get_heart_rate_status(bpm: float) -> WhoStatus:
    if bpm < 60:
        return WhoStatus.LOW
    if bpm > 100:
        return WhoStatus.HIGH
    return WhoStatus.NORMAL


def calculate_bmi(weight_kg: float, height_cm: float) -> Optional[float]:
    """
    Body mass index, or None when either input is not positive.

    Args:
        weight_kg: Body weight in kilograms.
        height_cm: Height in centimetres.
    """
    if weight_kg is None or height_cm is None or weight_kg <= 0 or height_cm <= 0:
        return None
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def get_bmi_status(weight_kg: float, height_cm: float) -> Optional[WhoStatus]:
    """BMI band, or None (no status) when height or weight is missing or not positive."""
    bmi = calculate_bmi(weight_kg, height_cm)
    if bmi is None:
        return None
    if bmi < 18.5:
        return WhoStatus.LOW
    if bmi >= 25:
        return WhoStatus.HIGH
    return WhoStatus.NORMAL


# =============================================================================
# READING BANDS
# =============================================================================
# Closed integer bands applied to the raw value. A fractional average that
# falls between two bands (120.5 systolic, 69.5 sugar) matches neither and is
# Abnormal.

def assess_systolic(value: float) -> ReadingStatus:
    if 90 <= value <= 120:
        return ReadingStatus.NORMAL
    if 121 <= value <= 139:
        return ReadingStatus.ATTENTION
    return ReadingStatus.ABNORMAL


def assess_diastolic(value: float) -> ReadingStatus:
    if 60 <= value <= 80:
        return ReadingStatus.NORMAL
    if 81 <= value <= 89:
        return ReadingStatus.ATTENTION
    return ReadingStatus.ABNORMAL


def assess_blood_sugar(value: float) -> ReadingStatus:
    if 70 <= value <= 100:
        return ReadingStatus.NORMAL
    if 101 <= value <= 125 or 60 <= value <= 69:
        return ReadingStatus.ATTENTION
    return ReadingStatus.ABNORMAL


def assess_heart_rate(value: float) -> ReadingStatus:
    if 60 <= value <= 100:
        return ReadingStatus.NORMAL
    if 101 <= value <= 120 or 50 <= value <= 59:
        return ReadingStatus.ATTENTION
    return ReadingStatus.ABNORMAL
