"""Unit conversion tables for counts, belt speeds and activities."""

from __future__ import annotations

from typing import Dict

from isolimit.core.models import ActivityUnit, CountUnit, SpeedUnit

SECONDS_PER_MINUTE = 60.0
GATE_TIME_S = 0.2  # counting gate of the C_02S unit
BQ_PER_CI = 3.7e10
BQ_PER_UCI = 3.7e4

SPEED_TO_CM_PER_S: Dict[SpeedUnit, float] = {
    SpeedUnit.CM_PER_S: 1.0,
    SpeedUnit.CM_PER_MIN: 1.0 / SECONDS_PER_MINUTE,
    SpeedUnit.M_PER_S: 100.0,
    SpeedUnit.M_PER_MIN: 100.0 / SECONDS_PER_MINUTE,
}

# Factor converting one unit into Bq (or Bq/cm² for surface units)
ACTIVITY_TO_BQ: Dict[ActivityUnit, float] = {
    ActivityUnit.BQ: 1.0,
    ActivityUnit.BQ_CM2: 1.0,
    ActivityUnit.DPS: 1.0,
    ActivityUnit.DPM: 1.0 / SECONDS_PER_MINUTE,
    ActivityUnit.DPM_CM2: 1.0 / SECONDS_PER_MINUTE,
    ActivityUnit.UCI: BQ_PER_UCI,
    ActivityUnit.UCI_CM2: BQ_PER_UCI,
    ActivityUnit.CI: BQ_PER_CI,
}

_SURFACE_UNITS = {ActivityUnit.BQ_CM2, ActivityUnit.DPM_CM2, ActivityUnit.UCI_CM2}


def count_rate(count: float, unit: CountUnit, time_s: float) -> float:
    """Convert a raw reading into counts per second.

    Only ``CountUnit.COUNTS`` depends on ``time_s``; the caller is responsible
    for rejecting non-positive times.
    """
    if unit is CountUnit.COUNTS:
        return count / time_s
    if unit is CountUnit.CPS:
        return count
    if unit is CountUnit.CPM:
        return count / SECONDS_PER_MINUTE
    if unit is CountUnit.C_02S:
        return count / GATE_TIME_S
    raise ValueError(f"Unknown count unit: {unit!r}")


def speed_to_cm_per_s(speed: float, unit: SpeedUnit) -> float:
    return speed * SPEED_TO_CM_PER_S[unit]


def is_surface_unit(unit: ActivityUnit) -> bool:
    return unit in _SURFACE_UNITS


def convert_activity(value: float, from_unit: ActivityUnit, to_unit: ActivityUnit) -> float:
    """Convert an activity between units of the same kind.

    Raises
    ------
    ValueError
        If one unit is a surface activity and the other is not.
    """
    if is_surface_unit(from_unit) != is_surface_unit(to_unit):
        raise ValueError(f"Cannot convert {from_unit.value} to {to_unit.value}")
    return value * ACTIVITY_TO_BQ[from_unit] / ACTIVITY_TO_BQ[to_unit]


def calibration_unit_to_bq_factor(unit: str) -> float:
    """Factor bringing a calibration factor expressed in ``unit`` to Bq-based.

    ``unit`` is a free-form label such as ``"Bq/(c/s)"``, ``"dpm/(c/s)"`` or
    ``"µCi/cm²/(c/s)"``; only its leading activity part matters.
    """
    head = unit.strip().split("/", 1)[0].strip().lower()
    if head == "dpm":
        return ACTIVITY_TO_BQ[ActivityUnit.DPM]
    if head in ("µci", "uci"):
        return BQ_PER_UCI
    if head == "ci":
        return BQ_PER_CI
    return 1.0


__all__ = [
    "SECONDS_PER_MINUTE",
    "GATE_TIME_S",
    "ACTIVITY_TO_BQ",
    "SPEED_TO_CM_PER_S",
    "count_rate",
    "speed_to_cm_per_s",
    "is_surface_unit",
    "convert_activity",
    "calibration_unit_to_bq_factor",
]
