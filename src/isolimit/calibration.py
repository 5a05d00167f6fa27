"""
Calibration-factor helpers.

Derives the calibration factor w of a measurement from a reference source:
decay-correct the certified activity to the measurement date, then divide
it by the net count rate observed with that source.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Tuple

from isolimit.budget import UncertaintyCategory, calibration_uncertainty_budget
from isolimit.core.errors import unwrap
from isolimit.core.models import MeasurementInput
from isolimit.normalize import normalize_rates


def decay_constant(half_life_s: float) -> float:
    """Calculate decay constant lambda = ln(2) / t_half."""
    if half_life_s <= 0:
        raise ValueError(f"Half-life must be positive, got {half_life_s}")
    return math.log(2.0) / half_life_s


def decay_activity(initial_activity: float, half_life_s: float, time_s: float) -> float:
    """Calculate activity at time t given initial activity and half-life."""
    return initial_activity * math.exp(-decay_constant(half_life_s) * time_s)


def decay_corrected_activity(
    reference_activity: float,
    half_life_s: float,
    reference_date: datetime,
    measurement_date: datetime,
) -> float:
    """Activity of a reference source on ``measurement_date``.

    Parameters
    ----------
    reference_activity : float
        Certified activity on ``reference_date``
    half_life_s : float
        Half-life of the source nuclide in seconds
    reference_date, measurement_date : datetime
        Certificate and measurement dates (both naive or both aware)

    Returns
    -------
    float
        Decay-corrected activity, same units as ``reference_activity``
    """
    if reference_activity <= 0:
        raise ValueError(f"Reference activity must be positive, got {reference_activity}")
    elapsed_s = (measurement_date - reference_date).total_seconds()
    return decay_activity(reference_activity, half_life_s, elapsed_s)


def calibration_factor_from_source(activity: float, params: MeasurementInput) -> float:
    """w = A / r_net for a measurement of a source of known activity ``A``.

    ``params`` describes the source measurement in any mode; its own
    calibration factor only needs to be valid for normalization.

    Raises
    ------
    ValueError
        If the inputs cannot be normalized or the net rate is not positive.
    """
    if activity <= 0:
        raise ValueError(f"Source activity must be positive, got {activity}")
    rates = unwrap(normalize_rates(params))
    if rates.net_rate <= 0:
        raise ValueError(f"Net count rate must be positive, got {rates.net_rate}")
    return activity / rates.net_rate


def combined_calibration_uncertainty(
    source_rel_uncertainty: float,
    gross_counts: float,
    background_counts: float,
) -> Tuple[float, float]:
    """Relative uncertainty of w from the source certificate and the counting.

    Returns
    -------
    tuple of float
        (counting relative uncertainty, combined relative uncertainty)
    """
    budget = calibration_uncertainty_budget(source_rel_uncertainty, gross_counts, background_counts)
    counting = next(
        c.value for c in budget.components if c.category is UncertaintyCategory.COUNTING_STATISTICS
    )
    return counting, budget.total_uncertainty


__all__ = [
    "decay_constant",
    "decay_activity",
    "decay_corrected_activity",
    "calibration_factor_from_source",
    "combined_calibration_uncertainty",
]
