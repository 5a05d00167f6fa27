"""
Rate normalization: raw readings of any measurement mode -> canonical rates.

Each measurement geometry has its own normalizer, registered in
``_NORMALIZERS``. All of them produce a :class:`CanonicalRates` tuple
(r_g, t_g, r_0, t_0, w, u_rel(w), scale) so the analytical and Monte Carlo
engines never branch on the mode.

Modes:
    standard              gross and background both through the unit table
    spectrometry          ROI gross counts, full-spectrum background scaled by
                          ROI channels / background channels
    surfaceContamination  user-estimated background rate, t_0 fixed at 1 s
    chamberMonitor        summed detector backgrounds, fixed dwell time
    conveyorMonitor       summed detector backgrounds, transit time L / v
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Tuple, Union

from isolimit.core.errors import CalculationError, ErrorKind
from isolimit.core.models import CanonicalRates, Detector, MeasurementInput, MeasurementMode
from isolimit.core.units import calibration_unit_to_bq_factor, count_rate, speed_to_cm_per_s

logger = logging.getLogger(__name__)

SURFACE_BACKGROUND_TIME_S = 1.0

NormalizationResult = Union[CanonicalRates, CalculationError]


def _invalid(message: str) -> CalculationError:
    return CalculationError(ErrorKind.INVALID_INPUT, message)


def _is_positive(value: float) -> bool:
    """Finite and strictly positive; NaN and infinities fail."""
    return math.isfinite(value) and value > 0


def enabled_detectors(params: MeasurementInput) -> List[Detector]:
    return [d for d in params.detectors if d.enabled]


def _calibration(
    params: MeasurementInput,
    auto_factor: Optional[float],
) -> Union[Tuple[float, float], CalculationError]:
    """Return (w, u_rel(w)), honouring automatic calibration."""
    if params.auto_calibration:
        if auto_factor is None:
            return _invalid(f"Automatic calibration is not available in {params.mode.value} mode")
        return auto_factor, 0.0

    w = params.calibration_factor * calibration_unit_to_bq_factor(params.calibration_factor_unit)
    return w, params.calibration_rel_uncertainty


def _finish(
    params: MeasurementInput,
    r_gross: float,
    t_gross: float,
    r_bkg: float,
    t_bkg: float,
    auto_factor: Optional[float] = None,
    background_scale: float = 1.0,
) -> NormalizationResult:
    calibration = _calibration(params, auto_factor)
    if isinstance(calibration, CalculationError):
        return calibration
    w, u_rel_w = calibration

    if not math.isfinite(w) or w <= 0:
        return _invalid(f"Calibration factor must be positive and finite, got {w}")
    if not math.isfinite(u_rel_w) or u_rel_w < 0:
        return _invalid(f"Relative calibration uncertainty must be >= 0, got {u_rel_w}")
    if not 0.0 <= params.correlation <= 1.0:
        return _invalid(f"Correlation coefficient must lie in [0, 1], got {params.correlation}")
    if not (math.isfinite(r_gross) and math.isfinite(r_bkg)):
        return _invalid(f"Count rates must be finite (gross={r_gross}, background={r_bkg})")
    if not _is_positive(background_scale):
        return _invalid(f"Channel ratio must be positive and finite, got {background_scale}")
    if r_gross < 0 or r_bkg < 0:
        return CalculationError(
            ErrorKind.NEGATIVE_RATE,
            f"Negative count rate (gross={r_gross}, background={r_bkg})",
        )

    rates = CanonicalRates(
        r_gross=r_gross,
        t_gross=t_gross,
        r_bkg=r_bkg,
        t_bkg=t_bkg,
        calibration_factor=w,
        calibration_rel_uncertainty=u_rel_w,
        background_scale=background_scale,
        mode=params.mode,
    )
    logger.debug(f"Normalized {params.mode.value} input: {rates}")
    return rates


def _normalize_standard(params: MeasurementInput) -> NormalizationResult:
    t_g, t_0 = params.gross_time, params.background_time
    if not (_is_positive(t_g) and _is_positive(t_0)):
        return _invalid(f"Acquisition times must be positive (t_g={t_g}, t_0={t_0})")
    r_g = count_rate(params.gross_count, params.gross_count_unit, t_g)
    r_0 = count_rate(params.background_count, params.background_count_unit, t_0)
    return _finish(params, r_g, t_g, r_0, t_0)


def _normalize_spectrometry(params: MeasurementInput) -> NormalizationResult:
    t_g, t_0 = params.gross_time, params.background_time
    if not (_is_positive(t_g) and _is_positive(t_0)):
        return _invalid(f"Acquisition times must be positive (t_g={t_g}, t_0={t_0})")

    if _is_positive(params.roi_channels) and _is_positive(params.background_channels):
        channel_ratio = params.roi_channels / params.background_channels
    else:
        channel_ratio = 1.0

    r_g = params.roi_gross_count / t_g
    r_0_total = params.background_total_count / t_0
    if r_0_total < 0:
        return CalculationError(ErrorKind.NEGATIVE_RATE, f"Negative background rate {r_0_total}")
    return _finish(params, r_g, t_g, r_0_total * channel_ratio, t_0, background_scale=channel_ratio)


def _normalize_surface(params: MeasurementInput) -> NormalizationResult:
    t_g = params.gross_time
    if not _is_positive(t_g):
        return _invalid(f"Gross acquisition time must be positive, got {t_g}")

    auto_factor = None
    if _is_positive(params.probe_efficiency) and _is_positive(params.probe_area):
        # activity per unit area per net count rate
        auto_factor = 1.0 / ((params.probe_efficiency / 100.0) * params.probe_area)

    r_g = count_rate(params.gross_count, params.gross_count_unit, t_g)
    return _finish(
        params,
        r_g,
        t_g,
        params.estimated_background_rate,
        SURFACE_BACKGROUND_TIME_S,
        auto_factor=auto_factor,
    )


def _monitor_background(
    params: MeasurementInput,
    detectors: List[Detector],
) -> float:
    return sum(count_rate(d.background, d.background_unit, params.background_time) for d in detectors)


def _monitor_calibration(detectors: List[Detector]) -> Optional[float]:
    effective_area = sum((d.efficiency / 100.0) * d.length * d.width for d in detectors)
    return 1.0 / effective_area if effective_area > 0 else None


def _normalize_monitor(params: MeasurementInput, t_g: float) -> NormalizationResult:
    detectors = enabled_detectors(params)
    t_0 = params.background_time
    if not _is_positive(t_0):
        return _invalid(f"Background acquisition time must be positive, got {t_0}")

    r_g = count_rate(params.gross_count, params.gross_count_unit, t_g)
    r_0 = _monitor_background(params, detectors)
    return _finish(params, r_g, t_g, r_0, t_0, auto_factor=_monitor_calibration(detectors))


def _normalize_chamber(params: MeasurementInput) -> NormalizationResult:
    if not enabled_detectors(params):
        return _invalid("No enabled detector")
    if not _is_positive(params.dwell_time):
        return _invalid(f"Dwell time must be positive, got {params.dwell_time}")
    return _normalize_monitor(params, params.dwell_time)


def _normalize_conveyor(params: MeasurementInput) -> NormalizationResult:
    detectors = enabled_detectors(params)
    if not detectors:
        return _invalid("No enabled detector")

    speed = speed_to_cm_per_s(params.conveyor_speed, params.conveyor_speed_unit)
    if not _is_positive(speed):
        return _invalid(f"Belt speed must be positive, got {speed} cm/s")

    travel_length = sum(d.length for d in detectors) / len(detectors)
    t_g = travel_length / speed
    if not _is_positive(t_g):
        return _invalid(f"Transit time must be positive, got {t_g} s")
    return _normalize_monitor(params, t_g)


_NORMALIZERS: Dict[MeasurementMode, Callable[[MeasurementInput], NormalizationResult]] = {
    MeasurementMode.STANDARD: _normalize_standard,
    MeasurementMode.SPECTROMETRY: _normalize_spectrometry,
    MeasurementMode.SURFACE_CONTAMINATION: _normalize_surface,
    MeasurementMode.CHAMBER_MONITOR: _normalize_chamber,
    MeasurementMode.CONVEYOR_MONITOR: _normalize_conveyor,
}


def normalize_rates(params: MeasurementInput) -> NormalizationResult:
    """Convert a raw measurement into canonical counts-per-second rates.

    Parameters
    ----------
    params : MeasurementInput
        Raw measurement; only the fields of ``params.mode`` are read

    Returns
    -------
    CanonicalRates or CalculationError
        ``INVALID_INPUT`` for non-positive times, speeds or calibration
        factors and for monitors without an enabled detector;
        ``NEGATIVE_RATE`` for negative normalized rates.
    """
    return _NORMALIZERS[params.mode](params)


__all__ = [
    "SURFACE_BACKGROUND_TIME_S",
    "enabled_detectors",
    "normalize_rates",
]
