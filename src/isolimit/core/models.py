"""Domain models for ISO 11929 characteristic-limit computations.

Symbols used throughout the package:

    r_g, t_g   gross count rate (1/s) and gross acquisition time (s)
    r_0, t_0   background count rate (1/s) and background acquisition time (s)
    w          calibration factor (activity per net count rate)
    u_rel(w)   relative standard uncertainty of w
    rho        correlation coefficient between gross and background counting
    y          primary result, y = w * (r_g - r_0)
    y*         decision threshold
    y#         detection limit
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import numpy as np

from isolimit.core.errors import ErrorKind


class MeasurementMode(Enum):
    """Measurement geometries supported by the rate normalizer."""

    STANDARD = "standard"
    SPECTROMETRY = "spectrometry"
    SURFACE_CONTAMINATION = "surfaceContamination"
    CHAMBER_MONITOR = "chamberMonitor"
    CONVEYOR_MONITOR = "conveyorMonitor"


class CountUnit(Enum):
    """Unit tag attached to a raw count value."""

    COUNTS = "COUNTS"  # total counts over the acquisition time
    CPS = "CPS"  # counts per second
    CPM = "CPM"  # counts per minute
    C_02S = "C_02S"  # counts per 0.2 s gate


class SpeedUnit(Enum):
    """Conveyor belt speed units."""

    CM_PER_S = "cm_s"
    CM_PER_MIN = "cm_min"
    M_PER_S = "m_s"
    M_PER_MIN = "m_min"


class ActivityUnit(Enum):
    """Activity and surface-activity units."""

    BQ = "Bq"
    BQ_CM2 = "Bq/cm²"
    DPM = "dpm"
    DPM_CM2 = "dpm/cm²"
    DPS = "dps"
    UCI = "µCi"
    UCI_CM2 = "µCi/cm²"
    CI = "Ci"


@dataclass
class Detector:
    """One detector panel of a chamber or conveyor monitor.

    Attributes
    ----------
    efficiency : float
        Detection efficiency in percent
    background : float
        Background reading, expressed in ``background_unit``
    background_unit : CountUnit
        Unit of the background reading
    length : float
        Extent along the travel direction (cm)
    width : float
        Extent across the travel direction (cm)
    enabled : bool
        Whether the panel contributes to the measurement
    kind : str
        "beta" or "gamma"
    """

    efficiency: float = 10.0
    background: float = 1.0
    background_unit: CountUnit = CountUnit.CPS
    length: float = 30.0
    width: float = 15.0
    enabled: bool = True
    kind: str = "beta"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Detector":
        values = dict(data)
        if "background_unit" in values:
            values["background_unit"] = CountUnit(values["background_unit"])
        return cls(**values)


@dataclass
class MeasurementInput:
    """Raw measurement description supplied by the caller.

    Only the fields relevant to ``mode`` are read. Times are in seconds,
    ``calibration_rel_uncertainty`` is a fraction (0.05 for 5 %) and
    ``correlation`` is the coefficient rho in [0, 1].
    """

    mode: MeasurementMode = MeasurementMode.STANDARD

    # standard / surface / monitor gross channel
    gross_count: float = 0.0
    gross_count_unit: CountUnit = CountUnit.COUNTS
    gross_time: float = 60.0
    background_count: float = 0.0
    background_count_unit: CountUnit = CountUnit.COUNTS
    background_time: float = 60.0

    # spectrometry
    roi_gross_count: float = 0.0
    roi_channels: float = 1.0
    background_total_count: float = 0.0
    background_channels: float = 1.0

    # surface contamination
    probe_efficiency: float = 10.0
    probe_area: float = 100.0
    estimated_background_rate: float = 0.0

    # chamber / conveyor monitors
    detectors: List[Detector] = field(default_factory=list)
    dwell_time: float = 10.0
    conveyor_speed: float = 100.0
    conveyor_speed_unit: SpeedUnit = SpeedUnit.CM_PER_MIN

    calibration_factor: float = 1.0
    calibration_factor_unit: str = "Bq/(c/s)"
    calibration_rel_uncertainty: float = 0.0
    auto_calibration: bool = False

    k1alpha: float = 1.645
    k1beta: float = 1.645
    correlation: float = 0.0
    num_simulations: int = 10000

    def with_k1beta(self, k1beta: float) -> "MeasurementInput":
        return replace(self, k1beta=k1beta)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeasurementInput":
        """Build an input from plain JSON-style values (enums given by value)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown measurement fields: {sorted(unknown)}")

        values = dict(data)
        if "mode" in values:
            values["mode"] = MeasurementMode(values["mode"])
        for key in ("gross_count_unit", "background_count_unit"):
            if key in values:
                values[key] = CountUnit(values[key])
        if "conveyor_speed_unit" in values:
            values["conveyor_speed_unit"] = SpeedUnit(values["conveyor_speed_unit"])
        if "detectors" in values:
            values["detectors"] = [
                d if isinstance(d, Detector) else Detector.from_dict(d)
                for d in values["detectors"]
            ]
        return cls(**values)


@dataclass(frozen=True)
class CanonicalRates:
    """Mode-independent view of a measurement.

    ``r_bkg`` is the background rate referred to the gross channel. For
    spectrometry it is the full-spectrum background rate scaled by
    ``background_scale`` (ROI channels / background channels); for every other
    mode ``background_scale`` is 1. The background-rate variance is then
    ``r_bkg * background_scale / t_bkg``.
    """

    r_gross: float
    t_gross: float
    r_bkg: float
    t_bkg: float
    calibration_factor: float
    calibration_rel_uncertainty: float
    background_scale: float = 1.0
    mode: MeasurementMode = MeasurementMode.STANDARD

    @property
    def net_rate(self) -> float:
        return self.r_gross - self.r_bkg

    @property
    def background_rate_variance(self) -> float:
        return self.r_bkg * self.background_scale / self.t_bkg


@dataclass(frozen=True)
class VarianceBudget:
    """Decomposition of u(y)^2 into its contributing terms.

    The four components sum to ``total``. ``covariance`` carries its sign
    (it is negative for a positive correlation and a positive net rate).
    """

    gross_count: float
    background_count: float
    calibration_factor: float
    covariance: float
    total: float

    def components(self) -> Dict[str, float]:
        return {
            "gross_count": self.gross_count,
            "background_count": self.background_count,
            "calibration_factor": self.calibration_factor,
            "covariance": self.covariance,
        }

    def fractions(self) -> Dict[str, float]:
        """Share of each component in the total (zero when total <= 0)."""
        total = max(0.0, self.total)
        if total == 0.0:
            return {name: 0.0 for name in self.components()}
        return {name: value / total for name, value in self.components().items()}

    def to_dict(self) -> Dict[str, float]:
        return {**self.components(), "total": self.total}


@dataclass(frozen=True)
class SensitivityCoefficients:
    """Partial derivatives of y = w (r_g - r_0)."""

    gross_rate: float
    background_rate: float
    calibration_factor: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "gross_rate": self.gross_rate,
            "background_rate": self.background_rate,
            "calibration_factor": self.calibration_factor,
        }


@dataclass(frozen=True)
class MeanTime:
    """Duration split into calendar-like parts; ``years`` is inf for never."""

    years: float
    months: int = 0
    days: int = 0
    hours: int = 0

    @property
    def is_infinite(self) -> bool:
        return math.isinf(self.years)

    def to_dict(self) -> Dict[str, Optional[float]]:
        """JSON-safe parts; ``years`` is ``None`` for a never-alarming setup."""
        years = None if self.is_infinite else self.years
        return {"years": years, "months": self.months, "days": self.days, "hours": self.hours}


DetectionLimit = Union[float, ErrorKind]


@dataclass(frozen=True)
class AnalyticalResult:
    """Characteristic limits and best estimate of one measurement."""

    calculation_method: str
    mode: MeasurementMode
    primary_result: float
    primary_uncertainty: float
    decision_threshold: float
    detection_limit: DetectionLimit
    is_effect_present: bool
    best_estimate: Optional[float]
    best_estimate_uncertainty: Optional[float]
    confidence_interval_lower: Optional[float]
    confidence_interval_upper: Optional[float]
    k1alpha: float
    k1beta: float
    alpha_probability: float
    beta_probability: float
    mean_time_between_false_alarms: MeanTime
    uncertainty_at_zero: float
    uncertainty_at_detection_limit: float
    variance_components: Optional[VarianceBudget]
    sensitivity_coefficients: SensitivityCoefficients

    @property
    def has_detection_limit(self) -> bool:
        return not isinstance(self.detection_limit, ErrorKind)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        detection_limit = self.detection_limit
        if isinstance(detection_limit, ErrorKind):
            detection_limit = detection_limit.value
        return {
            "calculation_method": self.calculation_method,
            "mode": self.mode.value,
            "primary_result": self.primary_result,
            "primary_uncertainty": self.primary_uncertainty,
            "decision_threshold": self.decision_threshold,
            "detection_limit": detection_limit,
            "is_effect_present": self.is_effect_present,
            "best_estimate": self.best_estimate,
            "best_estimate_uncertainty": self.best_estimate_uncertainty,
            "confidence_interval_lower": self.confidence_interval_lower,
            "confidence_interval_upper": self.confidence_interval_upper,
            "k1alpha": self.k1alpha,
            "k1beta": self.k1beta,
            "alpha_probability": self.alpha_probability,
            "beta_probability": self.beta_probability,
            "mean_time_between_false_alarms": self.mean_time_between_false_alarms.to_dict(),
            "uncertainty_at_zero": self.uncertainty_at_zero,
            "uncertainty_at_detection_limit": self.uncertainty_at_detection_limit,
            "variance_components": (
                self.variance_components.to_dict() if self.variance_components is not None else None
            ),
            "sensitivity_coefficients": self.sensitivity_coefficients.to_dict(),
        }


@dataclass(frozen=True)
class MonteCarloStats:
    """Descriptive statistics of the simulated y distribution."""

    mean: float
    std_dev: float
    median: float
    min: float
    max: float
    skewness: float
    kurtosis: float
    ci_percentile_lower: float
    ci_percentile_upper: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "mean": self.mean,
            "std_dev": self.std_dev,
            "median": self.median,
            "min": self.min,
            "max": self.max,
            "skewness": self.skewness,
            "kurtosis": self.kurtosis,
            "ci_percentile_lower": self.ci_percentile_lower,
            "ci_percentile_upper": self.ci_percentile_upper,
        }


@dataclass(frozen=True)
class MonteCarloResult(AnalyticalResult):
    """Analytical result shape plus the simulated sample and its statistics."""

    histogram_data: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    num_simulations: int = 0
    monte_carlo_stats: Optional[MonteCarloStats] = None

    def to_dict(self, include_histogram: bool = False) -> Dict[str, Any]:
        data = super().to_dict()
        data["num_simulations"] = self.num_simulations
        data["monte_carlo_stats"] = (
            self.monte_carlo_stats.to_dict() if self.monte_carlo_stats is not None else None
        )
        if include_histogram:
            data["histogram_data"] = [float(v) for v in self.histogram_data]
        return data


__all__ = [
    "MeasurementMode",
    "CountUnit",
    "SpeedUnit",
    "ActivityUnit",
    "Detector",
    "MeasurementInput",
    "CanonicalRates",
    "VarianceBudget",
    "SensitivityCoefficients",
    "MeanTime",
    "DetectionLimit",
    "AnalyticalResult",
    "MonteCarloStats",
    "MonteCarloResult",
]
