"""Core data structures, unit tables and statistics helpers."""

from isolimit.core.errors import CalculationError, ErrorKind, IsoLimitError, is_error, unwrap
from isolimit.core.models import (
    ActivityUnit,
    AnalyticalResult,
    CanonicalRates,
    CountUnit,
    Detector,
    MeanTime,
    MeasurementInput,
    MeasurementMode,
    MonteCarloResult,
    MonteCarloStats,
    SensitivityCoefficients,
    SpeedUnit,
    VarianceBudget,
)

__all__ = [
    "CalculationError",
    "ErrorKind",
    "IsoLimitError",
    "is_error",
    "unwrap",
    "ActivityUnit",
    "AnalyticalResult",
    "CanonicalRates",
    "CountUnit",
    "Detector",
    "MeanTime",
    "MeasurementInput",
    "MeasurementMode",
    "MonteCarloResult",
    "MonteCarloStats",
    "SensitivityCoefficients",
    "SpeedUnit",
    "VarianceBudget",
]
