"""isolimit package entry.

ISO 11929 characteristic limits (decision threshold, detection limit) for
counting measurements, evaluated analytically or by Monte Carlo.
"""

from importlib.metadata import version

from isolimit.analytical import calculate_all
from isolimit.calibrator import CalibratorConfig, calculate_for_target, find_k1beta_for_target
from isolimit.core.errors import CalculationError, ErrorKind, IsoLimitError, is_error, unwrap
from isolimit.core.models import (
    AnalyticalResult,
    CountUnit,
    Detector,
    MeasurementInput,
    MeasurementMode,
    MonteCarloResult,
    SpeedUnit,
)
from isolimit.monte_carlo import CancellationToken, MonteCarloConfig, run_monte_carlo_simulation
from isolimit.normalize import normalize_rates

__all__ = [
    "__version__",
    "calculate_all",
    "find_k1beta_for_target",
    "calculate_for_target",
    "run_monte_carlo_simulation",
    "normalize_rates",
    "CalibratorConfig",
    "MonteCarloConfig",
    "CancellationToken",
    "CalculationError",
    "ErrorKind",
    "IsoLimitError",
    "is_error",
    "unwrap",
    "AnalyticalResult",
    "MonteCarloResult",
    "MeasurementInput",
    "MeasurementMode",
    "CountUnit",
    "SpeedUnit",
    "Detector",
]

try:
    __version__ = version("isolimit")
except Exception:  # fallback for editable installs before metadata exists
    __version__ = "0.1.0"
