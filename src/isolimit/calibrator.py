"""Inverse problem: find the k1-beta quantile that yields a target detection limit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from isolimit.analytical import AnalyticalOutcome, calculate_all, evaluate_rates
from isolimit.core.errors import CalculationError, ErrorKind
from isolimit.core.models import MeasurementInput
from isolimit.normalize import normalize_rates

logger = logging.getLogger(__name__)


@dataclass
class CalibratorConfig:
    """
    Configuration of the k1-beta bisection.

    Attributes
    ----------
    k1beta_min, k1beta_max : float
        Search bracket for k1-beta
    rel_tolerance : float
        Accept a midpoint when |y# - target| < rel_tolerance * target
    max_iterations : int
        Hard cap on analytical evaluations
    bracket_tolerance : float
        Give up once the bracket is narrower than this
    """

    k1beta_min: float = 0.1
    k1beta_max: float = 10.0
    rel_tolerance: float = 1e-3
    max_iterations: int = 60
    bracket_tolerance: float = 1e-12


def _unreachable(message: str) -> CalculationError:
    return CalculationError(ErrorKind.TARGET_UNREACHABLE, message)


def find_k1beta_for_target(
    params: MeasurementInput,
    target_limit: float,
    config: Optional[CalibratorConfig] = None,
) -> Union[float, CalculationError]:
    """
    Bisect k1-beta so that the analytical detection limit matches a target.

    The detection limit grows monotonically with k1-beta. Midpoints where
    k1beta^2 u_rel^2(w) >= 1 only pull the upper bound down.

    Parameters
    ----------
    params : MeasurementInput
        Measurement; its ``k1beta`` is ignored
    target_limit : float
        Requested detection limit, in result units; must be > 0
    config : CalibratorConfig, optional
        Bracket, tolerance and iteration cap

    Returns
    -------
    float or CalculationError
        The k1-beta found, ``INVALID_INPUT`` for a non-positive target,
        normalization and invalid-quantile errors unchanged, else
        ``TARGET_UNREACHABLE``.
    """
    config = config or CalibratorConfig()

    if not target_limit > 0:
        return CalculationError(ErrorKind.INVALID_INPUT, f"Target detection limit must be positive, got {target_limit}")

    rates = normalize_rates(params)
    if isinstance(rates, CalculationError):
        return rates

    low, high = config.k1beta_min, config.k1beta_max
    for iteration in range(config.max_iterations):
        if high - low < config.bracket_tolerance:
            break
        mid = 0.5 * (low + high)
        outcome = evaluate_rates(rates, params.k1alpha, mid, params.correlation)

        if isinstance(outcome, CalculationError):
            if outcome.kind is ErrorKind.RISK_PARAMETER_INFEASIBLE:
                high = mid
                continue
            if outcome.kind is ErrorKind.INVALID_INPUT:
                return outcome
            return _unreachable(f"Analytical evaluation failed at k1beta={mid:.6g}: {outcome.kind.value}")

        limit = outcome.detection_limit
        if not isinstance(limit, float):
            return _unreachable(f"No analytical detection limit at k1beta={mid:.6g}")

        logger.debug(f"iteration {iteration}: k1beta={mid:.9g} y#={limit:.9g} target={target_limit:.9g}")
        if abs(limit - target_limit) < config.rel_tolerance * target_limit:
            return mid
        if limit < target_limit:
            low = mid
        else:
            high = mid

    return _unreachable(
        f"No k1beta in [{config.k1beta_min}, {config.k1beta_max}] reaches {target_limit:.6g}"
    )


def calculate_for_target(
    params: MeasurementInput,
    target_limit: float,
    config: Optional[CalibratorConfig] = None,
) -> AnalyticalOutcome:
    """Calibrate k1-beta for ``target_limit`` and return the full analytical result."""
    k1beta = find_k1beta_for_target(params, target_limit, config)
    if isinstance(k1beta, CalculationError):
        return k1beta
    return calculate_all(params.with_k1beta(k1beta))


__all__ = [
    "CalibratorConfig",
    "find_k1beta_for_target",
    "calculate_for_target",
]
