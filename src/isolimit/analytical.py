"""
Analytical (GUM / ISO 11929) characteristic limits.

Model of evaluation:
    y = w * (r_g - r_0)

Standard uncertainty of y, with rho the gross/background correlation:
    u^2(y) = w^2 r_g / t_g + w^2 r_0 s / t_0 + y^2 u_rel^2(w)
             - 2 w (r_g - r_0) rho sqrt(r_0 / t_0) w u_rel(w)

Under the null hypothesis (y = 0) only counting noise remains:
    u^2(0) = w^2 (r_0 / t_g + r_0 s / t_0),   y* = k_{1-alpha} u(0)

The detection limit y# is the larger root of
    y# = y* + k_{1-beta} u(y#),
which, with u^2(y) = C + B y + u_rel^2(w) y^2, is the quadratic
    (1 - k^2 u_rel^2) y#^2 - (2 y* + k^2 B) y# + (y*^2 - k^2 C) = 0.

References:
    ISO 11929-1:2019, Determination of the characteristic limits (decision
    threshold, detection limit and limits of the coverage interval)
    JCGM 100:2008 (GUM)
"""

from __future__ import annotations

import logging
import math
from typing import Union

from isolimit.core.errors import CalculationError, ErrorKind
from isolimit.core.models import (
    AnalyticalResult,
    CanonicalRates,
    DetectionLimit,
    MeasurementInput,
    SensitivityCoefficients,
    VarianceBudget,
)
from isolimit.core.statistics import mean_time_between_false_alarms, risk_probability
from isolimit.normalize import normalize_rates

logger = logging.getLogger(__name__)

# Coverage factor of the reported 95 % confidence interval
CONFIDENCE_COVERAGE = 1.96

AnalyticalOutcome = Union[AnalyticalResult, CalculationError]


def variance_budget(rates: CanonicalRates, correlation: float) -> VarianceBudget:
    """Decompose u^2(y) into counting, calibration and covariance terms."""
    w = rates.calibration_factor
    u_rel_w = rates.calibration_rel_uncertainty
    y = w * rates.net_rate

    var_gross = w**2 * (rates.r_gross / rates.t_gross)
    var_bkg = w**2 * rates.background_rate_variance
    var_w = (y * u_rel_w) ** 2
    cov_term = 2.0 * w * rates.net_rate * correlation * math.sqrt(rates.r_bkg / rates.t_bkg) * (w * u_rel_w)

    total = var_gross + var_bkg + var_w - cov_term
    if total < 0:
        logger.warning(f"Negative combined variance {total:.6g}; uncertainty floored at zero")

    return VarianceBudget(
        gross_count=var_gross,
        background_count=var_bkg,
        calibration_factor=var_w,
        covariance=-cov_term,
        total=total,
    )


def null_hypothesis_variance(rates: CanonicalRates) -> float:
    """u^2(0): variance of y when the true effect is zero."""
    w = rates.calibration_factor
    return w**2 * (rates.r_bkg / rates.t_gross + rates.background_rate_variance)


def solve_detection_limit(
    rates: CanonicalRates,
    decision_threshold: float,
    k1beta: float,
    correlation: float,
) -> DetectionLimit:
    """Larger root of the detection-limit quadratic.

    Returns ``ErrorKind.NO_ANALYTICAL_SOLUTION`` when the discriminant is
    negative or the leading coefficient is not positive.
    """
    w = rates.calibration_factor
    u_rel_w = rates.calibration_rel_uncertainty
    u_w = w * u_rel_w

    term_b = w / rates.t_gross - 2.0 * correlation * math.sqrt(rates.r_bkg / rates.t_bkg) * u_w
    term_c = null_hypothesis_variance(rates)

    k_sq = k1beta**2
    a = 1.0 - k_sq * u_rel_w**2
    b = -2.0 * decision_threshold - k_sq * term_b
    c = decision_threshold**2 - k_sq * term_c

    discriminant = b**2 - 4.0 * a * c
    if discriminant < 0 or a <= 0:
        return ErrorKind.NO_ANALYTICAL_SOLUTION
    return (-b + math.sqrt(discriminant)) / (2.0 * a)


def uncertainty_at_detection_limit(
    rates: CanonicalRates,
    detection_limit: float,
    correlation: float,
) -> float:
    """u(y#), evaluated at r_g = r_0 + y# / w. Used for display only."""
    w = rates.calibration_factor
    u_rel_w = rates.calibration_rel_uncertainty

    r_gross_hash = rates.r_bkg + detection_limit / w
    poisson = w**2 * (r_gross_hash / rates.t_gross + rates.background_rate_variance)
    calibration = (detection_limit * u_rel_w) ** 2
    covariance = -2.0 * detection_limit * correlation * math.sqrt(rates.r_bkg / rates.t_bkg) * (w * u_rel_w)
    return math.sqrt(max(0.0, poisson + calibration + covariance))


def evaluate_rates(
    rates: CanonicalRates,
    k1alpha: float,
    k1beta: float,
    correlation: float = 0.0,
) -> AnalyticalOutcome:
    """Characteristic limits for already-normalized rates.

    Parameters
    ----------
    rates : CanonicalRates
        Output of :func:`isolimit.normalize.normalize_rates`
    k1alpha, k1beta : float
        Risk quantiles of the first and second kind
    correlation : float
        Correlation coefficient rho between gross and background counting

    Returns
    -------
    AnalyticalResult or CalculationError
        ``INVALID_INPUT`` for non-finite quantiles,
        ``RISK_PARAMETER_INFEASIBLE`` when k1beta^2 u_rel^2(w) >= 1.
    """
    if not (math.isfinite(k1alpha) and math.isfinite(k1beta)):
        return CalculationError(
            ErrorKind.INVALID_INPUT,
            f"Risk quantiles must be finite (k1alpha={k1alpha}, k1beta={k1beta})",
        )

    w = rates.calibration_factor
    u_rel_w = rates.calibration_rel_uncertainty

    y = w * rates.net_rate
    budget = variance_budget(rates, correlation)
    u_y = math.sqrt(max(0.0, budget.total))

    u_0 = math.sqrt(null_hypothesis_variance(rates))
    y_star = k1alpha * u_0

    if (k1beta * u_rel_w) ** 2 >= 1:
        return CalculationError(
            ErrorKind.RISK_PARAMETER_INFEASIBLE,
            f"k1beta^2 * u_rel(w)^2 = {(k1beta * u_rel_w) ** 2:.4g} >= 1",
        )

    detection_limit = solve_detection_limit(rates, y_star, k1beta, correlation)

    is_effect_present = y > y_star
    if is_effect_present:
        best_estimate = y
        best_estimate_uncertainty = u_y
        ci_lower = max(0.0, y - CONFIDENCE_COVERAGE * u_y)
        ci_upper = y + CONFIDENCE_COVERAGE * u_y
    else:
        best_estimate = best_estimate_uncertainty = ci_lower = ci_upper = None

    alpha = risk_probability(k1alpha)
    beta = risk_probability(k1beta)

    if isinstance(detection_limit, float):
        u_hash = uncertainty_at_detection_limit(rates, detection_limit, correlation)
    else:
        u_hash = 0.0

    return AnalyticalResult(
        calculation_method="analytical",
        mode=rates.mode,
        primary_result=y,
        primary_uncertainty=u_y,
        decision_threshold=y_star,
        detection_limit=detection_limit,
        is_effect_present=is_effect_present,
        best_estimate=best_estimate,
        best_estimate_uncertainty=best_estimate_uncertainty,
        confidence_interval_lower=ci_lower,
        confidence_interval_upper=ci_upper,
        k1alpha=k1alpha,
        k1beta=k1beta,
        alpha_probability=alpha,
        beta_probability=beta,
        mean_time_between_false_alarms=mean_time_between_false_alarms(alpha, rates.t_gross, rates.t_bkg),
        uncertainty_at_zero=u_0,
        uncertainty_at_detection_limit=u_hash,
        variance_components=budget,
        sensitivity_coefficients=SensitivityCoefficients(
            gross_rate=w,
            background_rate=-w,
            calibration_factor=rates.net_rate,
        ),
    )


def calculate_all(params: MeasurementInput) -> AnalyticalOutcome:
    """Normalize ``params`` and compute the analytical characteristic limits.

    Pure function: identical inputs give bit-identical results.
    """
    rates = normalize_rates(params)
    if isinstance(rates, CalculationError):
        return rates
    return evaluate_rates(rates, params.k1alpha, params.k1beta, params.correlation)


__all__ = [
    "CONFIDENCE_COVERAGE",
    "variance_budget",
    "null_hypothesis_variance",
    "solve_detection_limit",
    "uncertainty_at_detection_limit",
    "evaluate_rates",
    "calculate_all",
]
