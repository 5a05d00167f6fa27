"""
Standard-normal helpers for risk quantiles.

The normal CDF is evaluated through the Abramowitz & Stegun 7.1.26
rational approximation of the error function (absolute error below
1.5e-7), which keeps the analytical engine free of any library-dependent
rounding and therefore bit-reproducible.

References:
    Abramowitz, M. and Stegun, I. A., Handbook of Mathematical Functions,
    formula 7.1.26 (1964)
    ISO 11929-1:2019, Determination of the characteristic limits
"""

from __future__ import annotations

import math

from scipy.stats import norm

from isolimit.core.models import MeanTime

# Abramowitz & Stegun 7.1.26 coefficients
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 24.0 * SECONDS_PER_HOUR
DAYS_PER_YEAR = 365.25
SECONDS_PER_YEAR = DAYS_PER_YEAR * SECONDS_PER_DAY
SECONDS_PER_MONTH = SECONDS_PER_YEAR / 12.0


def erf(x: float) -> float:
    """Error function, A&S 7.1.26 approximation."""
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def probability_from_quantile(k: float) -> float:
    """Standard normal CDF Phi(k)."""
    return 0.5 * (1.0 + erf(k / math.sqrt(2.0)))


def risk_probability(k: float) -> float:
    """One-sided tail probability 1 - Phi(k) for a risk quantile k."""
    return 1.0 - probability_from_quantile(k)


def quantile_from_probability(probability: float) -> float:
    """Risk quantile k such that 1 - Phi(k) equals ``probability``.

    Inverse of :func:`risk_probability`, e.g. 0.05 -> 1.645.
    """
    if not 0.0 < probability < 1.0:
        raise ValueError(f"Probability must lie in (0, 1), got {probability}")
    return float(norm.isf(probability))


def mean_time_between_false_alarms(alpha: float, t_gross: float, t_bkg: float) -> MeanTime:
    """Mean time between false alarms, (t_g + t_0) / alpha.

    Returns an infinite duration when ``alpha`` is zero or not finite.
    """
    if alpha <= 0 or not math.isfinite(alpha):
        return MeanTime(years=math.inf)

    seconds = (t_gross + t_bkg) / alpha

    years = math.floor(seconds / SECONDS_PER_YEAR)
    remainder = seconds % SECONDS_PER_YEAR
    months = math.floor(remainder / SECONDS_PER_MONTH)
    remainder %= SECONDS_PER_MONTH
    days = math.floor(remainder / SECONDS_PER_DAY)
    remainder %= SECONDS_PER_DAY
    hours = math.floor(remainder / SECONDS_PER_HOUR)

    return MeanTime(years=years, months=months, days=days, hours=hours)


__all__ = [
    "erf",
    "probability_from_quantile",
    "risk_probability",
    "quantile_from_probability",
    "mean_time_between_false_alarms",
]
