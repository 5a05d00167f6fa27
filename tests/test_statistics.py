"""Tests for the standard-normal helpers."""

import math

import pytest
from scipy.stats import norm

from isolimit.core.statistics import (
    SECONDS_PER_DAY,
    SECONDS_PER_MONTH,
    SECONDS_PER_YEAR,
    erf,
    mean_time_between_false_alarms,
    probability_from_quantile,
    quantile_from_probability,
    risk_probability,
)


class TestNormalDistribution:
    """Error function approximation and derived probabilities."""

    def test_erf_is_odd(self):
        assert erf(0.0) == pytest.approx(0.0, abs=1e-8)
        for x in (0.1, 0.7, 1.5, 3.0):
            assert erf(-x) == pytest.approx(-erf(x))

    def test_erf_matches_reference(self):
        for x in (0.05, 0.3, 1.0, 2.2, 4.0):
            assert erf(x) == pytest.approx(math.erf(x), abs=2e-7)

    @pytest.mark.parametrize("k", [-3.0, -1.0, 0.0, 0.5, 1.282, 1.645, 1.96, 2.326, 3.5])
    def test_cdf_matches_scipy(self, k):
        assert probability_from_quantile(k) == pytest.approx(norm.cdf(k), abs=1e-6)

    def test_risk_probability_of_common_quantiles(self):
        assert risk_probability(1.645) == pytest.approx(0.05, abs=1e-3)
        assert risk_probability(2.326) == pytest.approx(0.01, abs=1e-3)
        assert risk_probability(0.0) == pytest.approx(0.5, abs=1e-7)

    def test_quantile_inverts_risk_probability(self):
        assert quantile_from_probability(0.05) == pytest.approx(1.6449, abs=1e-4)
        k = quantile_from_probability(0.01)
        assert risk_probability(k) == pytest.approx(0.01, abs=1e-6)

    @pytest.mark.parametrize("probability", [0.0, 1.0, -0.2, 1.5])
    def test_quantile_rejects_out_of_range(self, probability):
        with pytest.raises(ValueError):
            quantile_from_probability(probability)


class TestMeanTimeBetweenFalseAlarms:
    """Splitting (t_g + t_0) / alpha into calendar parts."""

    def test_zero_alpha_is_infinite(self):
        mean_time = mean_time_between_false_alarms(0.0, 60.0, 60.0)
        assert mean_time.is_infinite
        assert mean_time.months == 0

    def test_nan_alpha_is_infinite(self):
        assert mean_time_between_false_alarms(float("nan"), 60.0, 60.0).is_infinite

    def test_one_day_one_hour(self):
        mean_time = mean_time_between_false_alarms(0.5, 30000.0, 15000.0)
        assert (mean_time.years, mean_time.months, mean_time.days, mean_time.hours) == (0, 0, 1, 1)

    def test_all_parts(self):
        seconds = SECONDS_PER_YEAR + SECONDS_PER_MONTH + SECONDS_PER_DAY + 3600.0 + 10.0
        mean_time = mean_time_between_false_alarms(1.0, seconds, 0.0)
        assert (mean_time.years, mean_time.months, mean_time.days, mean_time.hours) == (1, 1, 1, 1)

    def test_infinite_time_serializes_as_null(self):
        data = mean_time_between_false_alarms(0.0, 60.0, 60.0).to_dict()
        assert data == {"years": None, "months": 0, "days": 0, "hours": 0}
