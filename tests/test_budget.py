"""Tests for uncertainty budget reporting."""

import math
from dataclasses import replace

import pytest

from isolimit.analytical import calculate_all
from isolimit.budget import (
    UncertaintyBudget,
    UncertaintyCategory,
    UncertaintyComponent,
    calibration_uncertainty_budget,
    result_budget,
)
from isolimit.monte_carlo import run_monte_carlo_simulation


class TestUncertaintyComponent:
    def test_value_from_variance(self):
        component = UncertaintyComponent(UncertaintyCategory.GROSS_COUNTING, 0.04)
        assert component.value == pytest.approx(0.2)

    def test_negative_covariance_keeps_sign(self):
        component = UncertaintyComponent(UncertaintyCategory.COVARIANCE, -0.01)
        assert component.variance == -0.01
        assert component.value == pytest.approx(0.1)

    def test_from_relative(self):
        component = UncertaintyComponent.from_relative(UncertaintyCategory.CALIBRATION, 0.05, 10.0)
        assert component.variance == pytest.approx(0.25)


class TestResultBudget:
    def test_reference_budget(self, reference_input):
        budget = result_budget(calculate_all(reference_input), units="Bq")

        assert len(budget.components) == 4
        assert budget.measurement == pytest.approx(1.0)
        assert budget.total_variance == pytest.approx(0.0375)
        assert budget.total_uncertainty == pytest.approx(math.sqrt(0.0375))
        assert budget.relative_total == pytest.approx(math.sqrt(0.0375))
        assert budget.name == "standard"

    def test_dominant_component(self, reference_input):
        budget = result_budget(calculate_all(reference_input))
        dominant = budget.dominant_component()

        assert dominant.category is UncertaintyCategory.GROSS_COUNTING
        assert budget.fraction(dominant) == pytest.approx((2.0 / 60.0) / 0.0375)

    def test_fractions_sum_to_one_with_covariance(self, reference_input):
        budget = result_budget(calculate_all(replace(reference_input, correlation=1.0)))
        assert sum(budget.fraction(c) for c in budget.components) == pytest.approx(1.0)

    def test_summary_table_lists_every_category(self, reference_input):
        table = result_budget(calculate_all(reference_input)).summary_table()

        for category in ("gross_count", "background_count", "calibration_factor", "covariance"):
            assert category in table

    def test_to_dict(self, reference_input):
        data = result_budget(calculate_all(reference_input)).to_dict()

        assert data["total_uncertainty"] == pytest.approx(math.sqrt(0.0375))
        assert [c["category"] for c in data["components"]] == [
            "gross_count",
            "background_count",
            "calibration_factor",
            "covariance",
        ]

    def test_monte_carlo_result_has_no_budget(self, reference_input):
        result = run_monte_carlo_simulation(replace(reference_input, num_simulations=200), 1)
        with pytest.raises(ValueError):
            result_budget(result)


class TestEmptyBudget:
    def test_empty(self):
        budget = UncertaintyBudget(measurement=0.0)

        assert budget.total_uncertainty == 0.0
        assert budget.relative_total == 0.0
        assert budget.dominant_component() is None


class TestCalibrationBudget:
    def test_source_and_counting_terms(self):
        budget = calibration_uncertainty_budget(0.03, 10000.0, 1000.0)
        counting = math.sqrt(11000.0) / 9000.0

        assert [c.category for c in budget.components] == [
            UncertaintyCategory.SOURCE_ACTIVITY,
            UncertaintyCategory.COUNTING_STATISTICS,
        ]
        assert budget.components[1].value == pytest.approx(counting)
        assert budget.total_uncertainty == pytest.approx(math.sqrt(0.03**2 + counting**2))

    def test_non_positive_net_counts(self):
        with pytest.raises(ValueError):
            calibration_uncertainty_budget(0.03, 100.0, 100.0)

    def test_negative_source_uncertainty(self):
        with pytest.raises(ValueError):
            calibration_uncertainty_budget(-0.01, 1000.0, 100.0)
