"""Tests for the k1-beta calibrator."""

from dataclasses import replace

import pytest

from isolimit.analytical import calculate_all
from isolimit.calibrator import CalibratorConfig, calculate_for_target, find_k1beta_for_target
from isolimit.core.errors import CalculationError, ErrorKind


class TestFindK1Beta:
    def test_reachable_target(self, reference_input):
        k1beta = find_k1beta_for_target(reference_input, 1.0)

        assert isinstance(k1beta, float)
        assert 0.1 < k1beta < 10.0
        limit = calculate_all(reference_input.with_k1beta(k1beta)).detection_limit
        assert limit == pytest.approx(1.0, rel=1e-3)

    def test_input_k1beta_is_ignored(self, reference_input):
        first = find_k1beta_for_target(reference_input, 1.0)
        second = find_k1beta_for_target(reference_input.with_k1beta(7.0), 1.0)
        assert first == second

    def test_target_above_bracket_is_unreachable(self, reference_input):
        outcome = find_k1beta_for_target(reference_input, 50.0)

        assert isinstance(outcome, CalculationError)
        assert outcome.kind is ErrorKind.TARGET_UNREACHABLE

    def test_target_below_bracket_is_unreachable(self, reference_input):
        outcome = find_k1beta_for_target(reference_input, 0.01)
        assert outcome.kind is ErrorKind.TARGET_UNREACHABLE

    def test_iteration_cap(self, reference_input):
        outcome = find_k1beta_for_target(reference_input, 1.0, CalibratorConfig(max_iterations=1))
        assert outcome.kind is ErrorKind.TARGET_UNREACHABLE

    @pytest.mark.parametrize("target", [0.0, -1.0, float("nan")])
    def test_non_positive_target(self, reference_input, target):
        outcome = find_k1beta_for_target(reference_input, target)
        assert outcome.kind is ErrorKind.INVALID_INPUT

    def test_normalization_error_passes_through(self, reference_input):
        outcome = find_k1beta_for_target(replace(reference_input, gross_time=0.0), 1.0)
        assert outcome.kind is ErrorKind.INVALID_INPUT

    def test_infeasible_midpoints_shrink_the_bracket(self, reference_input):
        # k1beta * 0.2 >= 1 above k1beta = 5, so the first midpoint is infeasible
        params = replace(reference_input, calibration_rel_uncertainty=0.2)
        k1beta = find_k1beta_for_target(params, 2.0)

        assert isinstance(k1beta, float)
        assert k1beta < 5.0
        assert calculate_all(params.with_k1beta(k1beta)).detection_limit == pytest.approx(2.0, rel=1e-3)


class TestCalculateForTarget:
    def test_returns_full_result(self, reference_input):
        result = calculate_for_target(reference_input, 1.0)

        assert result.detection_limit == pytest.approx(1.0, rel=1e-3)
        assert result.k1beta == find_k1beta_for_target(reference_input, 1.0)
        assert result.k1alpha == reference_input.k1alpha
        assert result.decision_threshold == pytest.approx(calculate_all(reference_input).decision_threshold)

    def test_propagates_error(self, reference_input):
        outcome = calculate_for_target(reference_input, 50.0)
        assert outcome.kind is ErrorKind.TARGET_UNREACHABLE
