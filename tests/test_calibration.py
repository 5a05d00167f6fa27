"""Tests for calibration-factor helpers."""

import math
from datetime import datetime, timedelta

import pytest

from isolimit.calibration import (
    calibration_factor_from_source,
    combined_calibration_uncertainty,
    decay_activity,
    decay_constant,
    decay_corrected_activity,
)
from isolimit.core.errors import IsoLimitError
from isolimit.core.models import CountUnit, MeasurementInput


class TestDecay:
    def test_decay_constant(self):
        assert decay_constant(10.0) == pytest.approx(math.log(2.0) / 10.0)

    def test_one_half_life(self):
        assert decay_activity(100.0, 30.0, 30.0) == pytest.approx(50.0)

    def test_non_positive_half_life(self):
        with pytest.raises(ValueError):
            decay_constant(0.0)

    def test_corrected_activity_two_half_lives(self):
        half_life_s = 5.27 * 365.25 * 86400.0
        reference_date = datetime(2020, 1, 1)
        measurement_date = reference_date + timedelta(seconds=2 * half_life_s)

        activity = decay_corrected_activity(1000.0, half_life_s, reference_date, measurement_date)
        assert activity == pytest.approx(250.0)

    def test_measurement_before_reference_grows(self):
        reference_date = datetime(2020, 1, 2)
        activity = decay_corrected_activity(100.0, 86400.0, reference_date, datetime(2020, 1, 1))
        assert activity == pytest.approx(200.0)

    def test_non_positive_reference_activity(self):
        with pytest.raises(ValueError):
            decay_corrected_activity(0.0, 10.0, datetime(2020, 1, 1), datetime(2021, 1, 1))


class TestCalibrationFactor:
    @pytest.fixture
    def source_measurement(self):
        return MeasurementInput(
            gross_count=1000.0,
            gross_count_unit=CountUnit.COUNTS,
            gross_time=100.0,
            background_count=100.0,
            background_count_unit=CountUnit.COUNTS,
            background_time=100.0,
        )

    def test_factor_is_activity_over_net_rate(self, source_measurement):
        assert calibration_factor_from_source(90.0, source_measurement) == pytest.approx(10.0)

    def test_non_positive_activity(self, source_measurement):
        with pytest.raises(ValueError):
            calibration_factor_from_source(0.0, source_measurement)

    def test_no_net_signal(self, source_measurement):
        source_measurement.gross_count = 100.0
        with pytest.raises(ValueError):
            calibration_factor_from_source(90.0, source_measurement)

    def test_invalid_measurement_raises(self, source_measurement):
        source_measurement.gross_time = 0.0
        with pytest.raises(IsoLimitError) as excinfo:
            calibration_factor_from_source(90.0, source_measurement)
        assert excinfo.value.kind.value == "invalidInput"


class TestCombinedUncertainty:
    def test_reference_values(self):
        counting, combined = combined_calibration_uncertainty(0.03, 10000.0, 1000.0)

        assert counting == pytest.approx(0.011653, rel=1e-4)
        assert combined == pytest.approx(0.032184, rel=1e-4)
