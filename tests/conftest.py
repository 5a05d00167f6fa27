import pytest

from isolimit.core.models import CountUnit, MeasurementInput, MeasurementMode


@pytest.fixture
def reference_input() -> MeasurementInput:
    """2 c/s gross over 60 s, 1 c/s background over 600 s, w = 1 with 5 %."""
    return MeasurementInput(
        mode=MeasurementMode.STANDARD,
        gross_count=2.0,
        gross_count_unit=CountUnit.CPS,
        gross_time=60.0,
        background_count=1.0,
        background_count_unit=CountUnit.CPS,
        background_time=600.0,
        calibration_factor=1.0,
        calibration_rel_uncertainty=0.05,
        k1alpha=1.645,
        k1beta=1.645,
        correlation=0.0,
    )
