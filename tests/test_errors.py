"""Tests for error values and their exception form."""

import pytest

from isolimit.core.errors import CalculationError, ErrorKind, IsoLimitError, is_error, unwrap


def test_error_to_dict():
    error = CalculationError(ErrorKind.NEGATIVE_RATE, "gross rate below zero")
    assert error.to_dict() == {"error": "negativeRate", "message": "gross rate below zero"}


def test_is_error():
    assert is_error(CalculationError(ErrorKind.CANCELLED))
    assert not is_error(1.0)


def test_unwrap_passes_values_through():
    assert unwrap(2.5) == 2.5


def test_unwrap_raises_with_kind():
    with pytest.raises(IsoLimitError) as excinfo:
        unwrap(CalculationError(ErrorKind.TARGET_UNREACHABLE, "too high"))

    assert excinfo.value.kind is ErrorKind.TARGET_UNREACHABLE
    assert "too high" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)
