"""Typed error values returned by the calculation engines.

The engines never raise for domain failures; they return a
:class:`CalculationError` carrying an :class:`ErrorKind`. Callers map the kind
to user-facing text themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    """Failure categories of the detection-limit engines."""

    INVALID_INPUT = "invalidInput"  # non-positive time, calibration or target
    NEGATIVE_RATE = "negativeRate"
    RISK_PARAMETER_INFEASIBLE = "riskParameterInfeasible"  # k1beta^2 * u_rel_w^2 >= 1
    NO_ANALYTICAL_SOLUTION = "noAnalyticalSolution"
    TARGET_UNREACHABLE = "targetUnreachable"
    CANCELLED = "cancelled"


class IsoLimitError(ValueError):
    """Exception form of a :class:`CalculationError`."""

    def __init__(self, kind: ErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(f"{kind.value}: {message}" if message else kind.value)


@dataclass(frozen=True)
class CalculationError:
    """Error value returned in place of a result.

    Attributes
    ----------
    kind : ErrorKind
        Failure category
    message : str
        Developer diagnostic in English (not meant for end users)
    """

    kind: ErrorKind
    message: str = ""

    def raise_(self) -> None:
        raise IsoLimitError(self.kind, self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}


def is_error(value: Any) -> bool:
    """True when ``value`` is an error returned by an engine."""
    return isinstance(value, CalculationError)


def unwrap(value: Union[T, CalculationError]) -> T:
    """Return ``value`` or raise :class:`IsoLimitError` if it is an error."""
    if isinstance(value, CalculationError):
        value.raise_()
    return value  # type: ignore[return-value]


__all__ = [
    "ErrorKind",
    "CalculationError",
    "IsoLimitError",
    "is_error",
    "unwrap",
]
