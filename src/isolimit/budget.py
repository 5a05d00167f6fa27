"""Uncertainty budget decomposition and reporting.

Turns the variance terms of a measurement (or of a calibration) into a
list of named components with their share of the combined variance, in
the spirit of the GUM uncertainty budget table.

Uncertainty categories:
1. Gross counting statistics (Poisson)
2. Background counting statistics (Poisson)
3. Calibration factor
4. Gross/background covariance (signed)
5. Reference source activity (calibration only)

References:
    JCGM 100:2008 (GUM), section 8
    ISO 11929-1:2019, annex on uncertainty budgets
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from isolimit.core.models import AnalyticalResult, VarianceBudget

logger = logging.getLogger(__name__)


class UncertaintyCategory(Enum):
    """Sources contributing to the combined uncertainty."""

    GROSS_COUNTING = "gross_count"
    BACKGROUND_COUNTING = "background_count"
    CALIBRATION = "calibration_factor"
    COVARIANCE = "covariance"
    SOURCE_ACTIVITY = "source_activity"
    COUNTING_STATISTICS = "counting"


@dataclass
class UncertaintyComponent:
    """Single variance contribution.

    Attributes
    ----------
    category : UncertaintyCategory
        Type of uncertainty source
    variance : float
        Signed variance contribution (covariance terms may be negative)
    description : str
        Human-readable description
    """

    category: UncertaintyCategory
    variance: float
    description: str = ""

    @property
    def value(self) -> float:
        """Standard-uncertainty equivalent, sqrt(|variance|)."""
        return math.sqrt(abs(self.variance))

    @classmethod
    def from_relative(
        cls,
        category: UncertaintyCategory,
        relative: float,
        measurement: float,
        description: str = "",
    ) -> UncertaintyComponent:
        return cls(category=category, variance=(relative * measurement) ** 2, description=description)


@dataclass
class UncertaintyBudget:
    """Complete uncertainty budget with component breakdown.

    Attributes
    ----------
    measurement : float
        Central value of the measurement
    components : list[UncertaintyComponent]
        Individual contributions
    units : str
        Units of the measurement
    name : str
        Identifier for this budget
    """

    measurement: float
    components: List[UncertaintyComponent] = field(default_factory=list)
    units: str = ""
    name: str = ""

    def add_component(self, component: UncertaintyComponent) -> None:
        self.components.append(component)

    def add_relative(self, category: UncertaintyCategory, relative: float, description: str = "") -> None:
        self.components.append(
            UncertaintyComponent.from_relative(category, relative, self.measurement, description)
        )

    @property
    def total_variance(self) -> float:
        return sum(c.variance for c in self.components)

    @property
    def total_uncertainty(self) -> float:
        """Combined standard uncertainty (negative variance floored at 0)."""
        return math.sqrt(max(0.0, self.total_variance))

    @property
    def relative_total(self) -> float:
        if self.measurement == 0:
            return 0.0
        return self.total_uncertainty / abs(self.measurement)

    def fraction(self, component: UncertaintyComponent) -> float:
        total = max(0.0, self.total_variance)
        return component.variance / total if total > 0 else 0.0

    def dominant_component(self) -> Optional[UncertaintyComponent]:
        if not self.components:
            return None
        return max(self.components, key=lambda c: abs(c.variance))

    def summary_table(self) -> str:
        lines = [
            f"Uncertainty Budget: {self.name}",
            f"Measurement: {self.measurement:.6g} {self.units}",
            f"Total Uncertainty: ±{self.total_uncertainty:.6g} ({100*self.relative_total:.2f}%)",
            "",
            "Component Breakdown:",
            "-" * 62,
            f"{'Category':<22} {'Variance':>14} {'u':>12} {'Share':>10}",
            "-" * 62,
        ]
        for c in sorted(self.components, key=lambda x: -abs(x.variance)):
            lines.append(
                f"{c.category.value:<22} {c.variance:>14.4g} {c.value:>12.4g} {100*self.fraction(c):>9.1f}%"
            )
        lines.append("-" * 62)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurement": self.measurement,
            "total_uncertainty": self.total_uncertainty,
            "relative_total": self.relative_total,
            "units": self.units,
            "name": self.name,
            "components": [
                {
                    "category": c.category.value,
                    "variance": c.variance,
                    "value": c.value,
                    "description": c.description,
                    "variance_fraction": self.fraction(c),
                }
                for c in self.components
            ],
        }


def budget_from_variance(
    variance: VarianceBudget,
    measurement: float,
    units: str = "",
    name: str = "measurement",
) -> UncertaintyBudget:
    """Build a reportable budget from the analytical variance terms."""
    if variance.total <= 0:
        logger.warning(f"Budget '{name}' has non-positive total variance {variance.total:.6g}")

    budget = UncertaintyBudget(measurement=measurement, units=units, name=name)
    budget.add_component(
        UncertaintyComponent(UncertaintyCategory.GROSS_COUNTING, variance.gross_count, "Gross counting statistics")
    )
    budget.add_component(
        UncertaintyComponent(
            UncertaintyCategory.BACKGROUND_COUNTING, variance.background_count, "Background counting statistics"
        )
    )
    budget.add_component(
        UncertaintyComponent(UncertaintyCategory.CALIBRATION, variance.calibration_factor, "Calibration factor")
    )
    budget.add_component(
        UncertaintyComponent(UncertaintyCategory.COVARIANCE, variance.covariance, "Gross/background covariance")
    )
    return budget


def result_budget(result: AnalyticalResult, units: str = "") -> UncertaintyBudget:
    """Budget of an analytical result.

    Raises
    ------
    ValueError
        If the result carries no variance decomposition (Monte Carlo results).
    """
    if result.variance_components is None:
        raise ValueError("Result has no variance decomposition")
    return budget_from_variance(
        result.variance_components,
        result.primary_result,
        units=units,
        name=result.mode.value,
    )


def calibration_uncertainty_budget(
    source_rel_uncertainty: float,
    gross_counts: float,
    background_counts: float,
) -> UncertaintyBudget:
    """Relative budget of a calibration factor measured with a reference source.

    The counting term is sqrt(n_g + n_0) / (n_g - n_0); the measurement is
    normalized to 1 so component values read as relative uncertainties.

    Raises
    ------
    ValueError
        If the net count is not positive or the source uncertainty is negative.
    """
    net = gross_counts - background_counts
    if net <= 0:
        raise ValueError(f"Net calibration counts must be positive, got {net}")
    if source_rel_uncertainty < 0:
        raise ValueError(f"Source uncertainty must be >= 0, got {source_rel_uncertainty}")

    counting_rel = math.sqrt(gross_counts + background_counts) / net

    budget = UncertaintyBudget(measurement=1.0, units="relative", name="calibration")
    budget.add_relative(UncertaintyCategory.SOURCE_ACTIVITY, source_rel_uncertainty, "Reference source activity")
    budget.add_relative(UncertaintyCategory.COUNTING_STATISTICS, counting_rel, "Calibration counting statistics")
    return budget


__all__ = [
    "UncertaintyCategory",
    "UncertaintyComponent",
    "UncertaintyBudget",
    "budget_from_variance",
    "result_budget",
    "calibration_uncertainty_budget",
]
