"""
Configurable thresholds and weights for the detector and the scorer.

Every cutoff, weight and lookup table the engine uses lives here so it can
be tuned per environment and unit-tested apart from the algorithms.
Instances are frozen; build a modified copy with dataclasses.replace().
Severity tables are keyed by Severity and wrapped read-only at construction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from backend_claimscan.analysis_engine.models import Severity

P_VALUE_BANDED = "banded"
P_VALUE_EXACT = "exact"
P_VALUE_METHODS = (P_VALUE_BANDED, P_VALUE_EXACT)

# Leading-digit law reference frequencies (percent) for digits 1..9
LEADING_DIGIT_REFERENCE_PCT = (30.1, 17.6, 12.5, 9.7, 7.9, 6.7, 5.8, 5.1, 4.6)


def _severity_table(critical: float, high: float, medium: float, low: float) -> Mapping[Severity, float]:
    return MappingProxyType(
        {Severity.CRITICAL: critical, Severity.HIGH: high, Severity.MEDIUM: medium, Severity.LOW: low}
    )


@dataclass(frozen=True)
class AnomalyConfig:
    """
    Thresholds for the four anomaly checks.

    Defaults reproduce the production tuning; all money thresholds are in
    invoice currency units.
    """

    # Outlier check: |x - mean| / std cutoffs.
    z_score_medium: float = 2.0
    z_score_high: float = 2.5
    z_score_critical: float = 3.0
    z_score_min_items: int = 3

    # Leading-digit check.
    leading_digit_min_items: int = 30
    leading_digit_reference_pct: tuple[float, ...] = LEADING_DIGIT_REFERENCE_PCT
    p_value_method: str = P_VALUE_BANDED
    # (chi-square lower bound, p-value) pairs, checked in order; strict ">".
    p_value_bands: tuple[tuple[float, float], ...] = ((20.0, 0.01), (15.0, 0.05), (10.0, 0.1))
    p_value_default: float = 0.5
    significance_level: float = 0.05
    high_severity_p_value: float = 0.01
    suspicious_digit_deviation_pct: float = 5.0

    # Calculation-consistency check.
    calculation_min_items: int = 5
    calculation_tolerance: Decimal = Decimal("0.01")
    calculation_high_deviation: Decimal = Decimal("100")
    calculation_confidence_scale: Decimal = Decimal("100")

    # Temporal check (milliseconds).
    temporal_threshold_ms: float = 30_000.0
    temporal_baseline_ms: float = 5_000.0
    temporal_confidence: float = 0.7

    def __post_init__(self) -> None:
        if not self.z_score_medium <= self.z_score_high <= self.z_score_critical:
            raise ValueError("z-score cutoffs must satisfy medium <= high <= critical")
        if self.p_value_method not in P_VALUE_METHODS:
            raise ValueError(
                f"p_value_method must be one of {P_VALUE_METHODS}, got {self.p_value_method!r}"
            )
        if len(self.leading_digit_reference_pct) != 9:
            raise ValueError("leading_digit_reference_pct needs one frequency per digit 1-9")
        if self.z_score_min_items < 2:
            raise ValueError("z_score_min_items must be at least 2")

    @property
    def leading_digit_degrees_of_freedom(self) -> int:
        return len(self.leading_digit_reference_pct) - 1


@dataclass(frozen=True)
class RiskConfig:
    """Component weights, lookup tables and cutoffs for the risk scorer."""

    statistical_weight: float = 0.35
    behavioral_weight: float = 0.25
    documentation_weight: float = 0.25
    compliance_weight: float = 0.15

    severity_base_score: Mapping[Severity, float] = field(
        default_factory=lambda: _severity_table(100.0, 75.0, 50.0, 25.0)
    )
    severity_impact: Mapping[Severity, float] = field(
        default_factory=lambda: _severity_table(95.0, 75.0, 50.0, 25.0)
    )
    severity_weight: Mapping[Severity, float] = field(
        default_factory=lambda: _severity_table(1.0, 0.8, 0.6, 0.4)
    )

    behavioral_high_variance_points: float = 40.0
    behavioral_pattern_points: float = 15.0
    behavioral_quality_points: float = 30.0

    documentation_accuracy_points: float = 50.0
    documentation_unmatched_points: float = 30.0
    documentation_issue_points: float = 5.0

    compliance_critical_points: float = 25.0
    compliance_high_points: float = 15.0
    compliance_ratio_points: float = 20.0

    ci_z_value: float = 1.96
    ci_confidence: int = 95

    # Inclusive lower bounds, checked from the top.
    critical_level_min: int = 85
    high_level_min: int = 70
    moderate_level_min: int = 50
    low_level_min: int = 25

    variance_factor_min_pct: float = 20.0
    variance_factor_high_pct: float = 50.0
    variance_norm_pct: float = 10.0
    variance_factor_impact: float = 75.0
    variance_factor_likelihood: float = 0.8
    variance_factor_confidence: float = 0.9
    variance_factor_weight: float = 0.8

    documentation_accuracy_floor: float = 0.7
    documentation_high_accuracy_below: float = 0.5
    documentation_factor_confidence: float = 0.8

    immediate_investigation_score: int = 75

    def __post_init__(self) -> None:
        total = (
            self.statistical_weight
            + self.behavioral_weight
            + self.documentation_weight
            + self.compliance_weight
        )
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Component weights must sum to 1.0, got {total}")
        if not (
            self.critical_level_min > self.high_level_min > self.moderate_level_min > self.low_level_min
        ):
            raise ValueError("Risk level cutoffs must be strictly descending from critical to low")
        for table_name in ("severity_base_score", "severity_impact", "severity_weight"):
            table = getattr(self, table_name)
            unknown = [k for k in table if not isinstance(k, Severity)]
            if unknown:
                raise ValueError(f"{table_name} must be keyed by Severity, got {unknown!r}")
            missing = set(Severity) - set(table)
            if missing:
                raise ValueError(
                    f"{table_name} is missing severities: {sorted(s.value for s in missing)}"
                )
            object.__setattr__(self, table_name, MappingProxyType(dict(table)))


@dataclass(frozen=True)
class EngineConfig:
    """Bundle of detector and scorer configuration passed through the pipeline."""

    anomaly: AnomalyConfig = field(default_factory=AnomalyConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
