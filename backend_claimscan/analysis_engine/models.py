"""
Data models for analysis engine output.

Responsibilities:
- Define the closed enumerations shared by detector and scorer (severity,
  anomaly type, risk category, risk level, recommendation priority/category).
- Define the immutable result records: evidence, anomalies, risk factors,
  recommendations and the composite risk score.
- Serialize results to camelCase dicts for the report and UI layer.

Records validate their value ranges at construction; an out-of-range
confidence or a negative deviation is a programming error, not bad input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnomalyType(str, Enum):
    OUTLIER = "outlier"
    ARTIFICIAL_DIGIT_PATTERN = "artificial-digit-pattern"
    CALCULATION_INCONSISTENCY = "calculation-inconsistency"
    TEMPORAL = "temporal"
    # Reserved for location-based checks; no detector produces it yet.
    GEOGRAPHIC = "geographic"


class EvidenceType(str, Enum):
    STATISTICAL = "statistical"
    PATTERN = "pattern"
    COMPARISON = "comparison"
    HISTORICAL = "historical"


class RiskCategory(str, Enum):
    """Risk factor category: every anomaly type plus the synthetic categories."""

    OUTLIER = "outlier"
    ARTIFICIAL_DIGIT_PATTERN = "artificial-digit-pattern"
    CALCULATION_INCONSISTENCY = "calculation-inconsistency"
    TEMPORAL = "temporal"
    GEOGRAPHIC = "geographic"
    VARIANCE = "variance"
    DOCUMENTATION = "documentation"

    @classmethod
    def from_anomaly_type(cls, anomaly_type: AnomalyType) -> RiskCategory:
        return cls(anomaly_type.value)


class RiskLevel(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class RecommendationPriority(str, Enum):
    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank; higher is more urgent."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    RecommendationPriority.IMMEDIATE: 4,
    RecommendationPriority.HIGH: 3,
    RecommendationPriority.MEDIUM: 2,
    RecommendationPriority.LOW: 1,
}


class RecommendationCategory(str, Enum):
    INVESTIGATION = "investigation"
    VERIFICATION = "verification"
    DOCUMENTATION = "documentation"
    COMPLIANCE = "compliance"


def _require_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be in [{low}, {high}], got {value}")


@dataclass(frozen=True)
class AnomalyEvidence:
    """One observed-vs-expected measurement backing an anomaly or risk factor."""

    type: EvidenceType
    description: str
    value: float
    expected_value: float
    deviation: float
    """Always |value - expected_value|; never negative."""
    significance: float
    """Test statistic or ratio supporting the evidence; never negative."""

    def __post_init__(self) -> None:
        if self.deviation < 0:
            raise ValueError(f"deviation must be non-negative, got {self.deviation}")
        if self.significance < 0:
            raise ValueError(f"significance must be non-negative, got {self.significance}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "value": self.value,
            "expectedValue": self.expected_value,
            "deviation": self.deviation,
            "significance": self.significance,
        }


@dataclass(frozen=True)
class StatisticalAnomalyResult:
    """
    Single statistical anomaly flagged by the detector.

    statistical_measure is the raw test statistic (max z-score, chi-square,
    max absolute deviation, processing time); threshold is the value it crossed.
    """

    type: AnomalyType
    severity: Severity
    confidence: float
    description: str
    affected_items: tuple[str, ...]
    statistical_measure: float
    threshold: float
    evidence: tuple[AnomalyEvidence, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "affected_items", tuple(self.affected_items))
        object.__setattr__(self, "evidence", tuple(self.evidence))
        _require_range("confidence", self.confidence, 0.0, 1.0)
        if not self.evidence:
            raise ValueError(f"{self.type.value} anomaly must carry at least one evidence entry")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "affectedItems": list(self.affected_items),
            "statisticalMeasure": self.statistical_measure,
            "threshold": self.threshold,
            "evidence": [e.to_dict() for e in self.evidence],
        }


@dataclass(frozen=True)
class RiskFactor:
    """Weighted contributor to the risk score; impact x likelihood orders the list."""

    id: str
    category: RiskCategory
    description: str
    impact: float
    likelihood: float
    confidence: float
    evidence: tuple[AnomalyEvidence, ...]
    mitigation: str
    severity: Severity
    weight: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "evidence", tuple(self.evidence))
        _require_range("impact", self.impact, 0.0, 100.0)
        _require_range("likelihood", self.likelihood, 0.0, 1.0)
        _require_range("confidence", self.confidence, 0.0, 1.0)
        _require_range("weight", self.weight, 0.0, 1.0)

    @property
    def expected_impact(self) -> float:
        return self.impact * self.likelihood

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "description": self.description,
            "impact": self.impact,
            "likelihood": self.likelihood,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "mitigation": self.mitigation,
            "severity": self.severity.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class Recommendation:
    id: str
    priority: RecommendationPriority
    category: RecommendationCategory
    action: str
    rationale: str
    expected_outcome: str
    timeframe: str
    resources: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", tuple(self.resources))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority.value,
            "category": self.category.value,
            "action": self.action,
            "rationale": self.rationale,
            "expectedOutcome": self.expected_outcome,
            "timeframe": self.timeframe,
            "resources": list(self.resources),
        }


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: int
    upper: int
    confidence: int = 95

    def to_dict(self) -> dict[str, Any]:
        return {"lower": self.lower, "upper": self.upper, "confidence": self.confidence}


@dataclass(frozen=True)
class ComponentScores:
    """The four weighted components of the overall score, each an int in [0, 100]."""

    statistical: int
    behavioral: int
    documentation: int
    compliance: int

    def __post_init__(self) -> None:
        for name in ("statistical", "behavioral", "documentation", "compliance"):
            _require_range(name, getattr(self, name), 0, 100)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.statistical, self.behavioral, self.documentation, self.compliance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "statistical": self.statistical,
            "behavioral": self.behavioral,
            "documentation": self.documentation,
            "compliance": self.compliance,
        }


@dataclass(frozen=True)
class ProfessionalRiskScore:
    """Composite, confidence-bounded fraud-risk score for one claim comparison."""

    overall_score: int
    confidence_interval: ConfidenceInterval
    component_scores: ComponentScores
    risk_level: RiskLevel
    risk_factors: tuple[RiskFactor, ...]
    recommendations: tuple[Recommendation, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors))
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        _require_range("overall_score", self.overall_score, 0, 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "confidenceInterval": self.confidence_interval.to_dict(),
            "componentScores": self.component_scores.to_dict(),
            "riskLevel": self.risk_level.value,
            "riskFactors": [f.to_dict() for f in self.risk_factors],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
