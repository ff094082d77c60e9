"""
Coarse reconciliation-level risk assessment, used when the full scorer cannot run.

Three inputs only: total variance percent, critical discrepancy count and
suspicious pattern count. Always computable from a parsed snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot
from backend_claimscan.analysis_engine.models import Severity
from backend_claimscan.analysis_engine.stats import clamp_score

BASELINE_CONFIDENCE = 0.85
HIGH_VARIANCE_NOTE_PCT = 10.0

_LEVEL_RECOMMENDATIONS = {
    Severity.CRITICAL: (
        "Immediate manual review required before approval",
        "Consider requesting additional documentation",
    ),
    Severity.HIGH: (
        "Detailed review of high-variance items recommended",
        "Verify pricing against industry standards",
    ),
    Severity.MEDIUM: ("Standard review process with attention to flagged items",),
    Severity.LOW: ("Standard processing acceptable",),
}


@dataclass(frozen=True)
class BaselineRiskNote:
    type: str
    description: str
    impact: float
    likelihood: float
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "impact": self.impact,
            "likelihood": self.likelihood,
            "mitigation": self.mitigation,
        }


@dataclass(frozen=True)
class BaselineRiskAssessment:
    overall_risk_score: int
    risk_level: Severity
    risk_factors: tuple[BaselineRiskNote, ...] = ()
    recommendations: tuple[str, ...] = ()
    confidence_level: float = BASELINE_CONFIDENCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallRiskScore": self.overall_risk_score,
            "riskLevel": self.risk_level.value,
            "riskFactors": [f.to_dict() for f in self.risk_factors],
            "recommendations": list(self.recommendations),
            "confidenceLevel": self.confidence_level,
        }


def baseline_level(score: float) -> Severity:
    if score < 25:
        return Severity.LOW
    if score < 50:
        return Severity.MEDIUM
    if score < 75:
        return Severity.HIGH
    return Severity.CRITICAL


def baseline_risk_assessment(comparison: ComparisonSnapshot) -> BaselineRiskAssessment:
    """
    Weighted blend: 0.4 x variance% (capped at 100), 0.3 x 20 per critical
    discrepancy (capped at 60), 0.3 x 15 per suspicious pattern (capped at 30).
    """
    stats = comparison.statistics
    variance_risk = min(stats.total_variance_percent, 100.0)
    critical = sum(1 for d in comparison.discrepancies if d.severity == Severity.CRITICAL)
    discrepancy_risk = min(critical * 20, 60)
    pattern_risk = min(len(stats.suspicious_patterns) * 15, 30)
    raw_score = variance_risk * 0.4 + discrepancy_risk * 0.3 + pattern_risk * 0.3

    notes = []
    if variance_risk > HIGH_VARIANCE_NOTE_PCT:
        notes.append(
            BaselineRiskNote(
                type="high_variance",
                description=(
                    f"Total variance of {stats.total_variance_percent:.2f}% exceeds normal thresholds"
                ),
                impact=variance_risk,
                likelihood=0.8,
                mitigation="Detailed review of high-variance items recommended",
            )
        )

    level = baseline_level(raw_score)
    return BaselineRiskAssessment(
        overall_risk_score=clamp_score(raw_score),
        risk_level=level,
        risk_factors=tuple(notes),
        recommendations=_LEVEL_RECOMMENDATIONS[level],
    )
