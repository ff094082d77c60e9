"""
Risk factor expansion: anomalies plus rule-based extras -> weighted RiskFactor list.

Every anomaly becomes one factor (impact from its severity, likelihood from
its confidence). Two synthetic factors are added from the comparison itself:
overall variance against the original invoice, and weak reconciliation
(documentation) quality. The list is ordered by impact x likelihood.
"""

from __future__ import annotations

from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot
from backend_claimscan.analysis_engine.models import (
    AnomalyEvidence,
    AnomalyType,
    EvidenceType,
    RiskCategory,
    RiskFactor,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.thresholds import RiskConfig

MITIGATIONS = {
    AnomalyType.OUTLIER: "Detailed review of outlier items and verification of supporting documentation",
    AnomalyType.ARTIFICIAL_DIGIT_PATTERN: (
        "Investigation of number generation processes and source document verification"
    ),
    AnomalyType.CALCULATION_INCONSISTENCY: "Recalculation verification and mathematical accuracy review",
    AnomalyType.TEMPORAL: "Process efficiency review and data quality assessment",
    AnomalyType.GEOGRAPHIC: "Location-based verification and regional benchmark comparison",
}

VARIANCE_MITIGATION = "Detailed review of high-variance items and supporting documentation"
DOCUMENTATION_MITIGATION = (
    "Obtain itemized source documents for unmatched lines and re-run reconciliation"
)


def anomaly_risk_weight(severity: Severity, confidence: float, config: RiskConfig) -> float:
    return config.severity_weight[severity] * confidence


def _factor_from_anomaly(
    index: int,
    anomaly: StatisticalAnomalyResult,
    config: RiskConfig,
) -> RiskFactor:
    return RiskFactor(
        id=f"anomaly-{index}",
        category=RiskCategory.from_anomaly_type(anomaly.type),
        description=anomaly.description,
        impact=config.severity_impact[anomaly.severity],
        likelihood=anomaly.confidence,
        confidence=anomaly.confidence,
        evidence=anomaly.evidence,
        mitigation=MITIGATIONS[anomaly.type],
        severity=anomaly.severity,
        weight=anomaly_risk_weight(anomaly.severity, anomaly.confidence, config),
    )


def _variance_factor(comparison: ComparisonSnapshot, config: RiskConfig) -> RiskFactor | None:
    """Synthetic factor when supplement total exceeds the original by more than the cutoff."""
    pct = comparison.statistics.total_variance_percent
    if pct <= config.variance_factor_min_pct:
        return None
    norm = config.variance_norm_pct
    original_total = comparison.original_total
    supplement_total = comparison.supplement_total
    return RiskFactor(
        id="high-variance",
        category=RiskCategory.VARIANCE,
        description=f"Total variance of {pct:.2f}% exceeds normal thresholds",
        impact=config.variance_factor_impact,
        likelihood=config.variance_factor_likelihood,
        confidence=config.variance_factor_confidence,
        evidence=(
            AnomalyEvidence(
                type=EvidenceType.STATISTICAL,
                description=f"Total variance {pct:.2f}% against a {norm:.0f}% norm",
                value=pct,
                expected_value=norm,
                deviation=abs(pct - norm),
                significance=pct / norm,
            ),
            AnomalyEvidence(
                type=EvidenceType.COMPARISON,
                description=(
                    f"Supplement total {supplement_total} against original total {original_total}"
                ),
                value=float(supplement_total),
                expected_value=float(original_total),
                deviation=float(abs(supplement_total - original_total)),
                significance=pct / 100.0,
            ),
        ),
        mitigation=VARIANCE_MITIGATION,
        severity=Severity.HIGH if pct > config.variance_factor_high_pct else Severity.MEDIUM,
        weight=config.variance_factor_weight,
    )


def _documentation_factor(
    comparison: ComparisonSnapshot,
    documentation_score: int,
    config: RiskConfig,
) -> RiskFactor | None:
    """Synthetic factor when too few supplement lines could be matched to the original."""
    accuracy = comparison.reconciliation.matching_accuracy
    if accuracy >= config.documentation_accuracy_floor:
        return None
    severity = (
        Severity.HIGH if accuracy < config.documentation_high_accuracy_below else Severity.MEDIUM
    )
    likelihood = min(max(1.0 - accuracy, 0.0), 1.0)
    unmatched = len(comparison.reconciliation.unmatched_original_items)
    return RiskFactor(
        id="documentation-quality",
        category=RiskCategory.DOCUMENTATION,
        description=(
            f"Only {accuracy:.0%} of line items could be matched between the original "
            f"and supplement ({unmatched} original items unmatched)"
        ),
        impact=float(documentation_score),
        likelihood=likelihood,
        confidence=config.documentation_factor_confidence,
        evidence=(
            AnomalyEvidence(
                type=EvidenceType.COMPARISON,
                description="Reconciliation matching accuracy below the documentation floor",
                value=accuracy,
                expected_value=config.documentation_accuracy_floor,
                deviation=abs(config.documentation_accuracy_floor - accuracy),
                significance=likelihood,
            ),
        ),
        mitigation=DOCUMENTATION_MITIGATION,
        severity=severity,
        weight=anomaly_risk_weight(severity, config.documentation_factor_confidence, config),
    )


def build_risk_factors(
    comparison: ComparisonSnapshot,
    anomalies: list[StatisticalAnomalyResult],
    documentation_score: int,
    config: RiskConfig,
) -> list[RiskFactor]:
    """
    Expand anomalies and rule-based extras into risk factors.

    Returns:
        Factors sorted by impact x likelihood, highest first; ties keep
        anomaly order, then variance, then documentation.
    """
    factors = [_factor_from_anomaly(i, a, config) for i, a in enumerate(anomalies)]
    for extra in (
        _variance_factor(comparison, config),
        _documentation_factor(comparison, documentation_score, config),
    ):
        if extra is not None:
            factors.append(extra)
    factors.sort(key=lambda f: f.expected_impact, reverse=True)
    return factors
