"""
Rule-based recommendations derived from the overall score, anomalies and risk factors.

Rules are not exhaustive; each one that fires adds a single recommendation.
Output is ordered by priority (immediate > high > medium > low); ties keep
rule order.
"""

from __future__ import annotations

from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot
from backend_claimscan.analysis_engine.models import (
    AnomalyType,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    RiskCategory,
    RiskFactor,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.thresholds import RiskConfig

IMMEDIATE_INVESTIGATION = Recommendation(
    id="immediate-investigation",
    priority=RecommendationPriority.IMMEDIATE,
    category=RecommendationCategory.INVESTIGATION,
    action="Initiate comprehensive fraud investigation",
    rationale="High risk score indicates significant probability of fraudulent activity",
    expected_outcome="Identification and quantification of potential fraud",
    timeframe="Within 24 hours",
    resources=("Senior fraud investigator", "Additional documentation", "Expert consultation"),
)

NUMBER_PATTERN_ANALYSIS = Recommendation(
    id="number-pattern-analysis",
    priority=RecommendationPriority.HIGH,
    category=RecommendationCategory.INVESTIGATION,
    action="Conduct detailed analysis of number patterns and their sources",
    rationale="Leading-digit deviations suggest potential artificial number generation",
    expected_outcome="Verification of number authenticity and identification of manipulation",
    timeframe="Within 48 hours",
    resources=("Statistical analyst", "Source document verification", "Historical comparison data"),
)

DOCUMENTATION_REVIEW = Recommendation(
    id="documentation-review",
    priority=RecommendationPriority.HIGH,
    category=RecommendationCategory.VERIFICATION,
    action="Comprehensive review of supporting documentation",
    rationale="Documentation quality issues identified that require verification",
    expected_outcome="Validation of claim accuracy and completeness",
    timeframe="Within 72 hours",
    resources=("Document specialist", "Original source documents", "Cross-reference databases"),
)

COMPLIANCE_REVIEW = Recommendation(
    id="compliance-review",
    priority=RecommendationPriority.HIGH,
    category=RecommendationCategory.COMPLIANCE,
    action="Escalate critical discrepancies for compliance review",
    rationale="Critical discrepancies were reported by the reconciliation",
    expected_outcome="Confirmation that billed charges meet policy and regulatory requirements",
    timeframe="Within 72 hours",
    resources=("Compliance officer", "Policy terms", "Discrepancy report"),
)

RECALCULATION_AUDIT = Recommendation(
    id="recalculation-audit",
    priority=RecommendationPriority.MEDIUM,
    category=RecommendationCategory.VERIFICATION,
    action="Recalculate flagged line totals and request corrected figures",
    rationale="Line totals do not match quantity x unit price",
    expected_outcome="Corrected totals or documented explanation for each mismatch",
    timeframe="Within 5 business days",
    resources=("Claims adjuster", "Itemized invoice"),
)


def build_recommendations(
    comparison: ComparisonSnapshot,
    overall_score: int,
    risk_factors: list[RiskFactor],
    anomalies: list[StatisticalAnomalyResult],
    config: RiskConfig,
) -> list[Recommendation]:
    anomaly_types = {a.type for a in anomalies}
    recommendations: list[Recommendation] = []

    if overall_score >= config.immediate_investigation_score:
        recommendations.append(IMMEDIATE_INVESTIGATION)
    if AnomalyType.ARTIFICIAL_DIGIT_PATTERN in anomaly_types:
        recommendations.append(NUMBER_PATTERN_ANALYSIS)
    if any(f.category == RiskCategory.DOCUMENTATION for f in risk_factors):
        recommendations.append(DOCUMENTATION_REVIEW)
    if any(d.severity == Severity.CRITICAL for d in comparison.discrepancies):
        recommendations.append(COMPLIANCE_REVIEW)
    if AnomalyType.CALCULATION_INCONSISTENCY in anomaly_types:
        recommendations.append(RECALCULATION_AUDIT)

    recommendations.sort(key=lambda r: r.priority.rank, reverse=True)
    return recommendations
