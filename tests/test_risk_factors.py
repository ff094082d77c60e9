"""
Pytest tests for risk factor expansion and rule-based recommendations.
"""

from __future__ import annotations

import pytest

from backend_claimscan.analysis_engine.models import (
    AnomalyEvidence,
    AnomalyType,
    EvidenceType,
    RecommendationPriority,
    RiskCategory,
    RiskLevel,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.recommendations import build_recommendations
from backend_claimscan.analysis_engine.risk_factors import build_risk_factors
from backend_claimscan.analysis_engine.scorer import determine_risk_level
from backend_claimscan.analysis_engine.thresholds import RiskConfig


def _anomaly(anomaly_type, severity, confidence):
    return StatisticalAnomalyResult(
        type=anomaly_type,
        severity=severity,
        confidence=confidence,
        description=f"{anomaly_type.value} anomaly",
        affected_items=("item-0",),
        statistical_measure=1.0,
        threshold=0.5,
        evidence=(
            AnomalyEvidence(
                type=EvidenceType.STATISTICAL,
                description="observed vs expected",
                value=2.0,
                expected_value=1.0,
                deviation=1.0,
                significance=1.0,
            ),
        ),
    )


# --- Risk factors ---


def test_factors_ordered_by_expected_impact(make_item, make_snapshot):
    """critical/1.0 (95) > variance (75 x 0.8 = 60) > medium/0.5 (25)."""
    snapshot = make_snapshot([make_item("a")], total_variance_percent=60.0)
    anomalies = [
        _anomaly(AnomalyType.OUTLIER, Severity.MEDIUM, 0.5),
        _anomaly(AnomalyType.CALCULATION_INCONSISTENCY, Severity.CRITICAL, 1.0),
    ]
    factors = build_risk_factors(snapshot, anomalies, 0, RiskConfig())

    assert [f.id for f in factors] == ["anomaly-1", "high-variance", "anomaly-0"]
    critical, variance, medium = factors

    assert critical.category == RiskCategory.CALCULATION_INCONSISTENCY
    assert critical.impact == 95.0
    assert critical.likelihood == 1.0
    assert critical.weight == pytest.approx(1.0)
    assert critical.mitigation.startswith("Recalculation verification")

    assert medium.category == RiskCategory.OUTLIER
    assert medium.impact == 50.0
    assert medium.weight == pytest.approx(0.3)


def test_high_variance_factor(make_item, make_snapshot):
    """60% total variance: high-severity variance factor against the 10% norm."""
    snapshot = make_snapshot([make_item("a")], total_variance_percent=60.0)
    (factor,) = build_risk_factors(snapshot, [], 0, RiskConfig())

    assert factor.id == "high-variance"
    assert factor.category == RiskCategory.VARIANCE
    assert factor.severity == Severity.HIGH
    assert factor.impact == 75.0
    assert factor.likelihood == pytest.approx(0.8)
    assert factor.confidence == pytest.approx(0.9)
    assert "60.00%" in factor.description
    evidence = factor.evidence[0]
    assert evidence.expected_value == 10.0
    assert evidence.deviation == pytest.approx(50.0)
    assert evidence.significance == pytest.approx(6.0)
    assert len(factor.evidence) == 2


def test_variance_factor_carries_invoice_totals(make_item, make_snapshot):
    """Second evidence entry compares supplement and original invoice totals."""
    snapshot = make_snapshot(
        [make_item("a", quantity=2, unit_price="50.00")],
        new_items=[make_item("new", unit_price="60.50")],
        unmatched=[make_item("dropped", unit_price="20.00")],
        total_variance_percent=33.5,
    )
    (factor,) = build_risk_factors(snapshot, [], 0, RiskConfig())

    totals = factor.evidence[1]
    assert totals.type == EvidenceType.COMPARISON
    assert totals.value == pytest.approx(160.5)
    assert totals.expected_value == pytest.approx(120.0)
    assert totals.deviation == pytest.approx(40.5)
    assert totals.significance == pytest.approx(0.335)
    assert "160.50" in totals.description
    assert "120.00" in totals.description


@pytest.mark.parametrize(
    ("variance_pct", "expected"),
    [(30.0, Severity.MEDIUM), (50.0, Severity.MEDIUM), (50.5, Severity.HIGH)],
)
def test_variance_factor_severity(make_item, make_snapshot, variance_pct, expected):
    snapshot = make_snapshot([make_item("a")], total_variance_percent=variance_pct)
    (factor,) = build_risk_factors(snapshot, [], 0, RiskConfig())
    assert factor.severity == expected


@pytest.mark.parametrize("variance_pct", [0.0, 20.0, -45.0])
def test_no_variance_factor_at_or_below_cutoff(make_item, make_snapshot, variance_pct):
    """Only supplements exceeding the original by more than 20% produce the factor."""
    snapshot = make_snapshot([make_item("a")], total_variance_percent=variance_pct)
    assert build_risk_factors(snapshot, [], 0, RiskConfig()) == []


def test_documentation_factor(make_item, make_snapshot):
    """Matching accuracy 0.4: high-severity documentation factor, likelihood 0.6."""
    snapshot = make_snapshot([make_item("a")], matching_accuracy=0.4, unmatched=[make_item("o")])
    (factor,) = build_risk_factors(snapshot, [], 42, RiskConfig())

    assert factor.id == "documentation-quality"
    assert factor.category == RiskCategory.DOCUMENTATION
    assert factor.severity == Severity.HIGH
    assert factor.impact == 42.0
    assert factor.likelihood == pytest.approx(0.6)
    assert factor.confidence == pytest.approx(0.8)
    assert "1 original items unmatched" in factor.description


def test_documentation_factor_medium_and_absent(make_item, make_snapshot):
    config = RiskConfig()
    medium = build_risk_factors(make_snapshot([make_item("a")], matching_accuracy=0.6), [], 30, config)
    assert [f.severity for f in medium] == [Severity.MEDIUM]
    assert build_risk_factors(make_snapshot([make_item("a")], matching_accuracy=0.7), [], 30, config) == []


# --- Recommendations ---


def test_immediate_investigation_for_high_score(uniform_snapshot):
    """Score 90 is critical and triggers an immediate investigation."""
    assert determine_risk_level(90) == RiskLevel.CRITICAL
    recs = build_recommendations(uniform_snapshot, 90, [], [], RiskConfig())
    assert [r.id for r in recs] == ["immediate-investigation"]
    assert recs[0].priority == RecommendationPriority.IMMEDIATE
    assert recs[0].timeframe == "Within 24 hours"


def test_no_immediate_investigation_below_cutoff(uniform_snapshot):
    assert build_recommendations(uniform_snapshot, 74, [], [], RiskConfig()) == []
    assert len(build_recommendations(uniform_snapshot, 75, [], [], RiskConfig())) == 1


def test_recommendations_ordered_by_priority(make_item, make_snapshot):
    """All rules fire: immediate first, high ones in rule order, medium audit last."""
    snapshot = make_snapshot(
        [make_item("a")],
        matching_accuracy=0.4,
        discrepancy_severities=("critical",),
    )
    config = RiskConfig()
    anomalies = [
        _anomaly(AnomalyType.CALCULATION_INCONSISTENCY, Severity.MEDIUM, 0.5),
        _anomaly(AnomalyType.ARTIFICIAL_DIGIT_PATTERN, Severity.HIGH, 0.99),
    ]
    factors = build_risk_factors(snapshot, anomalies, 50, config)
    recs = build_recommendations(snapshot, 80, factors, anomalies, config)

    assert [r.id for r in recs] == [
        "immediate-investigation",
        "number-pattern-analysis",
        "documentation-review",
        "compliance-review",
        "recalculation-audit",
    ]
    ranks = [r.priority.rank for r in recs]
    assert ranks == sorted(ranks, reverse=True)
    assert recs[-1].priority == RecommendationPriority.MEDIUM


def test_recommendation_to_dict(uniform_snapshot):
    anomalies = [_anomaly(AnomalyType.ARTIFICIAL_DIGIT_PATTERN, Severity.MEDIUM, 0.99)]
    (rec,) = build_recommendations(uniform_snapshot, 10, [], anomalies, RiskConfig())
    data = rec.to_dict()
    assert data["id"] == "number-pattern-analysis"
    assert data["priority"] == "high"
    assert data["category"] == "investigation"
    assert data["expectedOutcome"]
    assert isinstance(data["resources"], list)
