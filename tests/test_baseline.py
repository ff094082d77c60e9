"""
Pytest tests for the coarse baseline risk assessment used as the fallback.
"""

from __future__ import annotations

from backend_claimscan.analysis_engine.baseline import baseline_risk_assessment
from backend_claimscan.analysis_engine.models import Severity


def test_baseline_low_for_clean_comparison(uniform_snapshot):
    result = baseline_risk_assessment(uniform_snapshot)
    assert result.overall_risk_score == 0
    assert result.risk_level == Severity.LOW
    assert result.risk_factors == ()
    assert result.recommendations == ("Standard processing acceptable",)
    assert result.confidence_level == 0.85


def test_baseline_weighted_blend(make_item, make_snapshot):
    """0.4 x 80 + 0.3 x min(3 x 20, 60) + 0.3 x min(2 x 15, 30) = 32 + 18 + 9 = 59 -> high."""
    snapshot = make_snapshot(
        [make_item("a")],
        total_variance_percent=80.0,
        discrepancy_severities=("critical", "critical", "critical", "high"),
        pattern_count=2,
    )
    result = baseline_risk_assessment(snapshot)

    assert result.overall_risk_score == 59
    assert result.risk_level == Severity.HIGH
    assert result.recommendations == (
        "Detailed review of high-variance items recommended",
        "Verify pricing against industry standards",
    )
    (note,) = result.risk_factors
    assert note.type == "high_variance"
    assert note.impact == 80.0
    assert "80.00%" in note.description


def test_baseline_caps_each_input(make_item, make_snapshot):
    """Variance capped at 100, discrepancies at 60, patterns at 30: 40 + 18 + 9 = 67."""
    snapshot = make_snapshot(
        [make_item("a")],
        total_variance_percent=250.0,
        discrepancy_severities=("critical",) * 5,
        pattern_count=4,
    )
    result = baseline_risk_assessment(snapshot)
    assert result.overall_risk_score == 67
    assert result.risk_factors[0].impact == 100.0


def test_baseline_medium_and_negative_variance(make_item, make_snapshot):
    medium = baseline_risk_assessment(make_snapshot([make_item("a")], total_variance_percent=70.0))
    assert medium.overall_risk_score == 28
    assert medium.risk_level == Severity.MEDIUM
    assert medium.recommendations == ("Standard review process with attention to flagged items",)

    reduced = baseline_risk_assessment(make_snapshot([make_item("a")], total_variance_percent=-40.0))
    assert reduced.overall_risk_score == 0
    assert reduced.risk_level == Severity.LOW
    assert reduced.risk_factors == ()


def test_baseline_to_dict(uniform_snapshot):
    data = baseline_risk_assessment(uniform_snapshot).to_dict()
    assert data == {
        "overallRiskScore": 0,
        "riskLevel": "low",
        "riskFactors": [],
        "recommendations": ["Standard processing acceptable"],
        "confidenceLevel": 0.85,
    }
