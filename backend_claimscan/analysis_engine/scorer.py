"""
Risk score computation: four weighted components -> composite 0-100 score.

Responsibilities:
- Compute statistical, behavioral, documentation and compliance component
  scores (each an integer clamped to [0, 100]).
- Combine them with the configured weights into the overall score and
  bound it with a 95% confidence interval.
- Classify the risk level and attach risk factors and recommendations.

No ML; every component is a fixed formula over the comparison snapshot and
the detected anomalies, so the score is fully explainable.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator

from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot
from backend_claimscan.analysis_engine.models import (
    ComponentScores,
    ConfidenceInterval,
    ProfessionalRiskScore,
    RiskLevel,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.recommendations import build_recommendations
from backend_claimscan.analysis_engine.risk_factors import build_risk_factors
from backend_claimscan.analysis_engine.stats import clamp_score, population_variance, round_half_up
from backend_claimscan.analysis_engine.thresholds import RiskConfig
from backend_claimscan.claimscan_logging import get_logger
from backend_claimscan.core.exceptions import RiskScoringError

logger = get_logger(__name__)


@contextmanager
def _scoring_stage(stage: str, analysis_id: str | None) -> Iterator[None]:
    """Wrap any failure inside a scoring stage as RiskScoringError naming the stage."""
    try:
        yield
    except RiskScoringError:
        raise
    except Exception as e:
        logger.warning(
            "risk_scoring_stage_failed",
            stage=stage,
            error=str(e),
            error_type=type(e).__name__,
            analysis_id=analysis_id,
        )
        raise RiskScoringError(stage, e) from e


def statistical_score(anomalies: list[StatisticalAnomalyResult], config: RiskConfig) -> int:
    """Confidence-weighted mean of severity base scores; 0 with no anomalies."""
    if not anomalies:
        return 0
    total = sum(config.severity_base_score[a.severity] * a.confidence for a in anomalies)
    return clamp_score(total / len(anomalies))


def behavioral_score(comparison: ComparisonSnapshot, config: RiskConfig) -> int:
    """High-variance share, suspicious patterns and data-quality shortfall; 0 with no items."""
    stats = comparison.statistics
    if stats.item_count == 0:
        return 0
    score = config.behavioral_high_variance_points * (
        len(stats.high_variance_item_ids) / stats.item_count
    )
    score += config.behavioral_pattern_points * len(stats.suspicious_patterns)
    score += config.behavioral_quality_points * (1 - stats.data_quality.quality_product)
    return clamp_score(score)


def documentation_score(comparison: ComparisonSnapshot, config: RiskConfig) -> int:
    """Matching accuracy shortfall, unmatched original share and data-quality issue count."""
    recon = comparison.reconciliation
    score = config.documentation_accuracy_points * (1 - recon.matching_accuracy)
    reconciled = len(recon.matched_items) + len(recon.unmatched_original_items)
    if reconciled > 0:
        score += config.documentation_unmatched_points * (
            len(recon.unmatched_original_items) / reconciled
        )
    score += config.documentation_issue_points * len(comparison.statistics.data_quality.issues)
    return clamp_score(score)


def compliance_score(comparison: ComparisonSnapshot, config: RiskConfig) -> int:
    """Critical/high discrepancy counts plus discrepancies per item; 0 with no items."""
    item_count = comparison.statistics.item_count
    if item_count == 0:
        return 0
    discrepancies = comparison.discrepancies
    critical = sum(1 for d in discrepancies if d.severity == Severity.CRITICAL)
    high = sum(1 for d in discrepancies if d.severity == Severity.HIGH)
    score = config.compliance_critical_points * critical
    score += config.compliance_high_points * high
    score += config.compliance_ratio_points * (len(discrepancies) / item_count)
    return clamp_score(score)


def overall_score(components: ComponentScores, config: RiskConfig) -> int:
    weighted = (
        components.statistical * config.statistical_weight
        + components.behavioral * config.behavioral_weight
        + components.documentation * config.documentation_weight
        + components.compliance * config.compliance_weight
    )
    return clamp_score(weighted)


def confidence_interval(
    score: int,
    components: ComponentScores,
    config: RiskConfig,
) -> ConfidenceInterval:
    """
    Treat the four component scores as a sample; margin = z x sqrt(var / n)
    with the population variance.
    """
    values = components.as_tuple()
    standard_error = math.sqrt(population_variance(values) / len(values))
    margin = config.ci_z_value * standard_error
    return ConfidenceInterval(
        lower=max(0, round_half_up(score - margin)),
        upper=min(100, round_half_up(score + margin)),
        confidence=config.ci_confidence,
    )


def determine_risk_level(score: int, config: RiskConfig | None = None) -> RiskLevel:
    """Map score to level; cutoffs are inclusive lower bounds."""
    cfg = config or RiskConfig()
    if score >= cfg.critical_level_min:
        return RiskLevel.CRITICAL
    if score >= cfg.high_level_min:
        return RiskLevel.HIGH
    if score >= cfg.moderate_level_min:
        return RiskLevel.MODERATE
    if score >= cfg.low_level_min:
        return RiskLevel.LOW
    return RiskLevel.MINIMAL


def score_risk(
    comparison: ComparisonSnapshot,
    anomalies: list[StatisticalAnomalyResult],
    config: RiskConfig | None = None,
) -> ProfessionalRiskScore:
    """
    Compute the professional risk score for a comparison and its anomalies.

    Args:
        comparison: Reconciled comparison snapshot (read-only).
        anomalies: Output of detect_anomalies for the same comparison.
        config: Weights and cutoffs; uses defaults if None.

    Returns:
        ProfessionalRiskScore with overall score, interval, components,
        level, ordered risk factors and ordered recommendations.

    Raises:
        RiskScoringError: a stage failed on malformed input; names the stage
            and chains the cause. No partial score is returned.
    """
    cfg = config or RiskConfig()
    analysis_id = comparison.analysis_id

    with _scoring_stage("statistical_component", analysis_id):
        statistical = statistical_score(anomalies, cfg)
    with _scoring_stage("behavioral_component", analysis_id):
        behavioral = behavioral_score(comparison, cfg)
    with _scoring_stage("documentation_component", analysis_id):
        documentation = documentation_score(comparison, cfg)
    with _scoring_stage("compliance_component", analysis_id):
        compliance = compliance_score(comparison, cfg)

    components = ComponentScores(
        statistical=statistical,
        behavioral=behavioral,
        documentation=documentation,
        compliance=compliance,
    )
    overall = overall_score(components, cfg)

    with _scoring_stage("confidence_interval", analysis_id):
        interval = confidence_interval(overall, components, cfg)
    risk_level = determine_risk_level(overall, cfg)

    with _scoring_stage("risk_factors", analysis_id):
        factors = build_risk_factors(comparison, anomalies, documentation, cfg)
    with _scoring_stage("recommendations", analysis_id):
        recommendations = build_recommendations(comparison, overall, factors, anomalies, cfg)

    result = ProfessionalRiskScore(
        overall_score=overall,
        confidence_interval=interval,
        component_scores=components,
        risk_level=risk_level,
        risk_factors=tuple(factors),
        recommendations=tuple(recommendations),
    )
    logger.info(
        "risk_score_computed",
        analysis_id=analysis_id,
        overall_score=overall,
        risk_level=risk_level.value,
        component_scores=components.to_dict(),
        confidence_interval=interval.to_dict(),
        risk_factor_count=len(factors),
        recommendation_count=len(recommendations),
    )
    return result
