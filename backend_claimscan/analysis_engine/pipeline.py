"""
Claim assessment pipeline: parse -> baseline -> detect anomalies -> score risk.

The baseline assessment is always computed. When detection or scoring fails
the result falls back to it, with no partial anomalies or score.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from backend_claimscan.analysis_engine.anomaly import detect_anomalies
from backend_claimscan.analysis_engine.baseline import BaselineRiskAssessment, baseline_risk_assessment
from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot
from backend_claimscan.analysis_engine.models import ProfessionalRiskScore, StatisticalAnomalyResult
from backend_claimscan.analysis_engine.scorer import score_risk
from backend_claimscan.analysis_engine.thresholds import EngineConfig
from backend_claimscan.claimscan_logging import bind_claim, get_logger
from backend_claimscan.core.exceptions import ClaimScanError

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClaimAssessment:
    baseline: BaselineRiskAssessment
    anomalies: tuple[StatisticalAnomalyResult, ...] = field(default_factory=tuple)
    risk_score: ProfessionalRiskScore | None = None
    used_fallback: bool = False
    error: str | None = None
    analysis_id: str | None = None

    @property
    def effective_score(self) -> int:
        if self.risk_score is not None:
            return self.risk_score.overall_score
        return self.baseline.overall_risk_score

    @property
    def effective_level(self) -> str:
        if self.risk_score is not None:
            return self.risk_score.risk_level.value
        return self.baseline.risk_level.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysisId": self.analysis_id,
            "anomalies": [a.to_dict() for a in self.anomalies],
            "riskScore": self.risk_score.to_dict() if self.risk_score is not None else None,
            "baseline": self.baseline.to_dict(),
            "usedFallback": self.used_fallback,
            "error": self.error,
            "effectiveScore": self.effective_score,
            "effectiveLevel": self.effective_level,
        }


def assess_claim(
    comparison: ComparisonSnapshot | Mapping[str, Any],
    config: EngineConfig | None = None,
) -> ClaimAssessment:
    """
    Assess one reconciled comparison.

    Args:
        comparison: Typed snapshot, or the reconciliation engine's camelCase payload.
        config: Detector and scorer configuration; defaults if None.

    Returns:
        ClaimAssessment with anomalies and the professional score, or the
        baseline alone with used_fallback=True if detection or scoring failed.

    Raises:
        MalformedComparisonError: the payload could not be parsed (no
            baseline is possible without a snapshot).
    """
    cfg = config or EngineConfig()
    snapshot = (
        comparison
        if isinstance(comparison, ComparisonSnapshot)
        else ComparisonSnapshot.from_dict(comparison)
    )
    log = bind_claim(snapshot.analysis_id) if snapshot.analysis_id else logger
    baseline = baseline_risk_assessment(snapshot)

    try:
        anomalies = detect_anomalies(snapshot, cfg.anomaly)
        risk_score = score_risk(snapshot, anomalies, cfg.risk)
    except ClaimScanError as e:
        log.error(
            "claim_assessment_fallback",
            error=str(e),
            error_type=type(e).__name__,
            baseline_score=baseline.overall_risk_score,
            baseline_level=baseline.risk_level.value,
        )
        return ClaimAssessment(
            baseline=baseline,
            used_fallback=True,
            error=str(e),
            analysis_id=snapshot.analysis_id,
        )

    log.info(
        "claim_assessment_complete",
        overall_score=risk_score.overall_score,
        risk_level=risk_score.risk_level.value,
        baseline_score=baseline.overall_risk_score,
        anomaly_count=len(anomalies),
    )
    return ClaimAssessment(
        baseline=baseline,
        anomalies=tuple(anomalies),
        risk_score=risk_score,
        analysis_id=snapshot.analysis_id,
    )
