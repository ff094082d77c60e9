"""
Analysis engine package: anomaly detection and risk scoring for claim comparisons.

Consumes a reconciled comparison snapshot, applies statistical checks and
rule-based scoring, and produces anomalies, a professional risk score and
a baseline fallback assessment.
"""

from backend_claimscan.analysis_engine.comparison import (
    ComparisonSnapshot,
    LineItem,
    ReconciliationResult,
    VarianceStatistics,
)
from backend_claimscan.analysis_engine.anomaly import detect_anomalies
from backend_claimscan.analysis_engine.baseline import (
    BaselineRiskAssessment,
    baseline_risk_assessment,
)
from backend_claimscan.analysis_engine.models import (
    AnomalyType,
    ProfessionalRiskScore,
    RiskLevel,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.pipeline import ClaimAssessment, assess_claim
from backend_claimscan.analysis_engine.scorer import determine_risk_level, score_risk
from backend_claimscan.analysis_engine.thresholds import (
    AnomalyConfig,
    EngineConfig,
    RiskConfig,
)

__all__ = [
    "ComparisonSnapshot",
    "LineItem",
    "ReconciliationResult",
    "VarianceStatistics",
    "detect_anomalies",
    "BaselineRiskAssessment",
    "baseline_risk_assessment",
    "AnomalyType",
    "ProfessionalRiskScore",
    "RiskLevel",
    "Severity",
    "StatisticalAnomalyResult",
    "ClaimAssessment",
    "assess_claim",
    "determine_risk_level",
    "score_risk",
    "AnomalyConfig",
    "EngineConfig",
    "RiskConfig",
]
