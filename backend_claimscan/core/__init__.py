"""
Core utilities: domain exceptions shared by the analysis engine and callers.
"""

from backend_claimscan.core.exceptions import (
    AnomalyDetectionError,
    ClaimScanError,
    MalformedComparisonError,
    RiskScoringError,
)

__all__ = [
    "AnomalyDetectionError",
    "ClaimScanError",
    "MalformedComparisonError",
    "RiskScoringError",
]
