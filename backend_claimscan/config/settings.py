"""
Engine settings: defaults from the threshold dataclasses, overridden by environment.

Responsibilities:
- Load .env from the project root.
- Apply CLAIMSCAN_* overrides to AnomalyConfig and RiskConfig.
- Validate through the dataclasses; any bad value raises ValueError naming
  the offending variable.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable

from backend_claimscan.analysis_engine.thresholds import (
    P_VALUE_METHODS,
    AnomalyConfig,
    EngineConfig,
    RiskConfig,
)
from backend_claimscan.claimscan_logging import get_logger
from backend_claimscan.config.env import (
    ENV_PREFIX,
    get_env_choice,
    get_env_float,
    get_env_int,
    load_claimscan_env,
)

logger = get_logger(__name__)

# env suffix -> (dataclass field, parser)
_ANOMALY_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "Z_SCORE_MEDIUM": ("z_score_medium", get_env_float),
    "Z_SCORE_HIGH": ("z_score_high", get_env_float),
    "Z_SCORE_CRITICAL": ("z_score_critical", get_env_float),
    "Z_SCORE_MIN_ITEMS": ("z_score_min_items", get_env_int),
    "LEADING_DIGIT_MIN_ITEMS": ("leading_digit_min_items", get_env_int),
    "P_VALUE_METHOD": ("p_value_method", lambda name: get_env_choice(name, P_VALUE_METHODS)),
    "SIGNIFICANCE_LEVEL": ("significance_level", get_env_float),
    "SUSPICIOUS_DIGIT_DEVIATION_PCT": ("suspicious_digit_deviation_pct", get_env_float),
    "CALCULATION_MIN_ITEMS": ("calculation_min_items", get_env_int),
    "CALCULATION_TOLERANCE": ("calculation_tolerance", get_env_float),
    "CALCULATION_HIGH_DEVIATION": ("calculation_high_deviation", get_env_float),
    "TEMPORAL_THRESHOLD_MS": ("temporal_threshold_ms", get_env_float),
}

_RISK_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "WEIGHT_STATISTICAL": ("statistical_weight", get_env_float),
    "WEIGHT_BEHAVIORAL": ("behavioral_weight", get_env_float),
    "WEIGHT_DOCUMENTATION": ("documentation_weight", get_env_float),
    "WEIGHT_COMPLIANCE": ("compliance_weight", get_env_float),
    "CRITICAL_LEVEL_MIN": ("critical_level_min", get_env_int),
    "HIGH_LEVEL_MIN": ("high_level_min", get_env_int),
    "MODERATE_LEVEL_MIN": ("moderate_level_min", get_env_int),
    "LOW_LEVEL_MIN": ("low_level_min", get_env_int),
    "VARIANCE_FACTOR_MIN_PCT": ("variance_factor_min_pct", get_env_float),
    "DOCUMENTATION_ACCURACY_FLOOR": ("documentation_accuracy_floor", get_env_float),
    "IMMEDIATE_INVESTIGATION_SCORE": ("immediate_investigation_score", get_env_int),
}

_DECIMAL_FIELDS = {"calculation_tolerance", "calculation_high_deviation"}


def _collect(overrides: dict[str, tuple[str, Callable[[str], Any]]]) -> dict[str, tuple[str, Any]]:
    """Return field name -> (variable name, parsed value) for every variable that is set."""
    changes: dict[str, tuple[str, Any]] = {}
    for suffix, (field_name, parse) in overrides.items():
        variable = ENV_PREFIX + suffix
        value = parse(variable)
        if value is None:
            continue
        if field_name in _DECIMAL_FIELDS:
            value = Decimal(str(value))
        changes[field_name] = (variable, value)
    return changes


def _apply(base: Any, changes: dict[str, tuple[str, Any]], section: str) -> Any:
    if not changes:
        return base
    try:
        return replace(base, **{name: value for name, (_, value) in changes.items()})
    except ValueError as e:
        variables = ", ".join(sorted(variable for variable, _ in changes.values()))
        raise ValueError(f"Invalid {section} settings from environment ({variables}): {e}") from e


def load_engine_config() -> EngineConfig:
    """
    Build the engine configuration from defaults plus CLAIMSCAN_* overrides.

    Returns:
        EngineConfig with validated AnomalyConfig and RiskConfig.

    Raises:
        ValueError: a variable could not be parsed, or the resulting
            configuration is inconsistent (e.g. weights not summing to 1).
    """
    load_claimscan_env()
    anomaly_changes = _collect(_ANOMALY_OVERRIDES)
    risk_changes = _collect(_RISK_OVERRIDES)
    config = EngineConfig(
        anomaly=_apply(AnomalyConfig(), anomaly_changes, "anomaly"),
        risk=_apply(RiskConfig(), risk_changes, "risk"),
    )
    if anomaly_changes or risk_changes:
        logger.info(
            "engine_config_overridden",
            anomaly_fields=sorted(anomaly_changes),
            risk_fields=sorted(risk_changes),
        )
    return config
