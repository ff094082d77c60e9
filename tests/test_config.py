"""
Pytest tests for loading engine configuration from CLAIMSCAN_* environment variables.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend_claimscan.analysis_engine.thresholds import EngineConfig
from backend_claimscan.config import load_engine_config


def test_defaults_without_overrides():
    assert load_engine_config() == EngineConfig()


def test_anomaly_overrides(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_Z_SCORE_MEDIUM", "1.5")
    monkeypatch.setenv("CLAIMSCAN_P_VALUE_METHOD", "EXACT")
    monkeypatch.setenv("CLAIMSCAN_LEADING_DIGIT_MIN_ITEMS", "50")
    monkeypatch.setenv("CLAIMSCAN_CALCULATION_TOLERANCE", "0.02")

    config = load_engine_config()
    assert config.anomaly.z_score_medium == 1.5
    assert config.anomaly.p_value_method == "exact"
    assert config.anomaly.leading_digit_min_items == 50
    assert config.anomaly.calculation_tolerance == Decimal("0.02")
    assert config.risk == EngineConfig().risk


def test_risk_weight_overrides(monkeypatch):
    for name in ("STATISTICAL", "BEHAVIORAL", "DOCUMENTATION", "COMPLIANCE"):
        monkeypatch.setenv(f"CLAIMSCAN_WEIGHT_{name}", "0.25")
    monkeypatch.setenv("CLAIMSCAN_IMMEDIATE_INVESTIGATION_SCORE", "80")

    config = load_engine_config()
    assert config.risk.statistical_weight == 0.25
    assert config.risk.compliance_weight == 0.25
    assert config.risk.immediate_investigation_score == 80


def test_blank_value_is_ignored(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_Z_SCORE_HIGH", "  ")
    assert load_engine_config().anomaly.z_score_high == 2.5


def test_invalid_number_names_variable(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_TEMPORAL_THRESHOLD_MS", "slow")
    with pytest.raises(ValueError, match="CLAIMSCAN_TEMPORAL_THRESHOLD_MS"):
        load_engine_config()


def test_invalid_integer_names_variable(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_LEADING_DIGIT_MIN_ITEMS", "30.5")
    with pytest.raises(ValueError, match="CLAIMSCAN_LEADING_DIGIT_MIN_ITEMS"):
        load_engine_config()


def test_invalid_choice_names_variable(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_P_VALUE_METHOD", "approx")
    with pytest.raises(ValueError, match="CLAIMSCAN_P_VALUE_METHOD"):
        load_engine_config()


def test_weights_not_summing_to_one(monkeypatch):
    monkeypatch.setenv("CLAIMSCAN_WEIGHT_STATISTICAL", "0.5")
    with pytest.raises(ValueError, match="sum to 1.0") as exc_info:
        load_engine_config()
    assert "CLAIMSCAN_WEIGHT_STATISTICAL" in str(exc_info.value)
