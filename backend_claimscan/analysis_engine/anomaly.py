"""
Statistical anomaly detection over reconciled invoice line items.

Four independent checks: per-metric z-score outliers, leading-digit law
conformity, quantity x price = total consistency, and upstream processing
time. Every check is explainable: each anomaly carries the test statistic,
the threshold it crossed and one evidence entry per flagged observation.
Thresholds come from AnomalyConfig.

Too little data is not an error: a check with too few items, or a metric
with no spread, is skipped. A check that raises does not stop the others;
once all have run, the failures are raised together as AnomalyDetectionError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from backend_claimscan.analysis_engine.comparison import ComparisonSnapshot, LineItem
from backend_claimscan.analysis_engine.models import (
    AnomalyEvidence,
    AnomalyType,
    EvidenceType,
    Severity,
    StatisticalAnomalyResult,
)
from backend_claimscan.analysis_engine.stats import (
    chi_square_p_value,
    chi_square_statistic,
    leading_digit,
    population_stats,
    to_decimal,
)
from backend_claimscan.analysis_engine.thresholds import AnomalyConfig
from backend_claimscan.claimscan_logging import get_logger
from backend_claimscan.core.exceptions import AnomalyDetectionError

logger = get_logger(__name__)

AnomalyCheck = Callable[
    [ComparisonSnapshot, list[LineItem], AnomalyConfig], list[StatisticalAnomalyResult]
]

# (metric label, accessor) for the outlier check
_OUTLIER_METRICS: tuple[tuple[str, Callable[[LineItem], object]], ...] = (
    ("unit price", lambda item: item.unit_price),
    ("quantity", lambda item: item.quantity),
    ("total", lambda item: item.total),
)

_DIGIT_STREAMS: tuple[tuple[str, Callable[[LineItem], object]], ...] = (
    ("unit price", lambda item: item.unit_price),
    ("total", lambda item: item.total),
)


def _z_score_severity(z: float, config: AnomalyConfig) -> Severity:
    if z >= config.z_score_critical:
        return Severity.CRITICAL
    if z >= config.z_score_high:
        return Severity.HIGH
    if z >= config.z_score_medium:
        return Severity.MEDIUM
    return Severity.LOW


def _check_outliers(
    comparison: ComparisonSnapshot,
    items: list[LineItem],
    config: AnomalyConfig,
) -> list[StatisticalAnomalyResult]:
    """
    Flag items whose unit price, quantity or total lies >= z_score_medium
    population standard deviations from the metric mean. One anomaly per metric.
    """
    if len(items) < config.z_score_min_items:
        logger.debug("outlier_check_skipped", reason="too_few_items", item_count=len(items))
        return []

    anomalies: list[StatisticalAnomalyResult] = []
    for metric, accessor in _OUTLIER_METRICS:
        values = [float(to_decimal(accessor(item), f"{metric} of item {item.id}")) for item in items]
        mean, std = population_stats(values)
        if std == 0.0:
            logger.debug("outlier_metric_skipped", metric=metric, reason="no_variation")
            continue

        flagged: list[tuple[LineItem, float, float]] = []
        for item, value in zip(items, values):
            z = abs(value - mean) / std
            if z >= config.z_score_medium:
                flagged.append((item, value, z))
        if not flagged:
            continue

        max_z = max(z for _, _, z in flagged)
        anomalies.append(
            StatisticalAnomalyResult(
                type=AnomalyType.OUTLIER,
                severity=_z_score_severity(max_z, config),
                confidence=min(max_z / config.z_score_critical, 1.0),
                description=f"Statistical outliers detected in {metric} values",
                affected_items=tuple(item.id for item, _, _ in flagged),
                statistical_measure=max_z,
                threshold=config.z_score_medium,
                evidence=tuple(
                    AnomalyEvidence(
                        type=EvidenceType.STATISTICAL,
                        description=(
                            f"{metric.capitalize()} {value:g} of item {item.id} lies "
                            f"{z:.2f} standard deviations from the mean {mean:.2f}"
                        ),
                        value=value,
                        expected_value=mean,
                        deviation=abs(value - mean),
                        significance=z,
                    )
                    for item, value, z in flagged
                ),
            )
        )
    return anomalies


def _check_leading_digits(
    comparison: ComparisonSnapshot,
    items: list[LineItem],
    config: AnomalyConfig,
) -> list[StatisticalAnomalyResult]:
    """
    Compare leading-digit frequencies of unit prices and totals against the
    leading-digit law with a chi-square test; flag streams with p below the
    significance level.
    """
    if len(items) < config.leading_digit_min_items:
        logger.debug(
            "leading_digit_check_skipped",
            reason="too_few_items",
            item_count=len(items),
            required=config.leading_digit_min_items,
        )
        return []

    reference = config.leading_digit_reference_pct
    anomalies: list[StatisticalAnomalyResult] = []
    for stream, accessor in _DIGIT_STREAMS:
        digits = [leading_digit(accessor(item)) for item in items]
        digits = [d for d in digits if d > 0]
        if not digits:
            continue

        n = len(digits)
        counts = [digits.count(d) for d in range(1, 10)]
        expected_counts = [pct / 100.0 * n for pct in reference]
        chi_sq = chi_square_statistic(counts, expected_counts)
        p_value = chi_square_p_value(
            chi_sq,
            config.leading_digit_degrees_of_freedom,
            method=config.p_value_method,
            bands=config.p_value_bands,
            default=config.p_value_default,
        )
        if p_value >= config.significance_level:
            continue

        observed_pct = [count / n * 100.0 for count in counts]
        suspicious = [
            d
            for d in range(1, 10)
            if abs(observed_pct[d - 1] - reference[d - 1]) > config.suspicious_digit_deviation_pct
        ]
        if not suspicious:
            # Significant overall but no single digit past the cutoff: report the worst one.
            suspicious = [
                max(range(1, 10), key=lambda d: abs(observed_pct[d - 1] - reference[d - 1]))
            ]

        evidence = []
        for d in suspicious:
            observed, expected = observed_pct[d - 1], reference[d - 1]
            direction = "more" if observed > expected else "less"
            evidence.append(
                AnomalyEvidence(
                    type=EvidenceType.PATTERN,
                    description=(
                        f"Digit {d} leads {observed:.1f}% of {stream} values, "
                        f"{direction} often than the expected {expected:.1f}%"
                    ),
                    value=observed,
                    expected_value=expected,
                    deviation=abs(observed - expected),
                    significance=chi_sq,
                )
            )

        anomalies.append(
            StatisticalAnomalyResult(
                type=AnomalyType.ARTIFICIAL_DIGIT_PATTERN,
                severity=Severity.HIGH if p_value < config.high_severity_p_value else Severity.MEDIUM,
                confidence=1.0 - p_value,
                description=(
                    f"Artificial number patterns detected in {stream} values "
                    f"(leading-digit distribution, chi-square {chi_sq:.2f}, p={p_value:.3g})"
                ),
                affected_items=tuple(item.id for item in items),
                statistical_measure=chi_sq,
                threshold=config.significance_level,
                evidence=tuple(evidence),
            )
        )
    return anomalies


def _check_calculation_consistency(
    comparison: ComparisonSnapshot,
    items: list[LineItem],
    config: AnomalyConfig,
) -> list[StatisticalAnomalyResult]:
    """
    Flag items whose stated total differs from quantity x unit price by more
    than the relative tolerance. Decimal arithmetic throughout.
    """
    if len(items) < config.calculation_min_items:
        logger.debug("calculation_check_skipped", reason="too_few_items", item_count=len(items))
        return []

    flagged: list[tuple[LineItem, Decimal, Decimal, Decimal, Decimal]] = []
    for item in items:
        quantity = to_decimal(item.quantity, f"quantity of item {item.id}")
        unit_price = to_decimal(item.unit_price, f"unit price of item {item.id}")
        actual = to_decimal(item.total, f"total of item {item.id}")
        expected = quantity * unit_price
        deviation = abs(actual - expected)
        relative = deviation / expected if expected > 0 else Decimal("0")
        if relative > config.calculation_tolerance:
            flagged.append((item, actual, expected, deviation, relative))

    if not flagged:
        return []

    max_deviation = max(deviation for _, _, _, deviation, _ in flagged)
    severity = Severity.HIGH if max_deviation > config.calculation_high_deviation else Severity.MEDIUM
    confidence = min(max_deviation / config.calculation_confidence_scale, Decimal("1"))
    return [
        StatisticalAnomalyResult(
            type=AnomalyType.CALCULATION_INCONSISTENCY,
            severity=severity,
            confidence=float(confidence),
            description="Calculation errors detected in quantity x unit price = total relationships",
            affected_items=tuple(item.id for item, *_ in flagged),
            statistical_measure=float(max_deviation),
            threshold=float(config.calculation_tolerance),
            evidence=tuple(
                AnomalyEvidence(
                    type=EvidenceType.COMPARISON,
                    description=(
                        f"Item {item.id} total {actual} does not match "
                        f"quantity x unit price {expected} ({float(relative):.1%} off)"
                    ),
                    value=float(actual),
                    expected_value=float(expected),
                    deviation=float(deviation),
                    significance=float(relative),
                )
                for item, actual, expected, deviation, relative in flagged
            ),
        )
    ]


def _check_processing_time(
    comparison: ComparisonSnapshot,
    items: list[LineItem],
    config: AnomalyConfig,
) -> list[StatisticalAnomalyResult]:
    """Flag an unusually slow upstream comparison (data complexity or quality issues)."""
    elapsed = float(comparison.processing_time_ms)
    if elapsed <= config.temporal_threshold_ms:
        return []
    baseline = config.temporal_baseline_ms
    return [
        StatisticalAnomalyResult(
            type=AnomalyType.TEMPORAL,
            severity=Severity.MEDIUM,
            confidence=config.temporal_confidence,
            description="Unusually long processing time may indicate data complexity or quality issues",
            affected_items=(),
            statistical_measure=elapsed,
            threshold=config.temporal_threshold_ms,
            evidence=(
                AnomalyEvidence(
                    type=EvidenceType.STATISTICAL,
                    description=(
                        f"Processing took {elapsed:.0f} ms against a {baseline:.0f} ms baseline"
                    ),
                    value=elapsed,
                    expected_value=baseline,
                    deviation=abs(elapsed - baseline),
                    significance=elapsed / baseline,
                ),
            ),
        )
    ]


ANOMALY_CHECKS: tuple[tuple[str, AnomalyCheck], ...] = (
    ("outlier", _check_outliers),
    ("leading_digit", _check_leading_digits),
    ("calculation_consistency", _check_calculation_consistency),
    ("processing_time", _check_processing_time),
)


def detect_anomalies(
    comparison: ComparisonSnapshot,
    config: AnomalyConfig | None = None,
) -> list[StatisticalAnomalyResult]:
    """
    Run all statistical anomaly checks on a reconciled comparison.

    The item set is the matched supplement items plus newly added supplement
    items. Checks are independent; each one runs even if another raised.

    Args:
        comparison: Reconciled comparison snapshot (read-only).
        config: Thresholds for each check; uses defaults if None.

    Returns:
        Anomalies sorted by confidence, highest first (stable for ties).

    Raises:
        AnomalyDetectionError: one or more checks raised; names every failed
            check and chains the first failure. No partial list is returned.
    """
    cfg = config or AnomalyConfig()
    items = comparison.reconciled_items
    anomalies: list[StatisticalAnomalyResult] = []
    failures: dict[str, BaseException] = {}

    for name, check in ANOMALY_CHECKS:
        try:
            anomalies.extend(check(comparison, items, cfg))
        except Exception as e:
            failures[name] = e
            logger.warning(
                "anomaly_check_failed",
                check=name,
                error=str(e),
                error_type=type(e).__name__,
                analysis_id=comparison.analysis_id,
            )

    if failures:
        raise AnomalyDetectionError(failures) from next(iter(failures.values()))

    anomalies.sort(key=lambda a: a.confidence, reverse=True)
    logger.info(
        "anomaly_detection_complete",
        analysis_id=comparison.analysis_id,
        item_count=len(items),
        anomaly_count=len(anomalies),
        anomaly_types=[a.type.value for a in anomalies],
    )
    return anomalies
