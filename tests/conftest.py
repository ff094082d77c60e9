"""
Pytest fixtures for ClaimScan tests: builders for line items, comparison snapshots and raw payloads.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend_claimscan.analysis_engine.comparison import (
    ComparisonSnapshot,
    DataQualityIssue,
    DataQualityMetrics,
    Discrepancy,
    LineItem,
    MatchedItemPair,
    ReconciliationResult,
    SuspiciousPattern,
    VarianceStatistics,
)
from backend_claimscan.analysis_engine.models import Severity


def build_item(item_id, quantity=1, unit_price=100, total=None, **kwargs) -> LineItem:
    """LineItem with Decimal fields; total defaults to quantity x unit_price."""
    qty = Decimal(str(quantity))
    price = Decimal(str(unit_price)) if unit_price is not None else None
    if total is None and price is not None:
        total_value = qty * price
    else:
        total_value = Decimal(str(total)) if total is not None else None
    return LineItem(
        id=item_id,
        description=kwargs.pop("description", f"Line {item_id}"),
        quantity=qty,
        unit_price=price,
        total=total_value,
        **kwargs,
    )


def build_snapshot(
    items=(),
    *,
    unmatched=(),
    new_items=(),
    matching_accuracy=1.0,
    total_variance_percent=0.0,
    high_variance_ids=(),
    pattern_count=0,
    completeness=1.0,
    issue_count=0,
    discrepancy_severities=(),
    processing_time_ms=1_000.0,
    item_count=None,
    analysis_id="CMP-test",
) -> ComparisonSnapshot:
    """Snapshot whose matched pairs map each supplement item onto an identical original."""
    reconciliation = ReconciliationResult(
        matched_items=tuple(MatchedItemPair(original=it, supplement=it) for it in items),
        unmatched_original_items=tuple(unmatched),
        new_supplement_items=tuple(new_items),
        matching_accuracy=matching_accuracy,
    )
    statistics = VarianceStatistics(
        total_variance=Decimal("0"),
        total_variance_percent=total_variance_percent,
        item_count=len(items) + len(new_items) if item_count is None else item_count,
        high_variance_item_ids=tuple(high_variance_ids),
        suspicious_patterns=tuple(
            SuspiciousPattern(type="round_numbers", description=f"pattern {i}")
            for i in range(pattern_count)
        ),
        data_quality=DataQualityMetrics(
            completeness=completeness,
            issues=tuple(
                DataQualityIssue(type="missing_data", description=f"issue {i}")
                for i in range(issue_count)
            ),
        ),
    )
    discrepancies = tuple(
        Discrepancy(id=f"d-{i}", type="price_variance", severity=Severity(sev))
        for i, sev in enumerate(discrepancy_severities)
    )
    return ComparisonSnapshot(
        reconciliation=reconciliation,
        statistics=statistics,
        discrepancies=discrepancies,
        processing_time_ms=processing_time_ms,
        analysis_id=analysis_id,
    )


def build_payload_item(item_id, quantity=1, unit_price=100.0, total=None) -> dict:
    return {
        "id": item_id,
        "description": f"Line {item_id}",
        "quantity": quantity,
        "unitPrice": unit_price,
        "total": quantity * unit_price if total is None else total,
        "category": "labor",
    }


@pytest.fixture
def make_item():
    return build_item


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def uniform_snapshot():
    """Five identical, internally consistent items: nothing to flag."""
    return build_snapshot([build_item(f"item-{i}") for i in range(5)])


@pytest.fixture
def comparison_payload():
    """camelCase payload as emitted by the reconciliation engine."""
    matched = [
        {
            "original": build_payload_item(f"o-{i}"),
            "supplement": build_payload_item(f"s-{i}", unit_price=100.0 + i),
            "matchingScore": 0.95,
        }
        for i in range(5)
    ]
    return {
        "analysisId": "CMP-1700000000000-abc123xyz",
        "processingTime": 1250,
        "reconciliation": {
            "matchedItems": matched,
            "unmatchedOriginalItems": [build_payload_item("o-9", unit_price=40.0)],
            "newSupplementItems": [build_payload_item("s-new", quantity=2, unit_price=75.0)],
            "matchingAccuracy": 0.8,
        },
        "statistics": {
            "totalVariance": 120.5,
            "totalVariancePercent": 22.4,
            "itemCount": 6,
            "highVarianceItems": [{"id": "s-new", "total": 150.0}, "s-4"],
            "suspiciousPatterns": [
                {
                    "type": "round_numbers",
                    "description": "Many round totals",
                    "confidence": 0.6,
                    "affectedItems": ["s-0", "s-1"],
                }
            ],
            "dataQuality": {
                "completeness": 0.95,
                "consistency": 0.9,
                "accuracy": 1.0,
                "precision": 0.98,
                "issues": [
                    {"type": "missing_data", "description": "No part number", "severity": "low"}
                ],
            },
            "categoryVariances": [
                {
                    "category": "labor",
                    "originalTotal": 540,
                    "supplementTotal": 660.5,
                    "variance": 120.5,
                    "variancePercent": 22.4,
                    "itemCount": 6,
                }
            ],
        },
        "discrepancies": [
            {"id": "d-0", "type": "new_item", "severity": "critical", "description": "Added line"}
        ],
    }
