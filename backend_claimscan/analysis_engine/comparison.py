"""
Reconciled comparison snapshot: the read-only input to the risk engine.

The reconciliation engine (external) matches supplement line items against
the original invoice and reports variance statistics, data-quality metrics,
discrepancies and its own processing time. This module types that snapshot
and parses the camelCase JSON payload it emits.

Money and quantity fields are held as Decimal so total comparisons never go
through binary floating point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Sequence

from backend_claimscan.analysis_engine.models import Severity
from backend_claimscan.core.exceptions import MalformedComparisonError


class CostCategory(str, Enum):
    LABOR = "labor"
    PARTS = "parts"
    MATERIALS = "materials"
    EQUIPMENT = "equipment"
    OVERHEAD = "overhead"
    OTHER = "other"


@dataclass(frozen=True)
class LineItem:
    """One invoice line as reconciled; variance fields are relative to the original."""

    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    category: CostCategory = CostCategory.OTHER
    has_significant_variance: bool = False
    is_new: bool = False
    quantity_variance: Decimal | None = None
    price_variance: Decimal | None = None
    total_variance: Decimal | None = None
    total_change_percent: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "item") -> LineItem:
        _require_mapping(data, path)
        price_key = "unitPrice" if "unitPrice" in data else "price"
        return cls(
            id=str(_require(data, "id", path)),
            description=str(data.get("description") or ""),
            quantity=_decimal(_require(data, "quantity", path), f"{path}.quantity"),
            unit_price=_decimal(_require(data, price_key, path), f"{path}.{price_key}"),
            total=_decimal(_require(data, "total", path), f"{path}.total"),
            category=_enum(CostCategory, data.get("category") or "other", f"{path}.category"),
            has_significant_variance=bool(data.get("hasSignificantVariance", False)),
            is_new=bool(data.get("isNew", False)),
            quantity_variance=_optional_decimal(data.get("quantityVariance"), f"{path}.quantityVariance"),
            price_variance=_optional_decimal(data.get("priceVariance"), f"{path}.priceVariance"),
            total_variance=_optional_decimal(data.get("totalVariance"), f"{path}.totalVariance"),
            total_change_percent=_optional_float(data.get("totalChangePercent"), f"{path}.totalChangePercent"),
        )


@dataclass(frozen=True)
class MatchedItemPair:
    original: LineItem
    supplement: LineItem
    matching_score: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str) -> MatchedItemPair:
        _require_mapping(data, path)
        return cls(
            original=LineItem.from_dict(_require(data, "original", path), f"{path}.original"),
            supplement=LineItem.from_dict(_require(data, "supplement", path), f"{path}.supplement"),
            matching_score=_float(data.get("matchingScore", 1.0), f"{path}.matchingScore"),
        )


@dataclass(frozen=True)
class ReconciliationResult:
    matched_items: tuple[MatchedItemPair, ...] = ()
    unmatched_original_items: tuple[LineItem, ...] = ()
    new_supplement_items: tuple[LineItem, ...] = ()
    matching_accuracy: float = 1.0
    """Matched pairs / max(original count, supplement count), in [0, 1]."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "reconciliation") -> ReconciliationResult:
        _require_mapping(data, path)
        return cls(
            matched_items=tuple(
                MatchedItemPair.from_dict(m, f"{path}.matchedItems[{i}]")
                for i, m in enumerate(_list(data, "matchedItems", path))
            ),
            unmatched_original_items=tuple(
                LineItem.from_dict(it, f"{path}.unmatchedOriginalItems[{i}]")
                for i, it in enumerate(_list(data, "unmatchedOriginalItems", path))
            ),
            new_supplement_items=tuple(
                LineItem.from_dict(it, f"{path}.newSupplementItems[{i}]")
                for i, it in enumerate(_list(data, "newSupplementItems", path))
            ),
            matching_accuracy=_float(
                _require(data, "matchingAccuracy", path), f"{path}.matchingAccuracy"
            ),
        )


@dataclass(frozen=True)
class DataQualityIssue:
    type: str
    description: str
    severity: Severity = Severity.MEDIUM


@dataclass(frozen=True)
class DataQualityMetrics:
    completeness: float = 1.0
    consistency: float = 1.0
    accuracy: float = 1.0
    precision: float = 1.0
    issues: tuple[DataQualityIssue, ...] = ()

    @property
    def quality_product(self) -> float:
        """completeness x consistency x accuracy; 1.0 means no quality penalty."""
        return self.completeness * self.consistency * self.accuracy

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str) -> DataQualityMetrics:
        _require_mapping(data, path)
        issues = []
        for i, raw in enumerate(_list(data, "issues", path)):
            issue_path = f"{path}.issues[{i}]"
            _require_mapping(raw, issue_path)
            issues.append(
                DataQualityIssue(
                    type=str(raw.get("type") or "unknown"),
                    description=str(raw.get("description") or ""),
                    severity=_enum(Severity, raw.get("severity") or "medium", f"{issue_path}.severity"),
                )
            )
        return cls(
            completeness=_float(_require(data, "completeness", path), f"{path}.completeness"),
            consistency=_float(_require(data, "consistency", path), f"{path}.consistency"),
            accuracy=_float(_require(data, "accuracy", path), f"{path}.accuracy"),
            precision=_float(data.get("precision", 1.0), f"{path}.precision"),
            issues=tuple(issues),
        )


@dataclass(frozen=True)
class SuspiciousPattern:
    type: str
    description: str
    confidence: float = 0.0
    affected_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class CategoryVariance:
    category: CostCategory
    original_total: Decimal
    supplement_total: Decimal
    variance: Decimal
    variance_percent: float
    item_count: int


@dataclass(frozen=True)
class VarianceStatistics:
    total_variance: Decimal
    total_variance_percent: float
    """Signed (supplement - original) / original x 100; 0 when the original total is 0."""
    item_count: int
    high_variance_item_ids: tuple[str, ...] = ()
    suspicious_patterns: tuple[SuspiciousPattern, ...] = ()
    data_quality: DataQualityMetrics = field(default_factory=DataQualityMetrics)
    category_variances: tuple[CategoryVariance, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "statistics") -> VarianceStatistics:
        _require_mapping(data, path)
        high_variance_ids = []
        for i, raw in enumerate(_list(data, "highVarianceItems", path)):
            # upstream sends either full items or bare ids
            if isinstance(raw, Mapping):
                high_variance_ids.append(str(_require(raw, "id", f"{path}.highVarianceItems[{i}]")))
            else:
                high_variance_ids.append(str(raw))
        patterns = []
        for i, raw in enumerate(_list(data, "suspiciousPatterns", path)):
            pattern_path = f"{path}.suspiciousPatterns[{i}]"
            _require_mapping(raw, pattern_path)
            patterns.append(
                SuspiciousPattern(
                    type=str(raw.get("type") or "unknown"),
                    description=str(raw.get("description") or ""),
                    confidence=_float(raw.get("confidence", 0.0), f"{pattern_path}.confidence"),
                    affected_items=tuple(str(x) for x in raw.get("affectedItems") or ()),
                )
            )
        categories = []
        for i, raw in enumerate(_list(data, "categoryVariances", path)):
            cat_path = f"{path}.categoryVariances[{i}]"
            _require_mapping(raw, cat_path)
            categories.append(
                CategoryVariance(
                    category=_enum(CostCategory, _require(raw, "category", cat_path), f"{cat_path}.category"),
                    original_total=_decimal(raw.get("originalTotal", 0), f"{cat_path}.originalTotal"),
                    supplement_total=_decimal(raw.get("supplementTotal", 0), f"{cat_path}.supplementTotal"),
                    variance=_decimal(raw.get("variance", 0), f"{cat_path}.variance"),
                    variance_percent=_float(raw.get("variancePercent", 0.0), f"{cat_path}.variancePercent"),
                    item_count=_int(raw.get("itemCount", 0), f"{cat_path}.itemCount"),
                )
            )
        return cls(
            total_variance=_decimal(_require(data, "totalVariance", path), f"{path}.totalVariance"),
            total_variance_percent=_float(
                _require(data, "totalVariancePercent", path), f"{path}.totalVariancePercent"
            ),
            item_count=_int(_require(data, "itemCount", path), f"{path}.itemCount"),
            high_variance_item_ids=tuple(high_variance_ids),
            suspicious_patterns=tuple(patterns),
            data_quality=DataQualityMetrics.from_dict(
                _require(data, "dataQuality", path), f"{path}.dataQuality"
            ),
            category_variances=tuple(categories),
        )


@dataclass(frozen=True)
class Discrepancy:
    id: str
    type: str
    severity: Severity
    description: str = ""


@dataclass(frozen=True)
class ComparisonSnapshot:
    """
    Everything the engine reads about one original-vs-supplement comparison.

    Read-only; the engine never mutates it and never keeps a reference after a call.
    """

    reconciliation: ReconciliationResult
    statistics: VarianceStatistics
    discrepancies: tuple[Discrepancy, ...] = ()
    processing_time_ms: float = 0.0
    analysis_id: str | None = None

    @property
    def reconciled_items(self) -> list[LineItem]:
        """Matched supplement items followed by newly added supplement items."""
        return [m.supplement for m in self.reconciliation.matched_items] + list(
            self.reconciliation.new_supplement_items
        )

    @property
    def original_total(self) -> Decimal:
        items = [m.original for m in self.reconciliation.matched_items]
        items += self.reconciliation.unmatched_original_items
        return sum((it.total for it in items), Decimal("0"))

    @property
    def supplement_total(self) -> Decimal:
        return sum((it.total for it in self.reconciled_items), Decimal("0"))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ComparisonSnapshot:
        """
        Parse the reconciliation engine's camelCase payload.

        Raises:
            MalformedComparisonError: a required field is missing or a value
                cannot be converted; the message names the field path.
        """
        _require_mapping(payload, "comparison")
        discrepancies = []
        for i, raw in enumerate(_list(payload, "discrepancies", "comparison")):
            d_path = f"comparison.discrepancies[{i}]"
            _require_mapping(raw, d_path)
            discrepancies.append(
                Discrepancy(
                    id=str(raw.get("id") or f"discrepancy-{i}"),
                    type=str(raw.get("type") or "unknown"),
                    severity=_enum(Severity, _require(raw, "severity", d_path), f"{d_path}.severity"),
                    description=str(raw.get("description") or ""),
                )
            )
        analysis_id = payload.get("analysisId")
        return cls(
            reconciliation=ReconciliationResult.from_dict(
                _require(payload, "reconciliation", "comparison")
            ),
            statistics=VarianceStatistics.from_dict(_require(payload, "statistics", "comparison")),
            discrepancies=tuple(discrepancies),
            processing_time_ms=_float(
                payload.get("processingTime", 0.0), "comparison.processingTime"
            ),
            analysis_id=str(analysis_id) if analysis_id is not None else None,
        )


def _require_mapping(data: Any, path: str) -> None:
    if not isinstance(data, Mapping):
        raise MalformedComparisonError(path, f"expected an object, got {type(data).__name__}")


def _require(data: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in data or data[key] is None:
        raise MalformedComparisonError(f"{path}.{key}", "required field is missing")
    return data[key]


def _list(data: Mapping[str, Any], key: str, path: str) -> Sequence[Any]:
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedComparisonError(f"{path}.{key}", f"expected a list, got {type(value).__name__}")
    return value


def _decimal(value: Any, path: str) -> Decimal:
    if isinstance(value, bool):
        raise MalformedComparisonError(path, "expected a number, got bool")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise MalformedComparisonError(path, f"not a number: {value!r}") from e
    if not result.is_finite():
        raise MalformedComparisonError(path, f"not a finite number: {value!r}")
    return result


def _optional_decimal(value: Any, path: str) -> Decimal | None:
    return None if value is None else _decimal(value, path)


def _float(value: Any, path: str) -> float:
    return float(_decimal(value, path))


def _optional_float(value: Any, path: str) -> float | None:
    return None if value is None else _float(value, path)


def _int(value: Any, path: str) -> int:
    number = _decimal(value, path)
    if number != number.to_integral_value():
        raise MalformedComparisonError(path, f"expected an integer, got {value!r}")
    return int(number)


def _enum(enum_cls: type[Enum], value: Any, path: str) -> Any:
    try:
        return enum_cls(str(value).lower())
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise MalformedComparisonError(path, f"{value!r} is not one of: {allowed}") from e
