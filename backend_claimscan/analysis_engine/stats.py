"""
Shared numeric helpers for detector and scorer.

Half-up rounding (so 72.5 scores 73, not the banker's 72), clamping,
population statistics, leading digits and the chi-square p-value.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

import numpy as np
from scipy.stats import chi2

from backend_claimscan.analysis_engine.thresholds import P_VALUE_EXACT


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Convert an int/float/str/Decimal to Decimal via its string form; None is an error."""
    if value is None:
        raise TypeError(f"{name} is missing")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: float | Decimal) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp to an integer score in [0, 100]."""
    return int(clamp(round_half_up(value), 0, 100))


def population_stats(values: Sequence[float]) -> tuple[float, float]:
    """
    Return (mean, population std dev).

    Std dev is exactly 0.0 when all values are equal, so float noise in the
    mean never turns a constant metric into a tiny nonzero spread.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise ValueError("population_stats needs at least one value")
    mean = float(arr.mean())
    if np.all(arr == arr[0]):
        return mean, 0.0
    return mean, float(arr.std())


def population_variance(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    return float(arr.var())


def leading_digit(value: Any) -> int:
    """First nonzero digit (1-9) of |value|; 0 for zero."""
    number = abs(to_decimal(value))
    if number == 0:
        return 0
    return next(d for d in number.as_tuple().digits if d != 0)


def chi_square_statistic(observed: Sequence[int], expected: Sequence[float]) -> float:
    """Sum of (observed - expected)^2 / expected over buckets with expected > 0."""
    obs = np.asarray(observed, dtype=float)
    exp = np.asarray(expected, dtype=float)
    mask = exp > 0
    return float(np.sum((obs[mask] - exp[mask]) ** 2 / exp[mask]))


def chi_square_p_value(
    statistic: float,
    degrees_of_freedom: int,
    *,
    method: str,
    bands: Sequence[tuple[float, float]],
    default: float,
) -> float:
    """
    p-value for a chi-square statistic.

    "banded" maps the statistic onto the coarse lookup table (first band
    whose lower bound is strictly exceeded); "exact" uses the chi-square
    survival function.
    """
    if method == P_VALUE_EXACT:
        return float(chi2.sf(statistic, degrees_of_freedom))
    for lower_bound, p_value in bands:
        if statistic > lower_bound:
            return p_value
    return default
