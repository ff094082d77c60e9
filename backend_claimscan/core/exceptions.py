"""
Application-level exceptions.

Every engine failure derives from ClaimScanError so callers can catch one
type and fall back to the baseline score. Errors always chain the original
cause (raise ... from ...) and name the check or stage that failed.
"""

from __future__ import annotations


class ClaimScanError(Exception):
    """Base class for all risk engine errors."""


class MalformedComparisonError(ClaimScanError):
    """A comparison payload is missing a required field or holds an invalid value."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Malformed comparison at '{field}': {reason}")


class AnomalyDetectionError(ClaimScanError):
    """
    One or more anomaly checks failed.

    All checks are still attempted; failures maps check name -> exception
    for every check that raised.
    """

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = dict(failures)
        details = "; ".join(
            f"{name}: {type(exc).__name__}: {exc}" for name, exc in self.failures.items()
        )
        super().__init__(f"Statistical analysis failed in {len(self.failures)} check(s): {details}")

    @property
    def failed_checks(self) -> list[str]:
        return list(self.failures)


class RiskScoringError(ClaimScanError):
    """A risk scoring stage (component score, interval, factors, ...) failed."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        super().__init__(
            f"Risk score calculation failed in {stage}: {type(cause).__name__}: {cause}"
        )
