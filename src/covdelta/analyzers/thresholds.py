"""Regression thresholds for project and aggregate coverage."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covdelta.analyzers.diff import weighted_totals

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covdelta.analyzers.diff import MetricDelta, ProjectDiff, WeightedTotals

logger = logging.getLogger(__name__)

OVERALL_SCOPE = "overall"


@dataclass(frozen=True)
class ThresholdBreach:
    """A metric whose drop exceeded the allowed delta."""

    scope: str
    """Project path, or ``"overall"`` for the aggregate check."""

    metric: str
    """Metric name (lines, statements, functions, branches)."""

    before: float
    """Baseline percentage."""

    after: float
    """Current percentage."""

    change: float
    """Percentage-point change (negative)."""

    limit: float
    """Allowed drop."""

    @property
    def is_overall(self) -> bool:
        return self.scope == OVERALL_SCOPE

    def describe(self) -> str:
        target = "Overall" if self.is_overall else f"Project {self.scope or 'root'}"
        return (
            f"{target} {self.metric} coverage dropped {abs(self.change):.2f}% "
            f"({self.before:.2f}% -> {self.after:.2f}%), allowed {self.limit:g}%"
        )


@dataclass
class ThresholdResult:
    """Outcome of all threshold checks for one run."""

    breaches: list[ThresholdBreach] = field(default_factory=list)
    delta: float | None = None
    total_delta: float | None = None

    @property
    def passed(self) -> bool:
        return not self.breaches

    @property
    def reason(self) -> str:
        """Human-readable failure reason (empty when passed)."""
        return "; ".join(breach.describe() for breach in self.breaches)


def _validate_limit(name: str, value: float | None) -> None:
    if value is not None and not (math.isfinite(value) and value >= 0):
        raise ValueError(f"{name} must be a finite non-negative number (got: {value})")


def _breaches(scope: str, deltas: dict[str, MetricDelta], limit: float) -> list[ThresholdBreach]:
    return [
        ThresholdBreach(
            scope=scope,
            metric=name,
            before=delta.before.percent,
            after=delta.after.percent,
            change=delta.change,
            limit=limit,
        )
        for name, delta in deltas.items()
        if delta.change < -limit
    ]


def check_project_delta(diff: ProjectDiff, delta: float) -> list[ThresholdBreach]:
    """Check every metric of one project against *delta*.

    A drop of exactly *delta* passes. New projects never breach.
    """
    _validate_limit("delta", delta)
    if diff.is_new:
        return []
    return _breaches(diff.project_path, diff.deltas, delta)


def check_total_delta(totals: WeightedTotals, total_delta: float) -> list[ThresholdBreach]:
    """Check the aggregate coverage of existing projects against *total_delta*."""
    _validate_limit("total_delta", total_delta)
    return _breaches(OVERALL_SCOPE, totals.deltas, total_delta)


def check_thresholds(
    diffs: Sequence[ProjectDiff],
    delta: float | None = None,
    total_delta: float | None = None,
) -> ThresholdResult:
    """Run the per-project and aggregate checks.

    Args:
        diffs: Project comparisons for the run.
        delta: Allowed per-project drop in percentage points (None skips).
        total_delta: Allowed aggregate drop across existing projects (None skips).

    Returns:
        ThresholdResult listing every breach; either check failing fails the run.

    Raises:
        ValueError: If a limit is negative or not finite.
    """
    _validate_limit("delta", delta)
    _validate_limit("total_delta", total_delta)

    result = ThresholdResult(delta=delta, total_delta=total_delta)

    if delta is not None:
        for diff in diffs:
            result.breaches.extend(check_project_delta(diff, delta))

    if total_delta is not None:
        totals = weighted_totals(diffs, include_new=False)
        result.breaches.extend(check_total_delta(totals, total_delta))

    if result.breaches:
        logger.debug("%d threshold breach(es)", len(result.breaches))
    return result
