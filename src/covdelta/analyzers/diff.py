"""Coverage diff engine.

Matches current and baseline projects by their project path, computes
project-level and file-level deltas, and aggregates weighted totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from covdelta.models.coverage import METRIC_NAMES, MetricBundle

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from covdelta.models.coverage import CoverageReport, Metric, ProjectRecord

logger = logging.getLogger(__name__)

_DELTA_DECIMALS = 2


def round_delta(value: float) -> float:
    """Round a percentage-point change to 2 decimals."""
    rounded = round(value, _DELTA_DECIMALS)
    # Avoid rendering "-0.0".
    return rounded + 0.0


# ── Data models ──────────────────────────────────────────────────


class FileStatus(Enum):
    """How a file changed between baseline and current."""

    ADDED = "added"  # only in current
    REMOVED = "removed"  # only in baseline
    CHANGED = "changed"  # in both


@dataclass(frozen=True)
class MetricDelta:
    """One metric before and after."""

    name: str
    before: Metric
    after: Metric

    @property
    def change(self) -> float:
        """Percentage-point change with ``Unknown`` resolved to 0."""
        return round_delta(self.after.percent - self.before.percent)


def metric_deltas(before: MetricBundle, after: MetricBundle) -> dict[str, MetricDelta]:
    """Pair up the four metrics of two bundles."""
    return {
        name: MetricDelta(name=name, before=before.get(name), after=after.get(name))
        for name in METRIC_NAMES
    }


@dataclass(frozen=True)
class FileDiff:
    """File-level row of a project comparison."""

    key: str
    """Normalized file key."""

    status: FileStatus
    before: MetricBundle
    after: MetricBundle

    @property
    def deltas(self) -> dict[str, MetricDelta]:
        return metric_deltas(self.before, self.after)

    @property
    def has_pct_change(self) -> bool:
        """True when any metric's normalized pct differs."""
        return self.before.percentages() != self.after.percentages()


@dataclass(frozen=True)
class ProjectDiff:
    """Comparison of one project between baseline and current."""

    project_path: str
    """Project directory relative to the coverage root."""

    before: MetricBundle
    """Baseline totals (all zero for new projects)."""

    after: MetricBundle
    """Current totals."""

    is_new: bool
    """True when the project has no baseline report."""

    file_diffs: tuple[FileDiff, ...] = ()
    """File rows whose coverage changed, in first-encountered key order."""

    files_before: int = 0
    """Files with coverage in the baseline report."""

    files_after: int = 0
    """Files with coverage in the current report. Removed files are not counted."""

    @property
    def display_name(self) -> str:
        return self.project_path or "root"

    @property
    def deltas(self) -> dict[str, MetricDelta]:
        return metric_deltas(self.before, self.after)

    @property
    def has_changes(self) -> bool:
        return self.is_new or bool(self.file_diffs)

    @property
    def files_added(self) -> int:
        return sum(1 for row in self.file_diffs if row.status is FileStatus.ADDED)

    @property
    def files_removed(self) -> int:
        return sum(1 for row in self.file_diffs if row.status is FileStatus.REMOVED)


@dataclass(frozen=True)
class WeightedTotals:
    """Aggregate coverage across projects, weighted by unit counts."""

    before: MetricBundle = field(default_factory=MetricBundle.zero)
    after: MetricBundle = field(default_factory=MetricBundle.zero)

    @property
    def deltas(self) -> dict[str, MetricDelta]:
        return metric_deltas(self.before, self.after)

    @property
    def has_data(self) -> bool:
        """True when the baseline side measured anything."""
        return any(metric.total > 0 for _, metric in self.before.items())


# ── Engine ───────────────────────────────────────────────────────


def diff_files(current: CoverageReport, baseline: CoverageReport) -> list[FileDiff]:
    """Compare file entries of two normalized reports.

    Keys are visited in first-encountered order: current keys, then keys only
    present in the baseline. Changed rows without any pct difference are
    dropped; added and removed rows are always kept.
    """
    rows: list[FileDiff] = []
    zero = MetricBundle.zero()

    for key, after in current.files.items():
        before = baseline.files.get(key)
        if before is None:
            rows.append(FileDiff(key=key, status=FileStatus.ADDED, before=zero, after=after))
            continue
        row = FileDiff(key=key, status=FileStatus.CHANGED, before=before, after=after)
        if row.has_pct_change:
            rows.append(row)

    for key, before in baseline.files.items():
        if key not in current.files:
            rows.append(FileDiff(key=key, status=FileStatus.REMOVED, before=before, after=zero))

    return rows


def compare_project(current: ProjectRecord, baseline: ProjectRecord | None) -> ProjectDiff:
    """Compare one current project against its baseline (if any)."""
    after = current.coverage.total
    if baseline is None:
        logger.debug("New project: %s", current.display_name)
        zero = MetricBundle.zero()
        rows = tuple(
            FileDiff(key=key, status=FileStatus.ADDED, before=zero, after=bundle)
            for key, bundle in current.coverage.files.items()
        )
        return ProjectDiff(
            project_path=current.project_path,
            before=zero,
            after=after,
            is_new=True,
            file_diffs=rows,
            files_before=0,
            files_after=len(current.coverage.files),
        )

    return ProjectDiff(
        project_path=current.project_path,
        before=baseline.coverage.total,
        after=after,
        is_new=False,
        file_diffs=tuple(diff_files(current.coverage, baseline.coverage)),
        files_before=len(baseline.coverage.files),
        files_after=len(current.coverage.files),
    )


def compare_projects(
    current: Sequence[ProjectRecord], baseline: Sequence[ProjectRecord]
) -> list[ProjectDiff]:
    """Compare every current project with the baseline project at the same path.

    Projects found only in the baseline are not part of the result; see
    removed_projects().
    """
    baseline_by_path = {record.project_path: record for record in baseline}
    return [
        compare_project(record, baseline_by_path.get(record.project_path)) for record in current
    ]


def removed_projects(
    current: Sequence[ProjectRecord], baseline: Sequence[ProjectRecord]
) -> list[str]:
    """Return project paths present in the baseline but missing from current."""
    current_paths = {record.project_path for record in current}
    return [record.project_path for record in baseline if record.project_path not in current_paths]


def weighted_totals(diffs: Iterable[ProjectDiff], *, include_new: bool = True) -> WeightedTotals:
    """Sum unit counts across projects and recompute percentages.

    The baseline side never includes new projects. The current side includes
    them unless *include_new* is False.
    """
    before: list[MetricBundle] = []
    after: list[MetricBundle] = []
    for diff in diffs:
        if diff.is_new:
            if include_new:
                after.append(diff.after)
            continue
        before.append(diff.before)
        after.append(diff.after)

    return WeightedTotals(before=MetricBundle.sum(before), after=MetricBundle.sum(after))
