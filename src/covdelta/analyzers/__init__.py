"""Coverage comparison and threshold analysis."""

from covdelta.analyzers.diff import (
    FileDiff,
    FileStatus,
    MetricDelta,
    ProjectDiff,
    WeightedTotals,
    compare_project,
    compare_projects,
    diff_files,
    metric_deltas,
    removed_projects,
    weighted_totals,
)
from covdelta.analyzers.thresholds import (
    ThresholdBreach,
    ThresholdResult,
    check_project_delta,
    check_thresholds,
    check_total_delta,
)

__all__ = [
    "FileDiff",
    "FileStatus",
    "MetricDelta",
    "ProjectDiff",
    "ThresholdBreach",
    "ThresholdResult",
    "WeightedTotals",
    "check_project_delta",
    "check_thresholds",
    "check_total_delta",
    "compare_project",
    "compare_projects",
    "diff_files",
    "metric_deltas",
    "removed_projects",
    "weighted_totals",
]
