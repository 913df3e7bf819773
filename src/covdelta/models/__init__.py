"""Data models for covdelta."""

from covdelta.models.coverage import (
    METRIC_NAMES,
    TOTAL_KEY,
    UNKNOWN_PCT,
    CoverageReport,
    Metric,
    MetricBundle,
    Percentage,
    ProjectRecord,
    ReportFormatError,
    compute_pct,
    normalize_percentage,
)
from covdelta.models.diagnostics import Diagnostic, Severity

__all__ = [
    "METRIC_NAMES",
    "TOTAL_KEY",
    "UNKNOWN_PCT",
    "CoverageReport",
    "Diagnostic",
    "Metric",
    "MetricBundle",
    "Percentage",
    "ProjectRecord",
    "ReportFormatError",
    "Severity",
    "compute_pct",
    "normalize_percentage",
]
