"""JSON reporter for coverage comparisons.

Produces machine-readable output for ``--ci`` mode and downstream tooling.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from covdelta import __version__

if TYPE_CHECKING:
    from pathlib import Path

    from covdelta.analyzers.diff import FileDiff, MetricDelta, ProjectDiff
    from covdelta.analyzers.thresholds import ThresholdResult
    from covdelta.orchestrator import ComparisonRun

logger = logging.getLogger(__name__)


class JSONReporter:
    """Serialize a comparison run and its threshold outcome."""

    def generate(
        self,
        output_path: Path,
        run: ComparisonRun,
        result: ThresholdResult | None = None,
    ) -> Path:
        """Write a JSON report file.

        Args:
            output_path: Path to write the JSON file.
            run: Comparison results.
            result: Threshold check outcome, if thresholds were checked.

        Returns:
            The path to the generated JSON file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(run, result), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, run: ComparisonRun, result: ThresholdResult | None = None) -> str:
        """Return the JSON report as a string."""
        return json.dumps(build_report(run, result), indent=2, ensure_ascii=False)


def build_report(run: ComparisonRun, result: ThresholdResult | None = None) -> dict[str, Any]:
    """Build the JSON report structure."""
    report: dict[str, Any] = {
        "tool": "covdelta",
        "version": __version__,
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "totals": _serialize_deltas(run.totals.deltas) if run.totals.has_data else None,
        "projects": [_serialize_project(diff) for diff in run.diffs],
        "removed_projects": list(run.removed_projects),
        "diagnostics": [
            {"severity": diag.severity.value, "message": diag.message, "source": diag.source}
            for diag in run.diagnostics
        ],
    }

    if result is not None:
        report["thresholds"] = {
            "delta": result.delta,
            "total_delta": result.total_delta,
            "passed": result.passed,
            "breaches": [
                {
                    "scope": breach.scope,
                    "metric": breach.metric,
                    "before": breach.before,
                    "after": breach.after,
                    "change": breach.change,
                    "limit": breach.limit,
                }
                for breach in result.breaches
            ],
        }

    return report


def _serialize_deltas(deltas: dict[str, MetricDelta]) -> dict[str, Any]:
    return {
        name: {
            "before": delta.before.percent,
            "after": delta.after.percent,
            "change": delta.change,
        }
        for name, delta in deltas.items()
    }


def _serialize_file(row: FileDiff) -> dict[str, Any]:
    return {"key": row.key, "status": row.status.value, "metrics": _serialize_deltas(row.deltas)}


def _serialize_project(diff: ProjectDiff) -> dict[str, Any]:
    return {
        "project": diff.project_path,
        "is_new": diff.is_new,
        "files_before": diff.files_before,
        "files_after": diff.files_after,
        "metrics": _serialize_deltas(diff.deltas),
        "files": [_serialize_file(row) for row in diff.file_diffs],
    }
