"""End-to-end comparison of two coverage directories."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covdelta.adapters.coverage import SUMMARY_FILENAME, load_projects
from covdelta.analyzers.diff import (
    ProjectDiff,
    WeightedTotals,
    compare_projects,
    removed_projects,
    weighted_totals,
)
from covdelta.models.diagnostics import Diagnostic

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ComparisonRun:
    """Everything derived from one baseline/current comparison."""

    diffs: list[ProjectDiff] = field(default_factory=list)
    """Per-project comparisons in current scan order."""

    totals: WeightedTotals = field(default_factory=WeightedTotals)
    """Weighted totals (baseline: existing projects, current: all projects)."""

    removed_projects: list[str] = field(default_factory=list)
    """Projects that only exist in the baseline."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    """Warnings collected while loading both sides."""

    @property
    def changed(self) -> list[ProjectDiff]:
        """Projects that are new or have file-level changes."""
        return [diff for diff in self.diffs if diff.has_changes]

    @property
    def new_projects(self) -> list[ProjectDiff]:
        return [diff for diff in self.diffs if diff.is_new]


def compare_coverage_dirs(
    new_path: str | Path,
    old_path: str | Path,
    *,
    summary_filename: str = SUMMARY_FILENAME,
) -> ComparisonRun:
    """Load both coverage roots and compare them project by project."""
    current = load_projects(new_path, filename=summary_filename)
    baseline = load_projects(old_path, filename=summary_filename)

    diffs = compare_projects(current.projects, baseline.projects)
    removed = removed_projects(current.projects, baseline.projects)

    diagnostics = [*current.diagnostics, *baseline.diagnostics]
    diagnostics.extend(
        Diagnostic.info(f"New project found: {diff.display_name}") for diff in diffs if diff.is_new
    )
    diagnostics.extend(Diagnostic.info(f"Project removed: {path or 'root'}") for path in removed)

    logger.info(
        "Compared %d project(s): %d new, %d removed",
        len(diffs),
        sum(1 for diff in diffs if diff.is_new),
        len(removed),
    )

    return ComparisonRun(
        diffs=diffs,
        totals=weighted_totals(diffs),
        removed_projects=removed,
        diagnostics=diagnostics,
    )
