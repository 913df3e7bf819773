"""Discovery of per-project coverage summaries under a monorepo coverage root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from covdelta.adapters.coverage.istanbul import SUMMARY_FILENAME, IstanbulSummaryParser
from covdelta.models.coverage import ProjectRecord, ReportFormatError
from covdelta.models.diagnostics import Diagnostic
from covdelta.utils.paths import normalize_report_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryFile:
    """A summary file found during a scan."""

    project_path: str
    """Parent directory relative to the scan root, ``/``-separated."""

    full_path: Path
    """Location of the summary file."""


@dataclass
class LocatorResult:
    """Projects loaded from one scan root."""

    projects: list[ProjectRecord] = field(default_factory=list)
    """One record per readable summary, in scan order."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    """Warnings for skipped files and unmatched paths."""

    def get(self, project_path: str) -> ProjectRecord | None:
        for project in self.projects:
            if project.project_path == project_path:
                return project
        return None


def locate_summary_files(
    root: str | Path, *, filename: str = SUMMARY_FILENAME
) -> list[SummaryFile]:
    """Recursively find summary files below *root*.

    Results are sorted by project path. A missing root yields an empty list.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        return []

    found: list[SummaryFile] = []
    for candidate in root_path.rglob(filename):
        if not candidate.is_file():
            continue
        relative = candidate.parent.relative_to(root_path).as_posix()
        project_path = "" if relative == "." else relative
        found.append(SummaryFile(project_path=project_path, full_path=candidate))

    found.sort(key=lambda item: item.project_path)
    return found


def load_projects(
    root: str | Path,
    *,
    filename: str = SUMMARY_FILENAME,
    parser: IstanbulSummaryParser | None = None,
) -> LocatorResult:
    """Load and normalize every summary below *root*.

    Unreadable or malformed summaries are skipped with a warning so one bad
    report never aborts the scan.
    """
    parser = parser or IstanbulSummaryParser()
    result = LocatorResult()

    root_path = Path(root)
    if not root_path.is_dir():
        result.diagnostics.append(
            Diagnostic.warning(f"Coverage directory not found: {root_path}", source=str(root_path))
        )
        return result

    for summary in locate_summary_files(root_path, filename=filename):
        try:
            raw_report = parser.parse_summary_file(summary.full_path)
        except ReportFormatError as exc:
            logger.debug("Skipping %s: %s", summary.full_path, exc)
            result.diagnostics.append(
                Diagnostic.warning(
                    f"Failed to process coverage file for "
                    f"{summary.project_path or 'root'}: {exc}",
                    source=str(summary.full_path),
                )
            )
            continue

        coverage, diagnostics = normalize_report_paths(raw_report, summary.project_path)
        result.diagnostics.extend(diagnostics)
        result.projects.append(
            ProjectRecord(
                project_path=summary.project_path,
                coverage=coverage,
                source=summary.full_path,
            )
        )

    logger.debug("Loaded %d project(s) from %s", len(result.projects), root_path)
    return result
