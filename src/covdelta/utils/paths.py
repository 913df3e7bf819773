"""Normalization of coverage file paths to project-relative keys.

Coverage summaries key files by absolute path, which differs between CI
runners and developer machines (``/home/runner/work/repo/repo/...`` versus
``/Users/me/dev/repo/...``). Keys are rewritten to start at the project's
directory inside the monorepo so the same file compares equal across runs:

    project root:  apps/backend/service
    absolute path: /Users/me/dev/repo/apps/backend/service/src/file.ts
    key:           apps/backend/service/src/file.ts
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covdelta.models.coverage import TOTAL_KEY, CoverageReport
from covdelta.models.diagnostics import Diagnostic

if TYPE_CHECKING:
    from covdelta.models.coverage import MetricBundle

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "/"

_SEPARATORS_RE = re.compile(r"[/\\]")


def split_segments(path: str) -> list[str]:
    """Split *path* on forward and back slashes, dropping empty segments."""
    return [part for part in _SEPARATORS_RE.split(path) if part]


@dataclass(frozen=True)
class PathMatch:
    """Result of matching one file path against a project root."""

    key: str
    """Normalized key, or the original path when nothing matched."""

    start: int
    """Segment index where the project root was found (-1 if unmatched)."""

    length: int
    """Number of project-root segments matched."""

    @property
    def matched(self) -> bool:
        return self.start >= 0


def find_root_offset(path_parts: list[str], root_parts: list[str]) -> tuple[int, int]:
    """Locate the deepest, longest run of *root_parts* inside *path_parts*.

    Start offsets are scanned right to left. At each offset the number of
    leading root segments that match contiguously is counted; the longest
    run wins and a run covering the whole root stops the scan.

    Returns:
        ``(start, length)``; ``(-1, 0)`` when no segment matched.
    """
    if not root_parts:
        return 0, 0

    best_start = -1
    best_length = 0

    for start in range(len(path_parts) - len(root_parts), -1, -1):
        length = 0
        for offset, root_part in enumerate(root_parts):
            if path_parts[start + offset] != root_part:
                break
            length += 1

        if length > best_length:
            best_length = length
            best_start = start

        if length == len(root_parts):
            break

    return best_start, best_length


def normalize_path(path: str, project_root: str) -> PathMatch:
    """Rewrite *path* so it starts at *project_root*.

    Args:
        path: File path as written in the coverage summary.
        project_root: Directory of the summary relative to the scan root.

    Returns:
        A PathMatch whose ``key`` always uses ``/`` when a match was found.
        Unmatched paths keep their original spelling.
    """
    if path == TOTAL_KEY:
        return PathMatch(key=path, start=0, length=0)

    path_parts = split_segments(path)
    root_parts = split_segments(project_root)

    start, length = find_root_offset(path_parts, root_parts)
    if start < 0:
        return PathMatch(key=path, start=-1, length=0)

    return PathMatch(key=KEY_SEPARATOR.join(path_parts[start:]), start=start, length=length)


def normalize_report_paths(
    report: CoverageReport, project_root: str
) -> tuple[CoverageReport, list[Diagnostic]]:
    """Return a copy of *report* with every file key normalized.

    Paths that cannot be matched keep their original key and produce a
    warning; they will later show up as added or removed files.
    """
    diagnostics: list[Diagnostic] = []
    files: dict[str, MetricBundle] = {}

    for file_path, bundle in report.files.items():
        match = normalize_path(file_path, project_root)
        if not match.matched:
            logger.debug("No match for %s under %r", file_path, project_root)
            diagnostics.append(
                Diagnostic.warning(
                    f"Could not normalize path {file_path} for project {project_root or 'root'}",
                    source=file_path,
                )
            )
        if match.key in files:
            diagnostics.append(
                Diagnostic.warning(
                    f"Paths collide after normalization: {match.key} (keeping {file_path})",
                    source=file_path,
                )
            )
        files[match.key] = bundle

    return CoverageReport(total=report.total, files=files), diagnostics
