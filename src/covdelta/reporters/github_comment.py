"""GitHub comment reporter for posting coverage comparisons to PRs.

Renders the comparison of every project as a markdown comment and creates or
updates that comment on the pull request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covdelta.analyzers.diff import FileStatus
from covdelta.config import DEFAULT_COMMENT_MARKER
from covdelta.models.coverage import METRIC_NAMES
from covdelta.utils.git import GitHubAPI, GitHubAPIError

if TYPE_CHECKING:
    from covdelta.analyzers.diff import FileDiff, MetricDelta, ProjectDiff, WeightedTotals
    from covdelta.orchestrator import ComparisonRun
    from covdelta.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

_HEADING = "## 📊 Coverage Report"
_TABLE_COLUMNS = " | ".join(f"{name.capitalize()} %" for name in METRIC_NAMES)

_ICON_UP = ":green_circle:"
_ICON_DOWN = ":red_circle:"
_ICON_ADDED = ":sparkles:"
_ICON_REMOVED = ":x:"


def _format_diff(change: float) -> str:
    return f"(+{change:.2f})" if change >= 0 else f"({change:.2f})"


def _format_cell(delta: MetricDelta) -> str:
    return f"{delta.after.percent:.2f} **{_format_diff(delta.change)}**"


def _format_cells(deltas: dict[str, MetricDelta]) -> str:
    return " | ".join(_format_cell(deltas[name]) for name in METRIC_NAMES)


def _status_icon(deltas: dict[str, MetricDelta]) -> str:
    overall = sum(delta.change for delta in deltas.values())
    return _ICON_DOWN if overall < 0 else _ICON_UP


def _display_key(row: FileDiff, project_path: str) -> str:
    """Show file keys relative to their project when possible."""
    prefix = f"{project_path}/" if project_path else ""
    if prefix and row.key.startswith(prefix):
        return row.key[len(prefix) :]
    return row.key


def format_file_row(row: FileDiff, project_path: str) -> str:
    """Format one file-level markdown table row."""
    if row.status is FileStatus.ADDED:
        icon = _ICON_ADDED
    elif row.status is FileStatus.REMOVED:
        icon = _ICON_REMOVED
    else:
        icon = _status_icon(row.deltas)
    return f"| {icon} | {_display_key(row, project_path)} | {_format_cells(row.deltas)} |"


def format_totals_table(totals: WeightedTotals) -> list[str]:
    """Format the weighted overall change table."""
    deltas = totals.deltas
    return [
        "### Overall Coverage Change",
        "",
        f"| Status | Metric | {_TABLE_COLUMNS} |",
        "|--------|--------|" + "|".join("-" * 14 for _ in METRIC_NAMES) + "|",
        f"| {_status_icon(deltas)} | **Total** | {_format_cells(deltas)} |",
    ]


def format_project_section(diff: ProjectDiff) -> list[str]:
    """Format a collapsed ``<details>`` block for one project."""
    label = f"📦 {diff.display_name}"
    if diff.is_new:
        label += " (🆕 New Project)"

    lines = [
        "<details>",
        f"<summary>{label}</summary>",
        "",
        f"| Status | File | {_TABLE_COLUMNS} |",
        "|--------|------|" + "|".join("-" * 14 for _ in METRIC_NAMES) + "|",
    ]
    if diff.file_diffs:
        lines.extend(format_file_row(row, diff.project_path) for row in diff.file_diffs)
    else:
        lines.append("*No changes detected*")
    lines.extend(["", "</details>", ""])
    return lines


def format_coverage_comment(
    run: ComparisonRun,
    commit_sha: str,
    base_sha: str | None = None,
    custom_comment: str | None = None,
    *,
    marker: str = DEFAULT_COMMENT_MARKER,
) -> str:
    """Render the full PR comment for a comparison run.

    Args:
        run: Comparison results.
        commit_sha: SHA of the current run.
        base_sha: SHA the baseline was produced from, if known.
        custom_comment: Optional markdown placed above the report.
        marker: First line used to find the comment again.

    Returns:
        Markdown comment body starting with *marker*.
    """
    if not run.diffs:
        return f"{marker}\n{_HEADING}\n\nNo coverage data found."

    lines: list[str] = [marker]
    if custom_comment:
        lines.extend([custom_comment, ""])
    lines.extend([_HEADING, ""])

    changed = run.changed
    if not changed:
        lines.extend(["No changes to code coverage.", ""])
    else:
        lines.extend([f"Found {len(changed)} project(s) with coverage changes.", ""])

        if run.totals.has_data:
            lines.extend(format_totals_table(run.totals))
            lines.extend(["", "---", ""])

        for diff in changed:
            lines.extend(format_project_section(diff))

    if run.removed_projects:
        removed = ", ".join(f"`{path or 'root'}`" for path in run.removed_projects)
        lines.extend([f"**Removed projects:** {removed}", ""])

    lines.extend(
        [
            "",
            f"**Baseline:** `{base_sha or 'unknown'}`",
            f"**Current:** `{commit_sha}`",
            "",
            "---",
            "",
            "*This comment is automatically updated with the latest coverage data.*",
        ]
    )
    return "\n".join(lines) + "\n"


class GitHubCommentReporter:
    """Posts coverage comparison comments on pull requests."""

    def __init__(
        self,
        github_token: str | None = None,
        *,
        api_url: str | None = None,
        marker: str = DEFAULT_COMMENT_MARKER,
    ) -> None:
        """Initialize the GitHub comment reporter.

        Args:
            github_token: GitHub access token. If not provided, will try to
                read from GITHUB_TOKEN environment variable.
            api_url: Optional API root for GitHub Enterprise.
            marker: Marker identifying the coverage comment.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._api = GitHubAPI(token=github_token, api_base=api_url or None)
        self._marker = marker

    @property
    def marker(self) -> str:
        return self._marker

    def post(self, pr_info: GitHubPRInfo, body: str, *, use_same_comment: bool = True) -> str:
        """Post *body* on the pull request.

        With *use_same_comment*, the previous coverage comment (found by its
        marker) is updated in place; otherwise a new comment is created.

        Returns:
            URL of the created or updated comment.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        logger.info(
            "Posting coverage comment to PR #%d in %s/%s",
            pr_info.pr_number,
            pr_info.owner,
            pr_info.repo,
        )

        if use_same_comment:
            result = self._api.upsert_comment(pr_info, body, self._marker)
        else:
            result = self._api.create_comment(pr_info, body)

        url = str(result.get("html_url", ""))
        logger.info("Posted comment: %s", url)
        return url

    def post_comparison(
        self,
        pr_info: GitHubPRInfo,
        run: ComparisonRun,
        *,
        commit_sha: str,
        base_sha: str | None = None,
        custom_comment: str | None = None,
        use_same_comment: bool = True,
    ) -> str:
        """Render and post a comparison run."""
        body = format_coverage_comment(
            run, commit_sha, base_sha, custom_comment, marker=self._marker
        )
        return self.post(pr_info, body, use_same_comment=use_same_comment)


__all__ = [
    "GitHubAPIError",
    "GitHubCommentReporter",
    "format_coverage_comment",
    "format_file_row",
    "format_project_section",
    "format_totals_table",
]
