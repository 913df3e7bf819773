"""Output reporters: terminal, JSON and GitHub pull request comments."""

from covdelta.reporters.github_comment import GitHubCommentReporter, format_coverage_comment
from covdelta.reporters.json_reporter import JSONReporter, build_report
from covdelta.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "GitHubCommentReporter",
    "JSONReporter",
    "build_report",
    "format_coverage_comment",
    "reporter",
]
