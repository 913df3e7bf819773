"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from covdelta.analyzers.diff import FileStatus
from covdelta.models.coverage import METRIC_NAMES
from covdelta.models.diagnostics import Severity

if TYPE_CHECKING:
    from covdelta.analyzers.diff import MetricDelta, ProjectDiff, WeightedTotals
    from covdelta.analyzers.thresholds import ThresholdResult
    from covdelta.models.diagnostics import Diagnostic
    from covdelta.orchestrator import ComparisonRun

console = Console()

_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0

_STATUS_MARKUP = {
    FileStatus.ADDED: "[cyan]added[/cyan]",
    FileStatus.REMOVED: "[magenta]removed[/magenta]",
    FileStatus.CHANGED: "changed",
}


def _coverage_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _HIGH_COVERAGE:
        return "green"
    if percentage >= _MEDIUM_COVERAGE:
        return "yellow"
    return "red"


def _format_change(change: float) -> str:
    if change > 0:
        return f"[green]+{change:.2f}[/green]"
    if change < 0:
        return f"[red]{change:.2f}[/red]"
    return f"[dim]{change:.2f}[/dim]"


def _format_metric(delta: MetricDelta) -> str:
    after = delta.after.percent
    color = _coverage_color(after)
    return f"[{color}]{after:.2f}%[/{color}] ({_format_change(delta.change)})"


class CLIReporter:
    """Rich terminal output for coverage comparisons."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[blue]i[/blue] {message}")

    def print_diagnostics(self, diagnostics: list[Diagnostic]) -> None:
        """Print diagnostics collected while loading reports."""
        for diagnostic in diagnostics:
            if diagnostic.severity is Severity.WARNING:
                self.print_warning(diagnostic.message)
            else:
                self.print_info(diagnostic.message)

    def print_totals(self, totals: WeightedTotals) -> None:
        """Print the weighted overall change table."""
        table = Table(title="Overall Coverage Change", title_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Baseline", justify="right")
        table.add_column("Current", justify="right")
        table.add_column("Change", justify="right")

        for name, delta in totals.deltas.items():
            table.add_row(
                name.capitalize(),
                f"{delta.before.percent:.2f}%",
                f"{delta.after.percent:.2f}%",
                _format_change(delta.change),
            )

        self.console.print(table)

    def print_projects(self, diffs: list[ProjectDiff]) -> None:
        """Print one summary row per project."""
        table = Table(title="Projects", title_style="bold cyan")
        table.add_column("Project", style="bold")
        for name in METRIC_NAMES:
            table.add_column(name.capitalize(), justify="right")
        table.add_column("Files", justify="right")

        for diff in diffs:
            label = diff.display_name
            if diff.is_new:
                label += " [cyan](new)[/cyan]"
            deltas = diff.deltas
            table.add_row(
                label,
                *(_format_metric(deltas[name]) for name in METRIC_NAMES),
                f"{diff.files_before} → {diff.files_after}",
            )

        self.console.print(table)

    def print_file_changes(self, diff: ProjectDiff) -> None:
        """Print the file-level rows of one project."""
        if not diff.file_diffs:
            return

        table = Table(title=f"Files in {diff.display_name}", title_style="bold yellow")
        table.add_column("File", style="bold")
        table.add_column("Status", justify="center")
        for name in METRIC_NAMES:
            table.add_column(name.capitalize(), justify="right")

        for row in diff.file_diffs:
            deltas = row.deltas
            table.add_row(
                row.key,
                _STATUS_MARKUP[row.status],
                *(_format_metric(deltas[name]) for name in METRIC_NAMES),
            )

        self.console.print(table)

    def print_comparison(self, run: ComparisonRun, *, show_files: bool = False) -> None:
        """Print a full comparison run."""
        self.print_header("Coverage Comparison")

        if not run.diffs:
            self.print_warning("No coverage data found.")
            return

        if run.totals.has_data:
            self.print_totals(run.totals)

        self.print_projects(run.diffs)

        if show_files:
            for diff in run.changed:
                self.print_file_changes(diff)

        for path in run.removed_projects:
            self.print_warning(f"Project removed: {path or 'root'}")

    def print_threshold_result(self, result: ThresholdResult) -> None:
        """Print the outcome of the threshold check."""
        if result.delta is None and result.total_delta is None:
            self.print_info("No coverage thresholds configured")
            return

        if result.passed:
            self.print_success("Coverage thresholds passed")
            return

        for breach in result.breaches:
            self.print_error(breach.describe())


# Singleton instance for easy import
reporter = CLIReporter()
