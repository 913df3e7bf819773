"""Tests for the terminal and JSON reporters."""

from __future__ import annotations

import json
from io import StringIO
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from covdelta.analyzers.thresholds import check_thresholds
from covdelta.models.diagnostics import Diagnostic
from covdelta.orchestrator import ComparisonRun, compare_coverage_dirs
from covdelta.reporters.json_reporter import JSONReporter, build_report
from covdelta.reporters.terminal import CLIReporter
from tests.conftest import AUDIT_LOGS, BLOOMBERG, LIQUIDITY

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def run(monorepo: tuple[Path, Path]) -> ComparisonRun:
    return compare_coverage_dirs(*monorepo)


@pytest.fixture
def captured() -> tuple[CLIReporter, StringIO]:
    """A CLIReporter writing to an in-memory buffer."""
    buffer = StringIO()
    cli_reporter = CLIReporter()
    cli_reporter.console = Console(file=buffer, width=200, color_system=None)
    return cli_reporter, buffer


# ── JSON ─────────────────────────────────────────────────────────


class TestBuildReport:
    def test_structure(self, run: ComparisonRun) -> None:
        report = build_report(run)

        assert report["tool"] == "covdelta"
        assert [p["project"] for p in report["projects"]] == [AUDIT_LOGS, LIQUIDITY]
        assert report["removed_projects"] == [BLOOMBERG]
        assert "thresholds" not in report

        liquidity = report["projects"][1]
        assert liquidity["metrics"]["lines"] == {"before": 85.07, "after": 84.18, "change": -0.89}
        assert [f["status"] for f in liquidity["files"]] == ["changed", "added", "removed"]

    def test_thresholds(self, run: ComparisonRun) -> None:
        result = check_thresholds(run.diffs, delta=0.5)

        report = build_report(run, result)

        assert report["thresholds"]["passed"] is False
        assert report["thresholds"]["delta"] == 0.5
        assert {b["scope"] for b in report["thresholds"]["breaches"]} == {LIQUIDITY}

    def test_empty_run_has_no_totals(self) -> None:
        assert build_report(ComparisonRun())["totals"] is None

    def test_generate_writes_file(self, run: ComparisonRun, tmp_path: Path) -> None:
        out = JSONReporter().generate(tmp_path / "out" / "report.json", run)

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["totals"]["lines"]["after"] == 77.58


# ── Terminal ─────────────────────────────────────────────────────


class TestCLIReporter:
    def test_print_comparison(
        self, run: ComparisonRun, captured: tuple[CLIReporter, StringIO]
    ) -> None:
        cli_reporter, buffer = captured

        cli_reporter.print_comparison(run, show_files=True)

        output = buffer.getvalue()
        assert "Overall Coverage Change" in output
        assert f"{AUDIT_LOGS} (new)" in output
        assert f"Files in {LIQUIDITY}" in output
        assert f"Project removed: {BLOOMBERG}" in output

    def test_print_empty_comparison(self, captured: tuple[CLIReporter, StringIO]) -> None:
        cli_reporter, buffer = captured
        cli_reporter.print_comparison(ComparisonRun())
        assert "No coverage data found." in buffer.getvalue()

    def test_print_diagnostics(self, captured: tuple[CLIReporter, StringIO]) -> None:
        cli_reporter, buffer = captured

        cli_reporter.print_diagnostics(
            [Diagnostic.warning("bad file"), Diagnostic.info("New project found: x")]
        )

        output = buffer.getvalue()
        assert "⚠ bad file" in output
        assert "New project found: x" in output

    def test_print_threshold_result(
        self, run: ComparisonRun, captured: tuple[CLIReporter, StringIO]
    ) -> None:
        cli_reporter, buffer = captured

        cli_reporter.print_threshold_result(check_thresholds(run.diffs))
        cli_reporter.print_threshold_result(check_thresholds(run.diffs, delta=1))
        cli_reporter.print_threshold_result(check_thresholds(run.diffs, delta=0.5))

        output = buffer.getvalue()
        assert "No coverage thresholds configured" in output
        assert "Coverage thresholds passed" in output
        assert "lines coverage dropped 0.89%" in output
