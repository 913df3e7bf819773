"""Istanbul ``coverage-summary.json`` parsing.

The ``json-summary`` reporter (used by Jest, Vitest and nyc) writes one object
per project:

{
  "total": {
    "lines":      {"total": 449, "covered": 382, "skipped": 0, "pct": 85.07},
    "statements": {...}, "functions": {...}, "branches": {...}
  },
  "/abs/path/to/src/file.ts": { "lines": {...}, ... }
}

``pct`` is the string ``"Unknown"`` when a metric has no instrumented units.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from covdelta.models.coverage import CoverageReport, ReportFormatError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "coverage-summary.json"


class IstanbulSummaryParser:
    """Parser for Istanbul's json-summary reporter output."""

    @property
    def name(self) -> str:
        return "istanbul-summary"

    def parse_summary_file(self, summary_file: Path) -> CoverageReport:
        """Read and parse a summary file.

        Raises:
            ReportFormatError: If the file cannot be read, is not valid JSON,
                or does not have the summary shape.
        """
        try:
            text = summary_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ReportFormatError(f"Failed to read {summary_file}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ReportFormatError(f"Invalid JSON in {summary_file}: {exc}") from exc

        report = self.parse_summary_data(data)
        logger.debug("Parsed %s (%d files)", summary_file, len(report.files))
        return report

    def parse_summary_data(self, data: object) -> CoverageReport:
        """Parse already-decoded summary JSON."""
        return CoverageReport.from_dict(data)
