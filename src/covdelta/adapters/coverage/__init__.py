"""Coverage summary parsing and discovery."""

from covdelta.adapters.coverage.istanbul import SUMMARY_FILENAME, IstanbulSummaryParser
from covdelta.adapters.coverage.locator import (
    LocatorResult,
    SummaryFile,
    load_projects,
    locate_summary_files,
)

__all__ = [
    "SUMMARY_FILENAME",
    "IstanbulSummaryParser",
    "LocatorResult",
    "SummaryFile",
    "load_projects",
    "locate_summary_files",
]
