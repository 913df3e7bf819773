"""Diagnostics returned by the comparison core instead of being printed."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """How serious a diagnostic is."""

    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem noticed while locating or comparing reports."""

    severity: Severity
    """Diagnostic severity."""

    message: str
    """Human-readable description."""

    source: str = ""
    """File or project the diagnostic refers to (may be empty)."""

    @classmethod
    def warning(cls, message: str, source: str = "") -> Diagnostic:
        return cls(Severity.WARNING, message, source)

    @classmethod
    def info(cls, message: str, source: str = "") -> Diagnostic:
        return cls(Severity.INFO, message, source)

    def __str__(self) -> str:
        return self.message
