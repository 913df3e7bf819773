"""Coverage summary models.

Mirrors the shape of Istanbul's ``coverage-summary.json``: a ``"total"`` entry
plus one entry per file, each holding line/statement/function/branch metrics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

UNKNOWN_PCT = "Unknown"
"""Sentinel Istanbul writes for ``pct`` when a metric has no instrumented units."""

TOTAL_KEY = "total"
"""Reserved report key holding the project-wide aggregate."""

METRIC_NAMES: tuple[str, ...] = ("statements", "branches", "functions", "lines")
"""Metric types in display order."""

_PCT_DECIMALS = 2


class ReportFormatError(ValueError):
    """Raised when a coverage summary does not have the expected shape."""


def compute_pct(covered: int, total: int, skipped: int = 0) -> float:
    """Return the skip-aware coverage percentage, rounded to 2 decimals.

    Skipped units are removed from the denominator. When nothing is left to
    cover (``total - skipped <= 0``) the result is ``0``.
    """
    effective = total - skipped
    if effective <= 0:
        return 0.0
    return round(covered / effective * 100, _PCT_DECIMALS)


@dataclass(frozen=True)
class Percentage:
    """A coverage percentage that may be unmeasured.

    ``value`` is ``None`` for the unmeasured variant (Istanbul's ``"Unknown"``).
    """

    value: float | None = None

    @classmethod
    def of(cls, value: float) -> Percentage:
        return cls(float(value))

    @classmethod
    def unknown(cls) -> Percentage:
        return cls(None)

    @classmethod
    def parse(cls, raw: Any) -> Percentage:
        """Parse a raw JSON ``pct`` value."""
        if raw == UNKNOWN_PCT:
            return cls.unknown()
        if isinstance(raw, bool) or not isinstance(raw, int | float):
            raise ReportFormatError(f"Invalid pct value: {raw!r}")
        return cls.of(raw)

    @property
    def is_known(self) -> bool:
        return self.value is not None

    def resolve(self, default: float = 0.0) -> float:
        """Return the numeric value, or *default* when unmeasured."""
        return default if self.value is None else self.value

    def to_json(self) -> float | str:
        return UNKNOWN_PCT if self.value is None else self.value


def normalize_percentage(pct: float | str | Percentage) -> float:
    """Resolve a percentage to a number usable in delta arithmetic.

    Numbers pass through unchanged; ``"Unknown"`` becomes ``0``.
    """
    if isinstance(pct, Percentage):
        return pct.resolve()
    if pct == UNKNOWN_PCT:
        return 0
    if isinstance(pct, bool) or not isinstance(pct, int | float):
        raise ReportFormatError(f"Invalid pct value: {pct!r}")
    return pct


def _count(raw: dict[str, Any], key: str, *, default: int | None = None) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReportFormatError(f"Metric field '{key}' must be an integer (got: {value!r})")
    if value < 0:
        raise ReportFormatError(f"Metric field '{key}' must be non-negative (got: {value})")
    return value


@dataclass(frozen=True)
class Metric:
    """Counts and percentage for one metric type (e.g. lines)."""

    total: int = 0
    """Number of instrumented units."""

    covered: int = 0
    """Units executed at least once."""

    skipped: int = 0
    """Units excluded from the denominator."""

    pct: Percentage = field(default_factory=Percentage.unknown)
    """Coverage percentage as reported (``Unknown`` when ``total == 0``)."""

    @classmethod
    def zero(cls) -> Metric:
        return cls()

    @classmethod
    def from_counts(cls, total: int, covered: int, skipped: int = 0) -> Metric:
        """Build a metric whose ``pct`` follows the summary invariants."""
        if total == 0:
            return cls(total=0, covered=covered, skipped=skipped, pct=Percentage.unknown())
        return cls(
            total=total,
            covered=covered,
            skipped=skipped,
            pct=Percentage.of(compute_pct(covered, total, skipped)),
        )

    @classmethod
    def from_dict(cls, raw: Any) -> Metric:
        if not isinstance(raw, dict):
            raise ReportFormatError(f"Metric must be an object (got: {type(raw).__name__})")
        if "pct" not in raw:
            raise ReportFormatError("Metric is missing 'pct'")
        total = _count(raw, "total")
        covered = _count(raw, "covered")
        skipped = _count(raw, "skipped", default=0)
        if covered + skipped > total:
            raise ReportFormatError(
                f"Metric counts exceed total (covered={covered}, skipped={skipped}, total={total})"
            )
        return cls(
            total=total,
            covered=covered,
            skipped=skipped,
            pct=Percentage.parse(raw["pct"]),
        )

    @property
    def percent(self) -> float:
        """Numeric percentage with ``Unknown`` resolved to ``0``."""
        return self.pct.resolve()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": self.pct.to_json(),
        }


@dataclass(frozen=True)
class MetricBundle:
    """The four Istanbul metrics for one file or project."""

    lines: Metric = field(default_factory=Metric.zero)
    statements: Metric = field(default_factory=Metric.zero)
    functions: Metric = field(default_factory=Metric.zero)
    branches: Metric = field(default_factory=Metric.zero)

    @classmethod
    def zero(cls) -> MetricBundle:
        return cls()

    @classmethod
    def from_dict(cls, raw: Any) -> MetricBundle:
        if not isinstance(raw, dict):
            raise ReportFormatError(
                f"Coverage entry must be an object (got: {type(raw).__name__})"
            )
        metrics: dict[str, Metric] = {}
        for name in METRIC_NAMES:
            if name not in raw:
                raise ReportFormatError(f"Coverage entry is missing '{name}'")
            try:
                metrics[name] = Metric.from_dict(raw[name])
            except ReportFormatError as exc:
                raise ReportFormatError(f"{name}: {exc}") from exc
        return cls(**metrics)

    @classmethod
    def sum(cls, bundles: Iterable[MetricBundle]) -> MetricBundle:
        """Add counts per metric type and recompute each percentage.

        Percentages are never averaged, so large projects weigh more than
        small ones.
        """
        totals = {name: [0, 0, 0] for name in METRIC_NAMES}
        for bundle in bundles:
            for name, metric in bundle.items():
                acc = totals[name]
                acc[0] += metric.total
                acc[1] += metric.covered
                acc[2] += metric.skipped
        return cls(
            **{
                name: Metric.from_counts(total, covered, skipped)
                for name, (total, covered, skipped) in totals.items()
            }
        )

    def get(self, name: str) -> Metric:
        if name not in METRIC_NAMES:
            raise KeyError(name)
        metric: Metric = getattr(self, name)
        return metric

    def items(self) -> Iterator[tuple[str, Metric]]:
        for name in METRIC_NAMES:
            yield name, getattr(self, name)

    def percentages(self) -> dict[str, float]:
        """Return normalized percentages keyed by metric name."""
        return {name: metric.percent for name, metric in self.items()}

    def to_dict(self) -> dict[str, Any]:
        return {name: metric.to_dict() for name, metric in self.items()}


@dataclass
class CoverageReport:
    """Parsed ``coverage-summary.json`` contents."""

    total: MetricBundle = field(default_factory=MetricBundle.zero)
    """Project-wide aggregate (the ``"total"`` key)."""

    files: dict[str, MetricBundle] = field(default_factory=dict)
    """Per-file metrics keyed by file path, in report order."""

    @classmethod
    def from_dict(cls, raw: Any) -> CoverageReport:
        """Build a report from decoded JSON without mutating *raw*."""
        if not isinstance(raw, dict):
            raise ReportFormatError(
                f"Coverage summary must be a JSON object (got: {type(raw).__name__})"
            )
        if TOTAL_KEY not in raw:
            raise ReportFormatError(f"Coverage summary is missing the '{TOTAL_KEY}' entry")

        try:
            total = MetricBundle.from_dict(raw[TOTAL_KEY])
        except ReportFormatError as exc:
            raise ReportFormatError(f"{TOTAL_KEY}: {exc}") from exc

        files: dict[str, MetricBundle] = {}
        for key, entry in raw.items():
            if key == TOTAL_KEY:
                continue
            try:
                files[key] = MetricBundle.from_dict(entry)
            except ReportFormatError as exc:
                raise ReportFormatError(f"{key}: {exc}") from exc
        return cls(total=total, files=files)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {TOTAL_KEY: self.total.to_dict()}
        for key, bundle in self.files.items():
            data[key] = bundle.to_dict()
        return data


@dataclass
class ProjectRecord:
    """One coverage report discovered under a scan root."""

    project_path: str
    """Directory of the report relative to the scan root (``""`` for the root)."""

    coverage: CoverageReport
    """Report with file keys already normalized."""

    source: Path | None = None
    """File the report was read from."""

    @property
    def display_name(self) -> str:
        return self.project_path or "root"
